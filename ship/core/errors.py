"""Process exit codes.

A release run ends in exactly one place (the CLI command), which maps the
failure it received to one of these codes.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success (including partial platform coverage)
    - 1: User error (declined a confirmation, dirty working tree)
    - 2: Environment error (missing credential, bad config, bad resume token)
    - 3: Build error (verification suite failed)
    - 4: Network error (push, release host or deployment endpoint failed)
    - 5: I/O error (git or filesystem failure)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
