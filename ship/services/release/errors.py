from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "config_missing",
    "invalid_config",
    "invalid_resume",
    "dirty_tree",
    "precondition",
    "user_aborted",
    "verification_failed",
    "publish_failed",
    "platform_failed",
    "notification_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    Only ``platform_failed`` is survivable: it is reported for one platform
    and the run goes on. Every other kind stops the pipeline.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    @property
    def is_fatal(self) -> bool:
        return self.kind != "platform_failed"

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
