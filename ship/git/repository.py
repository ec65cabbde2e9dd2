"""Git repository abstraction.

The release flow needs a handful of git operations on the source
repository: list tags, check that tracked files match HEAD, show the commit
being released, create a signed tag, push, and check out a tag into a
separate worktree for building. All operations return Result types.

Usage:
    repo = Repository(config.repo_path)

    match repo.tracked_changes():
        case Ok(entries) if not entries:
            print("Working tree clean")
        case Ok(entries):
            print(f"{len(entries)} modified files")
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ship.core.result import Err, Ok, Result
from ship.platform.process import ProcessError
from ship.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NETWORK_COMMANDS = frozenset({"fetch", "pull", "push", "clone"})

__all__ = [
    "GitError",
    "Repository",
    "StatusEntry",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry of ``git status --porcelain``.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str

    def pretty_xy(self) -> str:
        """Format XY with dots for spaces (". M" instead of " M")."""
        return self.xy.replace(" ", ".")


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a valid git repository."""
        return (self.path / ".git").exists()

    def tags(self) -> Result[list[str], GitError]:
        """List every tag name (``git tag``), in git's order."""
        result = self._run(["tag"])
        match result:
            case Err(e):
                return Err(self._error("tag", e, "git tag failed"))
            case Ok(stdout):
                return Ok([line.strip() for line in stdout.splitlines() if line.strip()])

    def tracked_changes(self) -> Result[tuple[StatusEntry, ...], GitError]:
        """Tracked files that differ from HEAD; untracked files are ignored."""
        result = self._run(["status", "--untracked-files=no", "--porcelain"])
        match result:
            case Err(e):
                return Err(self._error("status", e, "git status failed"))
            case Ok(stdout):
                entries: list[StatusEntry] = []
                for line in stdout.splitlines():
                    entry = self._parse_entry(line)
                    if entry is not None:
                        entries.append(entry)
                return Ok(tuple(entries))

    def head_sha(self) -> Result[str, GitError]:
        result = self._run(["rev-parse", "HEAD"])
        match result:
            case Err(e):
                return Err(self._error("rev-parse HEAD", e, "git rev-parse failed"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def show_summary(self) -> Result[str, GitError]:
        """Output of ``git show --summary`` for the current commit."""
        result = self._run(["show", "--summary"])
        match result:
            case Err(e):
                return Err(self._error("show --summary", e, "git show failed"))
            case Ok(stdout):
                return Ok(stdout.rstrip())

    def create_signed_tag(self, tag: str, message: str = "") -> Result[None, GitError]:
        """Create a GPG-signed annotated tag at HEAD."""
        return self._mutate(["tag", "-s", tag, "-m", message], command=f"tag -s {tag}")

    def delete_tag(self, tag: str) -> Result[None, GitError]:
        """Remove a local tag (``git tag -d``)."""
        return self._mutate(["tag", "-d", tag], command=f"tag -d {tag}")

    def push(self) -> Result[None, GitError]:
        return self._mutate(["push"], command="push")

    def push_tags(self) -> Result[None, GitError]:
        return self._mutate(["push", "--tags"], command="push --tags")

    def add_worktree(self, path: Path, ref: str) -> Result[None, GitError]:
        """Check out ``ref`` (detached) into a separate worktree at ``path``."""
        return self._mutate(
            ["worktree", "add", "--detach", str(path), ref],
            command=f"worktree add {ref}",
        )

    def remove_worktree(self, path: Path) -> Result[None, GitError]:
        return self._mutate(
            ["worktree", "remove", "--force", str(path)],
            command="worktree remove",
        )

    def _mutate(self, args: list[str], *, command: str) -> Result[None, GitError]:
        result = self._run(args)
        if isinstance(result, Err):
            return Err(self._error(command, result.error, f"git {command} failed"))
        return Ok(None)

    def _error(self, command: str, e: ProcessError, fallback: str) -> GitError:
        return GitError(
            command=command,
            message=e.stderr.strip() or e.stdout.strip() or fallback,
            returncode=e.returncode,
        )

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)

    def _parse_entry(self, line: str) -> StatusEntry | None:
        """Parse a single ``XY path`` status line."""
        if len(line) < 4:
            return None

        if line.startswith("?? "):
            return StatusEntry(xy="??", path=line[3:])

        return StatusEntry(xy=line[:2], path=line[3:])
