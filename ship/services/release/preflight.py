"""Checks that must pass before anything is tagged or pushed.

None of these has side effects. The confirmation gates put the operator in
the loop: the release is cut from whatever HEAD is, so they must look at it.
"""

from __future__ import annotations

from ship.core.config import ReleaseConfig
from ship.core.result import Err, Ok, Result
from ship.git.repository import Repository
from ship.output.console import ConsoleProtocol, Style
from ship.output.prompt import PromptProtocol
from ship.services.release.errors import ReleaseError

CHANGELOG_FILES: tuple[str, ...] = ("README.txt", "CHANGES.txt")


def check_environment(config: ReleaseConfig) -> Result[None, ReleaseError]:
    missing = config.missing_env()
    if missing:
        names = ", ".join(missing)
        return Err(
            ReleaseError(
                kind="config_missing",
                message=f"environment variable(s) cannot be empty: {names}",
                hint=f"export {missing[0]}=...",
            )
        )
    return Ok(None)


def check_clean_tree(repo: Repository) -> Result[None, ReleaseError]:
    """Fail if tracked files differ from HEAD.

    Building from a modified tree would stamp "unclean" version information
    into the binaries; deploys happen exactly on tags. Untracked files are
    ignored.
    """
    if not repo.exists():
        return Err(
            ReleaseError(
                kind="precondition",
                message=f"not a git repository: {repo.path}",
                hint="Check GOPATH points at the workspace holding the source checkout.",
            )
        )

    changes = repo.tracked_changes()
    if isinstance(changes, Err):
        return Err(ReleaseError(kind="precondition", message=changes.error.message))

    if changes.value:
        listed = ", ".join(f"{e.pretty_xy()} {e.path}" for e in changes.value[:5])
        more = f" (+{len(changes.value) - 5} more)" if len(changes.value) > 5 else ""
        return Err(
            ReleaseError(
                kind="dirty_tree",
                message="uncommitted changes; working tree must be clean to deploy",
                hint=listed + more,
            )
        )
    return Ok(None)


def confirm_commit(
    *,
    repo: Repository,
    prompter: PromptProtocol,
    console: ConsoleProtocol,
) -> Result[None, ReleaseError]:
    console.print("The release will be cut at the current commit:")
    console.newline()
    summary = repo.show_summary()
    if isinstance(summary, Err):
        return Err(ReleaseError(kind="precondition", message=summary.error.message))
    console.print(summary.value, Style.DIM)
    console.newline()

    if not prompter.confirm("Is this the right commit to release?"):
        return Err(ReleaseError(kind="user_aborted", message="deploy cancelled by user"))
    return Ok(None)


def confirm_changelog(prompter: PromptProtocol) -> Result[None, ReleaseError]:
    files = " and ".join(CHANGELOG_FILES)
    if not prompter.confirm(f"Have {files} been updated for the new version?"):
        return Err(ReleaseError(kind="user_aborted", message="deploy cancelled by user"))
    return Ok(None)


def run_preflight(
    *,
    config: ReleaseConfig,
    repo: Repository,
    prompter: PromptProtocol,
    console: ConsoleProtocol,
    interactive: bool,
) -> Result[None, ReleaseError]:
    """Run every preflight check in order, stopping at the first failure.

    ``interactive=False`` (a resumed run) skips the confirmation gates.
    """
    for check in (lambda: check_environment(config), lambda: check_clean_tree(repo)):
        result = check()
        if isinstance(result, Err):
            return result

    if not interactive:
        return Ok(None)

    confirmed = confirm_commit(repo=repo, prompter=prompter, console=console)
    if isinstance(confirmed, Err):
        return confirmed
    return confirm_changelog(prompter)
