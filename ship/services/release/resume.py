"""Re-entering a release whose tag was already pushed.

Only use resume if a tag was pushed but a later step failed: the tag is
read back from the repository instead of being chosen, and tagging,
pushing and verification are skipped.
"""

from __future__ import annotations

from enum import StrEnum

from ship.core.result import Err, Ok, Result
from ship.git.repository import Repository
from ship.output.console import ConsoleProtocol
from ship.output.prompt import PromptProtocol
from ship.services.release.errors import ReleaseError
from ship.services.release.model import ReleaseSession, Stage
from ship.services.release.tags import current_tag, is_prerelease


class ResumePoint(StrEnum):
    PUBLISH = "publish"


# Stage a resumed session is placed at; the pipeline runs the transition out of it next.
RESUME_ENTRY: dict[ResumePoint, Stage] = {
    ResumePoint.PUBLISH: Stage.PUSHED,
}

_DESCRIPTIONS: dict[ResumePoint, str] = {
    ResumePoint.PUBLISH: "The process will pick up at publishing the release and building assets.",
}


def parse_resume(token: str | None) -> Result[ResumePoint | None, ReleaseError]:
    """Map the ``--resume`` value to a resume point; empty means a full run."""
    if token is None or not token.strip():
        return Ok(None)
    try:
        return Ok(ResumePoint(token.strip().lower()))
    except ValueError:
        valid = ", ".join(p.value for p in ResumePoint)
        return Err(
            ReleaseError(
                kind="invalid_resume",
                message=f"unknown resume state: {token}",
                hint=f"valid values: {valid}",
            )
        )


def resume_session(
    *,
    point: ResumePoint,
    repo: Repository,
    prompter: PromptProtocol,
    console: ConsoleProtocol,
) -> Result[ReleaseSession, ReleaseError]:
    """Build the session a resumed run starts from."""
    tags = repo.tags()
    if isinstance(tags, Err):
        return Err(ReleaseError(kind="precondition", message=tags.error.message))

    tag = current_tag(tags.value)
    console.newline()
    console.info(f"The deploy for {tag} is being resumed.")
    console.print(_DESCRIPTIONS[point])

    if not prompter.confirm("Continue?"):
        return Err(ReleaseError(kind="user_aborted", message="aborting resumed deployment"))

    return Ok(
        ReleaseSession(
            stage=RESUME_ENTRY[point],
            tag=tag,
            prerelease=is_prerelease(tag),
            resumed=True,
        )
    )
