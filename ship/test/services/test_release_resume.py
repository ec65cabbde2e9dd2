from __future__ import annotations

from pathlib import Path

import pytest

from ship.core.result import Err, Ok, Result
from ship.git.repository import GitError, Repository
from ship.output.console import MockConsole
from ship.output.prompt import ScriptedPrompter
from ship.services.release.model import Stage
from ship.services.release.resume import RESUME_ENTRY, ResumePoint, parse_resume, resume_session


class _Repo(Repository):
    def __init__(self, tags: list[str]) -> None:
        super().__init__(Path("/src"))
        self._tags = tags

    def tags(self) -> Result[list[str], GitError]:
        return Ok(self._tags)


@pytest.mark.parametrize("token", [None, "", "  "])
def test_empty_token_means_full_run(token: str | None) -> None:
    assert parse_resume(token) == Ok(None)


def test_publish_token() -> None:
    assert parse_resume("publish") == Ok(ResumePoint.PUBLISH)
    assert RESUME_ENTRY[ResumePoint.PUBLISH] == Stage.PUSHED


@pytest.mark.parametrize("token", ["github", "build", "notify"])
def test_unknown_token_is_config_error(token: str) -> None:
    result = parse_resume(token)
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_resume"
    assert "publish" in (result.error.hint or "")


def test_resume_reads_back_latest_tag() -> None:
    console = MockConsole()
    prompter = ScriptedPrompter(answers=[True])

    result = resume_session(
        point=ResumePoint.PUBLISH,
        repo=_Repo(["v0.9.0", "v0.10.0-beta1", "v0.9.5"]),
        prompter=prompter,
        console=console,
    )

    assert isinstance(result, Ok)
    session = result.value
    assert session.stage == Stage.PUSHED
    assert session.tag == "v0.10.0-beta1"
    assert session.prerelease is True
    assert session.resumed is True
    assert prompter.asked == ["Continue?"]
    assert console.find("v0.10.0-beta1 is being resumed")


def test_declining_resume_aborts() -> None:
    result = resume_session(
        point=ResumePoint.PUBLISH,
        repo=_Repo(["v1.0.0"]),
        prompter=ScriptedPrompter(answers=[False]),
        console=MockConsole(),
    )
    assert isinstance(result, Err)
    assert result.error.kind == "user_aborted"
