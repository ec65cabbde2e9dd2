from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest
import typer

from ship.cli.context import CLIContext
from ship.core.config import ReleaseConfig
from ship.core.errors import ErrorCode
from ship.core.result import Err, Ok, Result
from ship.output.console import MockConsole
from ship.output.prompt import ScriptedPrompter
from ship.services.release.errors import ReleaseError, ReleaseErrorKind
from ship.services.release.model import (
    FanOutReport,
    PlatformOutcome,
    ReleaseSession,
    Stage,
)
from ship.services.release.platforms import Platform
from ship.services.release.resume import ResumePoint


def _ctx(config: ReleaseConfig | None = None) -> CLIContext:
    return CLIContext(
        config=config or ReleaseConfig(github_token="t", gopath="/go"),
        console=MockConsole(),
        prompter=ScriptedPrompter(),
    )


@dataclass
class _FakePipeline:
    result: Result[ReleaseSession, ReleaseError]
    session: ReleaseSession = field(default_factory=ReleaseSession)
    resumed_with: list[ResumePoint | None] = field(default_factory=list)

    def run(self, *, resume: ResumePoint | None = None) -> Result[ReleaseSession, ReleaseError]:
        self.resumed_with.append(resume)
        return self.result


def _patch(
    monkeypatch: pytest.MonkeyPatch, ctx: CLIContext, pipeline: _FakePipeline
) -> list[tuple[Platform, ...]]:
    import ship.cli.commands.release_cmd as release_cmd

    seen: list[tuple[Platform, ...]] = []

    def build_pipeline(_: CLIContext, platforms: tuple[Platform, ...]) -> _FakePipeline:
        seen.append(platforms)
        return pipeline

    monkeypatch.setattr(release_cmd, "build_context", lambda _path: ctx)
    monkeypatch.setattr(release_cmd, "ensure_gh_available", lambda: Ok(None))
    monkeypatch.setattr(release_cmd, "build_pipeline", build_pipeline)
    return seen


def _failure(kind: ReleaseErrorKind, failed_at: Stage, hint: str | None = None) -> _FakePipeline:
    return _FakePipeline(
        result=Err(ReleaseError(kind=kind, message="it broke", hint=hint)),
        session=ReleaseSession(stage=Stage.ABORTED, tag="v1.2.0", failed_at=failed_at),
    )


def test_success_reports_missing_platforms(monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.release_cmd as release_cmd

    ctx = _ctx()
    report = FanOutReport(
        outcomes=(
            PlatformOutcome(Platform("linux", "amd64"), asset_name="a.tar.gz", sha256="aa"),
            PlatformOutcome(
                Platform("linux", "mips"),
                error=ReleaseError(kind="platform_failed", message="build failed"),
            ),
        )
    )
    session = ReleaseSession(stage=Stage.DONE, tag="v1.2.0", report=report)
    pipeline = _FakePipeline(result=Ok(session))
    _patch(monkeypatch, ctx, pipeline)

    release_cmd.release(resume="", skip=[], config=None)

    assert pipeline.resumed_with == [None]
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("released without: linux/mips")
    assert ctx.console.find("v1.2.0 release successful.")


def test_resume_token_is_passed_through(monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.release_cmd as release_cmd

    pipeline = _FakePipeline(result=Ok(ReleaseSession(stage=Stage.DONE, tag="v1.2.0")))
    _patch(monkeypatch, _ctx(), pipeline)

    release_cmd.release(resume="publish", skip=[], config=None)

    assert pipeline.resumed_with == [ResumePoint.PUBLISH]


def test_invalid_resume_exits_before_anything(monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.release_cmd as release_cmd

    def no_context(_: Path | None) -> CLIContext:
        raise AssertionError("context must not be built")

    monkeypatch.setattr(release_cmd, "build_context", no_context)

    with pytest.raises(typer.Exit) as exc:
        release_cmd.release(resume="github", skip=[], config=None)

    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)


def test_skip_patterns_shrink_matrix(monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.release_cmd as release_cmd

    ctx = _ctx(ReleaseConfig(skip=("windows",)))
    seen = _patch(
        monkeypatch,
        ctx,
        _FakePipeline(result=Ok(ReleaseSession(stage=Stage.DONE, tag="v1.2.0"))),
    )

    release_cmd.release(resume="", skip=["linux/arm/v7"], config=None)

    [platforms] = seen
    assert all(p.os != "windows" for p in platforms)
    assert Platform("linux", "arm", "7") not in platforms
    assert Platform("linux", "amd64") in platforms


def test_bad_skip_pattern(monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.release_cmd as release_cmd

    _patch(monkeypatch, _ctx(), _FakePipeline(result=Ok(ReleaseSession())))

    with pytest.raises(typer.Exit) as exc:
        release_cmd.release(resume="", skip=["*"], config=None)

    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)


@pytest.mark.parametrize(
    ("kind", "failed_at", "code"),
    [
        ("config_missing", Stage.NOT_STARTED, ErrorCode.ENV_ERROR),
        ("dirty_tree", Stage.NOT_STARTED, ErrorCode.USER_ERROR),
        ("user_aborted", Stage.CHECKED, ErrorCode.USER_ERROR),
        ("verification_failed", Stage.PLANNED, ErrorCode.BUILD_ERROR),
        ("publish_failed", Stage.PUSHED, ErrorCode.NETWORK_ERROR),
        ("notification_failed", Stage.FANNED, ErrorCode.NETWORK_ERROR),
    ],
)
def test_failure_exit_codes(
    monkeypatch: pytest.MonkeyPatch,
    kind: ReleaseErrorKind,
    failed_at: Stage,
    code: ErrorCode,
) -> None:
    import ship.cli.commands.release_cmd as release_cmd

    _patch(monkeypatch, _ctx(), _failure(kind, failed_at))

    with pytest.raises(typer.Exit) as exc:
        release_cmd.release(resume="", skip=[], config=None)

    assert exc.value.exit_code == int(code)


def test_failure_after_push_suggests_resume(monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.release_cmd as release_cmd

    ctx = _ctx()
    _patch(monkeypatch, ctx, _failure("publish_failed", Stage.PUSHED, hint="HTTP 502"))

    with pytest.raises(typer.Exit):
        release_cmd.release(resume="", skip=[], config=None)

    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("error: it broke")
    assert ctx.console.find("hint: HTTP 502")
    assert ctx.console.find("ship release --resume publish")
    assert ctx.console.bells == 0


def test_failure_after_fan_out_rings_bell(monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.release_cmd as release_cmd

    ctx = _ctx()
    _patch(
        monkeypatch,
        ctx,
        _failure("notification_failed", Stage.FANNED, hint="retry with: ship notify v1.2.0"),
    )

    with pytest.raises(typer.Exit):
        release_cmd.release(resume="", skip=[], config=None)

    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.bells == 1
    assert ctx.console.find("ship notify v1.2.0")
    assert not ctx.console.find("--resume")


def test_failure_before_push_needs_no_resume(monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.release_cmd as release_cmd

    ctx = _ctx()
    _patch(monkeypatch, ctx, _failure("verification_failed", Stage.PLANNED, hint="--- FAIL"))

    with pytest.raises(typer.Exit):
        release_cmd.release(resume="", skip=[], config=None)

    assert isinstance(ctx.console, MockConsole)
    assert not ctx.console.find("--resume")
    assert not ctx.console.find("hint:")
    assert ctx.console.bells == 0


def test_missing_gh_is_env_error(monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.release_cmd as release_cmd

    _patch(monkeypatch, _ctx(), _FakePipeline(result=Ok(ReleaseSession())))
    monkeypatch.setattr(
        release_cmd,
        "ensure_gh_available",
        lambda: Err(ReleaseError(kind="precondition", message="gh: missing")),
    )

    with pytest.raises(typer.Exit) as exc:
        release_cmd.release(resume="", skip=[], config=None)

    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)
