from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from ship.cli.commands._helpers import release_error_code
from ship.cli.context import CLIContext, build_context
from ship.core.errors import ErrorCode
from ship.core.result import Err, Ok, Result
from ship.git.repository import Repository
from ship.output.console import Style
from ship.platform.http import RealHttpClient
from ship.services.release.builder import go_build_env_opener
from ship.services.release.errors import ReleaseError
from ship.services.release.hosting import GhReleaseHost, ensure_gh_available
from ship.services.release.model import Stage
from ship.services.release.notify import DeployNotifier
from ship.services.release.pipeline import ReleasePipeline
from ship.services.release.platforms import Platform, parse_platform_pattern, supported_platforms
from ship.services.release.resume import ResumePoint, parse_resume
from ship.services.release.timeouts import NOTIFY_TIMEOUT_SECONDS


def _exit(err: str, *, code: ErrorCode, hint: str | None = None) -> NoReturn:
    typer.echo(f"error: {err}", err=True)
    if hint:
        typer.echo(f"hint: {hint}", err=True)
    raise typer.Exit(code=int(code))


def parse_skip(patterns: list[str]) -> Result[tuple[Platform, ...], ReleaseError]:
    out: list[Platform] = []
    for text in patterns:
        parsed = parse_platform_pattern(text)
        if isinstance(parsed, Err):
            return Err(ReleaseError(kind="invalid_config", message=parsed.error))
        out.append(parsed.value)
    return Ok(tuple(out))


def release_platforms(ctx: CLIContext, skip: list[str]) -> tuple[Platform, ...]:
    """Matrix for this run: defaults, then config ``skip``, then ``--skip``."""
    parsed = parse_skip([*ctx.config.skip, *skip])
    if isinstance(parsed, Err):
        _exit(parsed.error.message, code=ErrorCode.ENV_ERROR)
    return supported_platforms(parsed.value)


def build_pipeline(ctx: CLIContext, platforms: tuple[Platform, ...]) -> ReleasePipeline:
    config = ctx.config
    repo = Repository(config.repo_path)
    return ReleasePipeline(
        config=config,
        repo=repo,
        host=GhReleaseHost(repo_slug=config.repo_slug, token=config.github_token, cwd=repo.path),
        notifier=DeployNotifier.from_config(config, RealHttpClient(timeout=NOTIFY_TIMEOUT_SECONDS)),
        open_build_env=go_build_env_opener(repo=repo, config=config),
        platforms=platforms,
        prompter=ctx.prompter,
        console=ctx.console,
    )


def release(
    resume: str = typer.Option(
        "",
        "--resume",
        help="Resume a deploy that failed after its tag was pushed (valid: publish).",
    ),
    skip: list[str] = typer.Option(
        [], "--skip", help="Extra platform to leave out (os, os/arch or os/arm/vN)."
    ),
    config: Path | None = typer.Option(None, "--config", help="TOML file with a [release] table"),
) -> None:
    """Tag, publish, build and upload a release, then notify the build server."""
    point = parse_resume(resume)
    if isinstance(point, Err):
        _exit(point.error.message, code=release_error_code(point.error.kind), hint=point.error.hint)

    ctx = build_context(config)
    platforms = release_platforms(ctx, skip)

    gh = ensure_gh_available()
    if isinstance(gh, Err):
        _exit(gh.error.message, code=ErrorCode.ENV_ERROR, hint=gh.error.hint)

    pipeline = build_pipeline(ctx, platforms)
    result = pipeline.run(resume=point.value)
    if isinstance(result, Err):
        _fail(ctx, pipeline, result.error)

    session = result.value
    if session.report is not None and session.report.failed:
        names = ", ".join(str(o.platform) for o in session.report.failed)
        ctx.console.warning(f"released without: {names}")
    ctx.console.success(f"{session.tag} release successful.")


def _fail(ctx: CLIContext, pipeline: ReleasePipeline, error: ReleaseError) -> NoReturn:
    ctx.console.error(error.message)
    if error.hint and error.kind != "verification_failed":
        ctx.console.print(f"hint: {error.hint}", Style.DIM)

    session = pipeline.session
    if session.fan_out_started:
        ctx.console.bell()

    # Tag is on the remote but no release exists yet: resuming is safe.
    if session.failed_at == Stage.PUSHED:
        ctx.console.print(
            f"The tag was pushed. Fix the problem, then run: ship release --resume {ResumePoint.PUBLISH}",
            Style.WARNING,
        )
    raise typer.Exit(code=int(release_error_code(error.kind)))
