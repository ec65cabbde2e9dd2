from __future__ import annotations

from pathlib import Path

import typer

from ship.cli.commands._helpers import exit_on_error
from ship.cli.commands.release_cmd import release_platforms
from ship.cli.context import build_context
from ship.core.errors import ErrorCode
from ship.core.result import Err
from ship.git.repository import Repository
from ship.output.console import Style
from ship.services.release.tags import current_tag, is_prerelease, suggest_next


def tags(
    config: Path | None = typer.Option(None, "--config", help="TOML file with a [release] table"),
) -> None:
    """Show the current tag and the suggested next ones."""
    ctx = build_context(config)
    repo = Repository(ctx.config.repo_path)
    if not repo.exists():
        ctx.console.error(f"not a git repository: {repo.path}")
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    listed = repo.tags()
    exit_on_error(listed, ctx, ErrorCode.IO_ERROR)
    if isinstance(listed, Err):
        return

    current = current_tag(listed.value)
    label = " (pre-release)" if is_prerelease(current) else ""
    ctx.console.print(f"current: {current}{label}")
    for tag in suggest_next(current):
        ctx.console.print(f"  next: {tag}", Style.DIM)


def platforms(
    skip: list[str] = typer.Option(
        [], "--skip", help="Extra platform to leave out (os, os/arch or os/arm/vN)."
    ),
    config: Path | None = typer.Option(None, "--config", help="TOML file with a [release] table"),
) -> None:
    """List the platforms a release would build."""
    ctx = build_context(config)
    matrix = release_platforms(ctx, skip)
    for platform in matrix:
        ctx.console.print(str(platform))
    ctx.console.print(f"{len(matrix)} platforms", Style.DIM)
