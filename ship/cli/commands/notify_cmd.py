from __future__ import annotations

from pathlib import Path

import typer

from ship.cli.commands._helpers import exit_on_error, release_error_code
from ship.cli.context import build_context
from ship.platform.http import RealHttpClient
from ship.services.release.notify import DeployNotifier
from ship.services.release.preflight import check_environment
from ship.services.release.tags import is_prerelease
from ship.services.release.timeouts import NOTIFY_TIMEOUT_SECONDS


def notify(
    tag: str = typer.Argument(..., help="Released tag to announce (e.g. v1.2.3)"),
    config: Path | None = typer.Option(None, "--config", help="TOML file with a [release] table"),
) -> None:
    """Send only the build-server deploy request for an existing release."""
    ctx = build_context(config)

    exit_on_error(check_environment(ctx.config), ctx, release_error_code("config_missing"))

    if is_prerelease(tag):
        ctx.console.warning(f"{tag} is a pre-release; the build server is normally not told")

    notifier = DeployNotifier.from_config(ctx.config, RealHttpClient(timeout=NOTIFY_TIMEOUT_SECONDS))
    ctx.console.print(f"POST {notifier.url}")
    sent = notifier.notify(tag)
    exit_on_error(sent, ctx, release_error_code("notification_failed"))
    ctx.console.success("Deploy request successfully sent to build server")
