"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import typer

from ship.core.errors import ErrorCode
from ship.core.result import Err, Result
from ship.output.console import Style

if TYPE_CHECKING:
    from ship.cli.context import CLIContext


T = TypeVar("T")
E = TypeVar("E")

_EXIT_CODES: dict[str, ErrorCode] = {
    "config_missing": ErrorCode.ENV_ERROR,
    "invalid_config": ErrorCode.ENV_ERROR,
    "invalid_resume": ErrorCode.ENV_ERROR,
    "dirty_tree": ErrorCode.USER_ERROR,
    "precondition": ErrorCode.USER_ERROR,
    "user_aborted": ErrorCode.USER_ERROR,
    "verification_failed": ErrorCode.BUILD_ERROR,
    "publish_failed": ErrorCode.NETWORK_ERROR,
    "platform_failed": ErrorCode.NETWORK_ERROR,
    "notification_failed": ErrorCode.NETWORK_ERROR,
}


def release_error_code(kind: str) -> ErrorCode:
    return _EXIT_CODES.get(kind, ErrorCode.USER_ERROR)


def exit_on_error[T, E](
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.USER_ERROR,
) -> None:
    """Exit with error if result is Err, otherwise return.

    Expects error objects to have 'message' and optional 'hint' attributes.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(error_code))
