from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from ship.cli.selector import TerminalPrompter
from ship.core.config import ReleaseConfig, load_config
from ship.core.errors import ErrorCode
from ship.core.result import Err
from ship.output.console import ConsoleProtocol, RichConsole
from ship.output.prompt import PromptProtocol


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: ReleaseConfig
    console: ConsoleProtocol
    prompter: PromptProtocol


def build_context(config_path: Path | None = None) -> CLIContext:
    result = load_config(os.environ, config_path)
    if isinstance(result, Err):
        typer.echo(f"error: {result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(
        config=result.value,
        console=RichConsole(),
        prompter=TerminalPrompter(),
    )
