from __future__ import annotations

import typer

from ship import __version__
from ship.cli.commands.info_cmd import platforms, tags
from ship.cli.commands.notify_cmd import notify
from ship.cli.commands.release_cmd import release


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(release)
app.command()(tags)
app.command()(platforms)
app.command()(notify)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_print_version,
        is_eager=True,
    ),
) -> None:
    """Cut, build and publish a release from the source checkout under GOPATH."""


def main() -> None:
    app()
