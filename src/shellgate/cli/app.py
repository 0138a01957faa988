"""
Main Typer application for the shellgate CLI.

This module defines the root CLI application and registers all commands.
"""

import logging
from typing import Annotated

import typer

from shellgate import __version__
from shellgate.cli.commands import check, config, execute, system
from shellgate.cli.output import configure_logging, print_info
from shellgate.config import ConfigurationError, get_config

app = typer.Typer(
    name="shellgate",
    help="Policy gateway for shell commands requested by AI agents.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        print_info(f"shellgate version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
) -> None:
    """
    [bold blue]shellgate[/bold blue] - command execution gateway

    Classifies shell commands against allow/block tables and dangerous
    patterns, then runs approved ones with a timeout and an output cap.
    """
    if verbose:
        level: str | int = logging.DEBUG
    else:
        try:
            level = get_config().general.log_level
        except ConfigurationError:
            # Reported by the command that needs the configuration
            level = logging.WARNING
    configure_logging(level)


app.command("run")(execute.run)
app.command("seq")(execute.seq)
app.command("check")(check.check)
app.command("which")(system.which)
app.command("info")(system.info)
app.add_typer(config.app, name="config")


def main() -> None:
    """Entry point for the shellgate console script."""
    app()


if __name__ == "__main__":
    main()
