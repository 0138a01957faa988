"""
shellgate which / info - Inspect the execution environment.

Usage:
    shellgate which git
    shellgate info --json
"""

import asyncio
from typing import Annotated

import typer

from shellgate.cli.output import print_error, print_json, print_success, print_table
from shellgate.cli.runtime import build_executor


def which(
    name: Annotated[
        str,
        typer.Argument(help="Program name to look up on PATH."),
    ],
) -> None:
    """Check whether a program is available."""
    executor = build_executor(audit=False)

    if asyncio.run(executor.is_command_available(name)):
        print_success(f"{name} is available")
        return

    print_error(f"{name} not found")
    raise typer.Exit(1)


def info(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show operating system, user and shell details."""
    executor = build_executor(audit=False)
    system_info = asyncio.run(executor.get_system_info())

    if json_output:
        print_json(system_info)
        return

    print_table(
        ["Key", "Value"],
        [[key, value] for key, value in system_info.items()],
        title="System Information",
    )
