"""
shellgate check - Classify a command without running it.

Usage:
    shellgate check "git pull && rm -rf /"
    shellgate check "ls | kill -9 1" --json
"""

from typing import Annotated

import typer

from shellgate.cli.output import print_json, print_verdict
from shellgate.cli.runtime import build_executor


def check(
    command: Annotated[
        str,
        typer.Argument(help="Command to classify."),
    ],
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the verdict as JSON.",
        ),
    ] = False,
) -> None:
    """Show whether a command would be allowed, warned or blocked."""
    executor = build_executor(audit=False)
    verdict = executor.check_command(command)

    if json_output:
        print_json(
            {
                "command": command,
                "verdict": verdict.verdict.value,
                "allowed": verdict.allowed,
                "reason": verdict.reason,
                "matched_rule": verdict.matched_rule,
            }
        )
    else:
        print_verdict(command, verdict)

    if not verdict.allowed:
        raise typer.Exit(1)
