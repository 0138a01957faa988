"""
shellgate run / seq - Execute commands through the gateway.

Usage:
    shellgate run "git status"
    shellgate run "make test" --cwd ./project --timeout 120000
    shellgate run "cat" --stdin "hello"
    shellgate seq "npm ci" "npm test" --continue-on-error
"""

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from shellgate.audit.logger import reset_audit_logger
from shellgate.cli.output import console, print_error, print_json, print_result
from shellgate.cli.runtime import build_executor, exit_code_for


def _parse_env(pairs: list[str]) -> dict[str, str]:
    environment: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            print_error(f"Invalid --env value (expected KEY=VALUE): {pair}")
            raise typer.Exit(2)
        environment[key] = value
    return environment


def run(
    command: Annotated[
        str,
        typer.Argument(help="Command to execute."),
    ],
    cwd: Annotated[
        Path | None,
        typer.Option(
            "--cwd",
            "-C",
            help="Working directory.",
        ),
    ] = None,
    timeout: Annotated[
        int | None,
        typer.Option(
            "--timeout",
            "-t",
            help="Timeout in milliseconds (1000-300000).",
        ),
    ] = None,
    env: Annotated[
        list[str] | None,
        typer.Option(
            "--env",
            "-e",
            help="Environment override as KEY=VALUE. Repeatable.",
        ),
    ] = None,
    stdin: Annotated[
        str | None,
        typer.Option(
            "--stdin",
            help="Text piped to the command's standard input.",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the result as JSON.",
        ),
    ] = False,
) -> None:
    """Execute a single command."""
    environment = _parse_env(env or [])
    executor = build_executor()

    try:
        result = asyncio.run(
            executor.execute(
                command,
                working_dir=cwd,
                timeout_ms=timeout,
                environment=environment,
                stdin=stdin,
            )
        )
    finally:
        reset_audit_logger()

    if json_output:
        print_json(result.to_dict())
    else:
        print_result(result)

    raise typer.Exit(exit_code_for(result))


def seq(
    commands: Annotated[
        list[str],
        typer.Argument(help="Commands to execute in order."),
    ],
    cwd: Annotated[
        Path | None,
        typer.Option(
            "--cwd",
            "-C",
            help="Working directory for every command.",
        ),
    ] = None,
    timeout: Annotated[
        int | None,
        typer.Option(
            "--timeout",
            "-t",
            help="Per-command timeout in milliseconds.",
        ),
    ] = None,
    continue_on_error: Annotated[
        bool,
        typer.Option(
            "--continue-on-error",
            help="Keep going after a failed or blocked command.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the results as JSON.",
        ),
    ] = False,
) -> None:
    """Execute commands in sequence, stopping at the first failure."""
    executor = build_executor()

    try:
        results = asyncio.run(
            executor.execute_sequence(
                commands,
                working_dir=cwd,
                timeout_ms=timeout,
                stop_on_error=not continue_on_error,
            )
        )
    finally:
        reset_audit_logger()

    if json_output:
        print_json([r.to_dict() for r in results])
    else:
        for command, result in zip(commands, results):
            console.print(f"[bold cyan]$ {escape(command)}[/bold cyan]", highlight=False)
            print_result(result)
        skipped = len(commands) - len(results)
        if skipped:
            console.print(f"[dim]{skipped} command(s) not run[/dim]")

    failed = [r for r in results if not r.success]
    raise typer.Exit(exit_code_for(failed[0]) if failed else 0)
