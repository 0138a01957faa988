"""
Output formatting utilities for the CLI.

Provides consistent output formatting across all CLI commands.
"""

import json
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from shellgate.security.models import CommandVerdict, ExecutionResult, Verdict

# Global console instances
console = Console()
err_console = Console(stderr=True)

_VERDICT_STYLES = {
    Verdict.ALLOW: "green",
    Verdict.WARN: "yellow",
    Verdict.BLOCK: "red",
}


def configure_logging(level: str | int = logging.WARNING) -> None:
    """Route log records through Rich on stderr."""
    handler = RichHandler(
        console=err_console,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
    )
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]i[/blue] {message}")


def print_json(data: Any) -> None:
    """Print data as indented JSON without markup processing."""
    console.print_json(json.dumps(data, default=str))


def print_table(
    headers: list[str],
    rows: list[list[Any]],
    title: str | None = None,
) -> None:
    """Print a table."""
    table = Table(title=title)

    for header in headers:
        table.add_column(header)

    for row in rows:
        table.add_row(*[str(cell) for cell in row])

    console.print(table)


def print_verdict(command: str, verdict: CommandVerdict) -> None:
    """Print a classification verdict."""
    style = _VERDICT_STYLES[verdict.verdict]
    body = f"[{style}]{verdict.verdict.value.upper()}[/{style}]  {escape(verdict.reason)}"
    if verdict.matched_rule:
        body += f"\n[dim]rule: {escape(verdict.matched_rule)}[/dim]"
    console.print(Panel(body, title=escape(command[:60]), title_align="left"))


def print_result(result: ExecutionResult) -> None:
    """Print an execution result: warnings, stdout, then stderr."""
    if result.warning:
        print_warning(escape(result.warning))
    if result.blocked:
        print_error(f"Blocked: {escape(result.blocked_reason or '')}")
        return
    if result.stdout:
        console.out(result.stdout, highlight=False)
    if result.stderr:
        err_console.out(result.stderr, style="red", highlight=False)
    if result.timed_out:
        print_error("Timed out")
    elif result.exit_code != 0:
        console.print(f"[dim]exit code {result.exit_code}[/dim]")
