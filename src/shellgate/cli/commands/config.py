"""
shellgate config - Configuration inspection commands.

Usage:
    shellgate config show
    shellgate config show security
    shellgate config show --sources
    shellgate config path
"""

from typing import Annotated

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from shellgate.cli.output import print_json
from shellgate.cli.runtime import load_config_or_exit
from shellgate.config import get_config_sources
from shellgate.config.merger import get_nested_value
from shellgate.storage.paths import get_audit_log_path, get_global_config_path, get_shellgate_home

app = typer.Typer(
    name="config",
    help="Configuration inspection.",
)

console = Console()


@app.command()
def show(
    section: Annotated[
        str | None,
        typer.Argument(
            help="Config section to show (e.g., 'security', 'security.audit_log').",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
    sources: Annotated[
        bool,
        typer.Option(
            "--sources",
            help="Show configuration source files.",
        ),
    ] = False,
) -> None:
    """Show the effective configuration."""
    if sources:
        table = Table(title="Configuration Sources")
        table.add_column("Source", style="cyan")
        table.add_column("Path", style="green")
        table.add_column("Status")

        for source_name, source_path in get_config_sources().items():
            if source_path:
                table.add_row(source_name, str(source_path), "[green]loaded[/green]")
            else:
                table.add_row(source_name, "-", "[dim]not found[/dim]")

        console.print(table)
        return

    config_dict = load_config_or_exit().model_dump(mode="json")

    if section:
        value = get_nested_value(config_dict, section)
        if value is None:
            console.print(f"[red]Section '{section}' not found in configuration.[/red]")
            raise typer.Exit(1)
        config_dict = value

    if json_output:
        print_json(config_dict)
        return

    output = yaml.dump(config_dict, default_flow_style=False, sort_keys=False, allow_unicode=True)
    console.print(Syntax(output, "yaml", theme="monokai"))


@app.command()
def path() -> None:
    """Show where shellgate reads and writes its files."""
    table = Table(title="Paths")
    table.add_column("Name", style="cyan")
    table.add_column("Path", style="green")

    table.add_row("home", str(get_shellgate_home()))
    table.add_row("global config", str(get_global_config_path()))
    table.add_row("audit log", str(get_audit_log_path()))

    console.print(table)
