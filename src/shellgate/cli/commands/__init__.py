"""CLI command modules."""

from shellgate.cli.commands import check, config, execute, system

__all__ = ["check", "config", "execute", "system"]
