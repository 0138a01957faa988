"""
Shared setup for CLI commands.
"""

import typer

from shellgate.audit.logger import get_audit_logger
from shellgate.cli.output import print_error
from shellgate.config import Config, ConfigurationError, get_config
from shellgate.security.executor import ShellExecutor
from shellgate.security.models import ExecutionResult

TIMEOUT_EXIT_CODE = 124


def load_config_or_exit() -> Config:
    """Load configuration, exiting with status 2 when it is invalid."""
    try:
        return get_config()
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(2)


def build_executor(audit: bool = True) -> ShellExecutor:
    """Create an executor from the loaded configuration."""
    config = load_config_or_exit()
    audit_logger = None
    if audit and config.is_audit_enabled():
        audit_logger = get_audit_logger(config.security.audit_log)
    return ShellExecutor.from_config(config, audit_logger=audit_logger)


def exit_code_for(result: ExecutionResult) -> int:
    """Map a result onto a process exit status."""
    if result.timed_out:
        return TIMEOUT_EXIT_CODE
    if result.blocked or result.exit_code < 0:
        return 1
    return result.exit_code
