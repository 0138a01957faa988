"""
Path utilities for shellgate.

Provides consistent path resolution for configuration and audit files.
"""

import os
from pathlib import Path

PROJECT_DIR_NAME = ".shellgate"
PROJECT_CONFIG_NAME = "project.yaml"


def get_shellgate_home() -> Path:
    """
    Get the shellgate home directory.

    Resolution order:
    1. SHELLGATE_HOME environment variable
    2. Default: ~/.shellgate

    Returns:
        Path to the shellgate home directory.
    """
    env_home = os.environ.get("SHELLGATE_HOME")
    if env_home:
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".shellgate"


def get_global_config_path() -> Path:
    """Path to ~/.shellgate/config.yaml"""
    return get_shellgate_home() / "config.yaml"


def get_audit_log_path() -> Path:
    """Path to ~/.shellgate/audit.jsonl"""
    return get_shellgate_home() / "audit.jsonl"


def find_project_config(start_path: Path | None = None) -> Path | None:
    """
    Find the project configuration file by traversing up the directory tree.

    Looks for .shellgate/project.yaml starting from the given path
    (or current directory) and moving up to the root.

    Args:
        start_path: Starting directory to search from. Defaults to cwd.

    Returns:
        Path to the project config if found, None otherwise.
    """
    current = Path.cwd() if start_path is None else Path(start_path).resolve()

    for directory in (current, *current.parents):
        project_config = directory / PROJECT_DIR_NAME / PROJECT_CONFIG_NAME
        if project_config.exists():
            return project_config

    return None
