"""Filesystem locations used by shellgate."""

from shellgate.storage.paths import (
    find_project_config,
    get_audit_log_path,
    get_global_config_path,
    get_shellgate_home,
)

__all__ = [
    "find_project_config",
    "get_audit_log_path",
    "get_global_config_path",
    "get_shellgate_home",
]
