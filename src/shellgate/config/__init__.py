"""
Configuration management for shellgate.

Configuration is merged from defaults, the global config file, the
nearest project config and SHELLGATE_* environment variables.
"""

from shellgate.config.loader import (
    ConfigurationError,
    clear_config_cache,
    get_config,
    get_config_sources,
    load_config,
)
from shellgate.config.schema import AuditLogConfig, Config, SecurityConfig

__all__ = [
    "AuditLogConfig",
    "Config",
    "ConfigurationError",
    "SecurityConfig",
    "clear_config_cache",
    "get_config",
    "get_config_sources",
    "load_config",
]
