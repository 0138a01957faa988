"""
Pydantic configuration schema for shellgate.

This module defines all configuration models with validation.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from shellgate.security.models import (
    DEFAULT_MAX_COMMAND_LENGTH,
    DEFAULT_MAX_OUTPUT_CHARS,
    DEFAULT_TIMEOUT_MS,
    MAX_TIMEOUT_MS,
    MIN_TIMEOUT_MS,
)

# =============================================================================
# Security Configuration
# =============================================================================


class DangerousPatternConfig(BaseModel):
    """An additional dangerous-content regex."""

    pattern: str
    description: str | None = None


class AuditLogConfig(BaseModel):
    """Audit logging configuration."""

    enable: bool = True
    path: str | None = None  # defaults to $SHELLGATE_HOME/audit.jsonl
    rotation: Literal["daily", "weekly", "size"] = "daily"
    max_size_mb: int = 100
    retention_days: int = Field(default=90, ge=1, le=365)
    compress_old: bool = True
    include_output: bool = False
    hash_commands: bool = False
    buffer_size: int = 100
    flush_interval_seconds: int = 5


class SecurityConfig(BaseModel):
    """Command policy and execution limits."""

    model_config = ConfigDict(extra="allow")

    # Extensions to the built-in tables
    allowed_commands: list[str] = Field(default_factory=list)
    blocked_commands: list[str] = Field(default_factory=list)
    dangerous_patterns: list[DangerousPatternConfig] = Field(default_factory=list)

    unknown_command_policy: Literal["warn", "block"] = Field(
        default="warn",
        description="Verdict for commands that are neither allowed nor dangerous",
    )

    max_command_length: int = Field(default=DEFAULT_MAX_COMMAND_LENGTH, ge=1)
    default_timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS, ge=MIN_TIMEOUT_MS, le=MAX_TIMEOUT_MS
    )
    max_output_chars: int = Field(default=DEFAULT_MAX_OUTPUT_CHARS, ge=1)
    kill_grace_ms: int = Field(default=2_000, ge=0, le=30_000)
    shell: str | None = "/bin/sh"
    default_working_dir: str | None = None

    audit_log: AuditLogConfig = Field(default_factory=AuditLogConfig)


# =============================================================================
# General Configuration
# =============================================================================


class GeneralConfig(BaseModel):
    """General settings configuration."""

    model_config = ConfigDict(extra="allow")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"


# =============================================================================
# Root Configuration Model
# =============================================================================


class Config(BaseModel):
    """
    Root configuration model for shellgate.

    Configuration can be loaded from YAML files and environment
    variables, merged in order of priority.
    """

    model_config = ConfigDict(extra="allow")

    security: SecurityConfig = Field(default_factory=SecurityConfig)
    general: GeneralConfig = Field(default_factory=GeneralConfig)

    def is_audit_enabled(self) -> bool:
        """Check if the audit trail is enabled."""
        return self.security.audit_log.enable
