"""
Audit logging for gateway decisions.

This module provides JSON Lines based audit logging for every command
the gateway blocks, runs, times out or fails to launch.
"""

import gzip
import hashlib
import json
import logging
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any

from shellgate.storage.paths import get_audit_log_path

logger = logging.getLogger(__name__)


class AuditEventType(str, Enum):
    """Types of audit events."""

    COMMAND_START = "command_start"
    COMMAND_COMPLETE = "command_complete"
    COMMAND_BLOCKED = "command_blocked"
    COMMAND_WARNING = "command_warning"
    COMMAND_TIMEOUT = "command_timeout"
    COMMAND_ERROR = "command_error"


class AuditLogger:
    """
    JSON Lines based audit logger.

    Logs events to a JSON Lines file with rotation and compression support.
    """

    def __init__(
        self,
        log_path: str | Path,
        enable: bool = True,
        rotation: str = "daily",
        max_size_mb: int = 100,
        retention_days: int = 90,
        compress_old: bool = True,
        include_output: bool = False,
        hash_commands: bool = False,
        buffer_size: int = 100,
        flush_interval_seconds: int = 5,
    ) -> None:
        """
        Initialize audit logger.

        Args:
            log_path: Path to audit log file
            enable: Whether logging is enabled
            rotation: Rotation strategy (daily, weekly, size)
            max_size_mb: Maximum log file size in MB before rotation
            retention_days: Days to keep old logs
            compress_old: Whether to compress rotated logs
            include_output: Whether to log stdout/stderr of completed commands
            hash_commands: Whether to log SHA-256 hashes instead of commands
            buffer_size: Number of events to buffer before flush
            flush_interval_seconds: Seconds between forced flushes
        """
        self.log_path = Path(log_path).expanduser()
        self.enable = enable
        self.rotation = rotation
        self.max_size_mb = max_size_mb
        self.retention_days = retention_days
        self.compress_old = compress_old
        self.include_output = include_output
        self.hash_commands = hash_commands
        self.buffer_size = buffer_size
        self.flush_interval_seconds = flush_interval_seconds

        self._buffer: list[dict[str, Any]] = []
        self._last_flush = datetime.now()

        if self.enable:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_config(cls, config: Any) -> "AuditLogger":
        """
        Create audit logger from configuration.

        Args:
            config: AuditLogConfig instance

        Returns:
            Configured AuditLogger
        """
        return cls(
            log_path=config.path or get_audit_log_path(),
            enable=config.enable,
            rotation=config.rotation,
            max_size_mb=config.max_size_mb,
            retention_days=config.retention_days,
            compress_old=config.compress_old,
            include_output=config.include_output,
            hash_commands=config.hash_commands,
            buffer_size=config.buffer_size,
            flush_interval_seconds=config.flush_interval_seconds,
        )

    def _command_field(self, command: str) -> str:
        if self.hash_commands:
            return hashlib.sha256(command.encode()).hexdigest()
        return command

    def _create_event(
        self, event_type: AuditEventType, data: dict[str, Any]
    ) -> dict[str, Any]:
        return {
            "timestamp": datetime.now().isoformat(),
            "event_type": event_type.value,
            **data,
        }

    def _write_event(self, event: dict[str, Any]) -> None:
        if not self.enable:
            return

        self._buffer.append(event)

        now = datetime.now()
        should_flush = (
            len(self._buffer) >= self.buffer_size
            or (now - self._last_flush).seconds >= self.flush_interval_seconds
        )

        if should_flush:
            self.flush()

    def flush(self) -> None:
        """Flush buffered events to disk."""
        if not self.enable or not self._buffer:
            return

        try:
            self._rotate_if_needed()
            with self.log_path.open("a", encoding="utf-8") as f:
                for event in self._buffer:
                    f.write(json.dumps(event) + "\n")
        except OSError:
            # Audit failures must not abort the command being audited
            logger.error(
                f"Failed to write {len(self._buffer)} audit event(s) to {self.log_path}",
                exc_info=True,
            )

        self._buffer.clear()
        self._last_flush = datetime.now()

    def _rotate_if_needed(self) -> None:
        """Rotate log file if needed based on configuration."""
        if not self.log_path.exists():
            return

        should_rotate = False

        if self.rotation == "size":
            size_mb = self.log_path.stat().st_size / (1024 * 1024)
            if size_mb >= self.max_size_mb:
                should_rotate = True

        elif self.rotation == "daily":
            mtime = datetime.fromtimestamp(self.log_path.stat().st_mtime)
            if mtime.date() < datetime.now().date():
                should_rotate = True

        elif self.rotation == "weekly":
            mtime = datetime.fromtimestamp(self.log_path.stat().st_mtime)
            if (datetime.now() - mtime).days >= 7:
                should_rotate = True

        if should_rotate:
            self._rotate_log()

    def _rotate_log(self) -> None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        rotated_name = f"{self.log_path.stem}_{timestamp}{self.log_path.suffix}"
        rotated_path = self.log_path.parent / rotated_name

        self.log_path.rename(rotated_path)

        if self.compress_old:
            self._compress_log(rotated_path)

        self._clean_old_logs()

    def _compress_log(self, log_path: Path) -> None:
        compressed_path = log_path.with_suffix(log_path.suffix + ".gz")

        with log_path.open("rb") as f_in, gzip.open(compressed_path, "wb") as f_out:
            f_out.write(f_in.read())

        log_path.unlink()

    def _clean_old_logs(self) -> None:
        """Remove logs older than retention period."""
        cutoff = datetime.now() - timedelta(days=self.retention_days)

        pattern = f"{self.log_path.stem}_*{self.log_path.suffix}*"
        for old_log in self.log_path.parent.glob(pattern):
            mtime = datetime.fromtimestamp(old_log.stat().st_mtime)
            if mtime < cutoff:
                old_log.unlink()

    def log_command_start(self, command: str, working_dir: str | None = None) -> None:
        """Log the start of a command execution."""
        data: dict[str, Any] = {"command": self._command_field(command)}
        if working_dir:
            data["working_dir"] = working_dir
        self._write_event(self._create_event(AuditEventType.COMMAND_START, data))

    def log_command_complete(
        self,
        command: str,
        exit_code: int,
        stdout: str = "",
        stderr: str = "",
        duration_ms: int = 0,
    ) -> None:
        """Log a completed command execution."""
        data: dict[str, Any] = {
            "command": self._command_field(command),
            "exit_code": exit_code,
            "duration_ms": duration_ms,
        }

        if self.include_output:
            data["stdout"] = stdout
            data["stderr"] = stderr

        self._write_event(self._create_event(AuditEventType.COMMAND_COMPLETE, data))

    def log_command_blocked(self, command: str, reason: str) -> None:
        """Log a blocked command."""
        self._write_event(
            self._create_event(
                AuditEventType.COMMAND_BLOCKED,
                {"command": self._command_field(command), "reason": reason},
            )
        )

    def log_command_warning(self, command: str, reason: str) -> None:
        """Log an unrecognized command that was allowed to run."""
        self._write_event(
            self._create_event(
                AuditEventType.COMMAND_WARNING,
                {"command": self._command_field(command), "reason": reason},
            )
        )

    def log_command_timeout(self, command: str, timeout_ms: int) -> None:
        """Log a command killed after exceeding its time budget."""
        self._write_event(
            self._create_event(
                AuditEventType.COMMAND_TIMEOUT,
                {"command": self._command_field(command), "timeout_ms": timeout_ms},
            )
        )

    def log_command_error(self, command: str, error: str) -> None:
        """Log a command execution error."""
        self._write_event(
            self._create_event(
                AuditEventType.COMMAND_ERROR,
                {"command": self._command_field(command), "error": error},
            )
        )

    def close(self) -> None:
        """Close the audit logger and flush remaining events."""
        self.flush()


_audit_logger: AuditLogger | None = None


def get_audit_logger(config: Any | None = None) -> AuditLogger:
    """
    Get or create the global audit logger instance.

    Args:
        config: Optional AuditLogConfig for initialization

    Returns:
        AuditLogger instance
    """
    global _audit_logger

    if _audit_logger is None:
        if config is None:
            # Import here to avoid circular dependency
            from shellgate.config.loader import get_config

            config = get_config().security.audit_log

        _audit_logger = AuditLogger.from_config(config)

    return _audit_logger


def reset_audit_logger() -> None:
    """Flush and drop the global audit logger."""
    global _audit_logger

    if _audit_logger is not None:
        _audit_logger.close()
    _audit_logger = None
