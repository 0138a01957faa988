"""
Data types shared by the classifier, launcher and executor.
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TIMEOUT_MS = 30_000
MIN_TIMEOUT_MS = 1_000
MAX_TIMEOUT_MS = 300_000
DEFAULT_MAX_OUTPUT_CHARS = 50_000
DEFAULT_MAX_COMMAND_LENGTH = 10_000

# Exit code reported for commands that were never spawned
BLOCKED_EXIT_CODE = 1
# Exit code reported for timeouts and launch failures
FAILED_EXIT_CODE = -1


class Verdict(str, Enum):
    """Classification outcome for a command string."""

    ALLOW = "allow"
    WARN = "warn"
    BLOCK = "block"


@dataclass(frozen=True)
class CommandVerdict:
    """Result of classifying a command."""

    verdict: Verdict
    reason: str
    matched_rule: str | None = None

    @property
    def allowed(self) -> bool:
        return self.verdict is not Verdict.BLOCK

    @property
    def warning(self) -> bool:
        return self.verdict is Verdict.WARN

    @classmethod
    def allow(cls, reason: str = "Command validated", matched_rule: str | None = None) -> "CommandVerdict":
        return cls(Verdict.ALLOW, reason, matched_rule)

    @classmethod
    def warn(cls, reason: str) -> "CommandVerdict":
        return cls(Verdict.WARN, reason)

    @classmethod
    def block(cls, reason: str, matched_rule: str | None = None) -> "CommandVerdict":
        return cls(Verdict.BLOCK, reason, matched_rule)


def clamp_timeout(timeout_ms: int | None) -> int:
    """Clamp a timeout in milliseconds into the supported range."""
    if timeout_ms is None:
        return DEFAULT_TIMEOUT_MS
    return max(MIN_TIMEOUT_MS, min(int(timeout_ms), MAX_TIMEOUT_MS))


class ExecutionRequest(BaseModel):
    """A single command execution request from a caller."""

    model_config = ConfigDict(frozen=True)

    command: str
    working_dir: Path | None = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    environment: dict[str, str] = Field(default_factory=dict)
    stdin: str | None = None

    @field_validator("timeout_ms", mode="before")
    @classmethod
    def _clamp_timeout(cls, value: Any) -> int:
        return clamp_timeout(value)

    @field_validator("environment", mode="before")
    @classmethod
    def _stringify_environment(cls, value: Any) -> Any:
        # Scalar values such as ports arrive as numbers from tool calls
        if isinstance(value, Mapping):
            return {str(k): str(v) for k, v in value.items() if v is not None}
        return value


@dataclass
class ExecutionResult:
    """Result of a gateway execution."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    blocked: bool = False
    blocked_reason: str | None = None
    warning: str | None = None
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.timed_out and not self.blocked

    @property
    def output(self) -> str:
        """Stdout when present, otherwise stderr."""
        return self.stdout if self.stdout.strip() else self.stderr

    @property
    def combined_output(self) -> str:
        parts = []
        if self.stdout.strip():
            parts.append(self.stdout)
        if self.stderr.strip():
            parts.append(f"STDERR: {self.stderr}")
        return "\n".join(parts)

    @classmethod
    def blocked_by(cls, reason: str) -> "ExecutionResult":
        return cls(
            exit_code=BLOCKED_EXIT_CODE,
            stderr=f"Command blocked: {reason}",
            blocked=True,
            blocked_reason=reason,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["success"] = self.success
        return data
