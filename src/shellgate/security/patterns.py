"""
Static command tables used by the classifier.

The tables are immutable. A PatternLibrary is built once (optionally
extended from configuration) and shared read-only between calls.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shellgate.config.schema import SecurityConfig


@dataclass(frozen=True)
class DangerousPattern:
    """A compiled regex with a human-readable description."""

    regex: re.Pattern[str]
    description: str

    @classmethod
    def compile(cls, pattern: str, description: str, flags: int = re.IGNORECASE) -> "DangerousPattern":
        return cls(re.compile(pattern, flags), description)

    @property
    def pattern(self) -> str:
        return self.regex.pattern

    def search(self, command: str) -> bool:
        return self.regex.search(command) is not None


ALLOWED_COMMANDS: frozenset[str] = frozenset(
    {
        # Inspection
        "ls", "pwd", "cat", "head", "tail", "grep", "find", "wc",
        "echo", "date", "whoami", "env", "which", "file", "stat",
        # JavaScript
        "git", "npm", "npx", "node", "yarn", "pnpm",
        # Python
        "python", "python3", "pip", "pip3",
        # JVM
        "java", "javac", "gradle", "gradlew", "./gradlew",
        "kotlin", "kotlinc",
        # Native toolchains
        "cargo", "rustc",
        "go", "gofmt",
        "make", "cmake",
        # Archives
        "tar", "gzip", "gunzip", "zip", "unzip",
        # Network fetch
        "curl", "wget",
        # Text processing
        "diff", "patch", "sort", "uniq", "cut", "tr", "sed", "awk",
        # File management
        "mkdir", "touch", "cp", "mv", "ln",
        "chmod", "test", "[",
        "true", "false", "exit",
    }
)

BLOCKED_COMMANDS: frozenset[str] = frozenset(
    {
        # Deletion and formatting
        "rm", "rmdir", "del", "deltree",
        "format", "fdisk", "mkfs",
        # Privilege escalation
        "sudo", "su",
        # Power state and init
        "shutdown", "reboot", "poweroff", "halt", "init",
        # Process termination
        "kill", "killall", "pkill",
        # User management
        "passwd", "useradd", "userdel", "usermod",
        # Mounts and roots
        "chroot", "mount", "umount",
        # Firewall
        "iptables", "ip6tables", "nft",
        # Listeners and remote shells
        "nc", "netcat", "ncat",
        "telnet", "ssh", "scp", "sftp",
        # Schedulers
        "crontab", "at",
    }
)

DANGEROUS_PATTERNS: tuple[DangerousPattern, ...] = (
    DangerousPattern.compile(r"\brm\s+-[rf]+", "recursive or forced delete"),
    DangerousPattern.compile(r"\brm\s+.*\*", "wildcard delete"),
    DangerousPattern.compile(r">\s*/dev/", "redirection into a device file"),
    DangerousPattern.compile(r":\s*\(\s*\)\s*\{", "fork bomb"),
    DangerousPattern.compile(r":.*:\(\)\s*\{", "fork bomb"),
    DangerousPattern.compile(r"\bsudo\b", "privilege escalation via sudo"),
    DangerousPattern.compile(r"\bsu\b\s+-", "privilege escalation via su"),
    DangerousPattern.compile(r"\bdd\s+if=", "raw disk write via dd"),
    DangerousPattern.compile(r"\bmkfs\b", "filesystem formatting"),
    DangerousPattern.compile(r"\bfdisk\b", "disk partitioning"),
    DangerousPattern.compile(r"\bkill\s+-9", "forced process termination"),
    DangerousPattern.compile(r"\bkillall\b", "mass process termination"),
    DangerousPattern.compile(r"\bshutdown\b", "system shutdown"),
    DangerousPattern.compile(r"\breboot\b", "system reboot"),
    DangerousPattern.compile(r"\bpoweroff\b", "system power off"),
    DangerousPattern.compile(r"\bhalt\b", "system halt"),
    DangerousPattern.compile(r"[|&;]\s*rm\b", "delete chained after another command"),
    DangerousPattern.compile(r"\$\(.*\brm\b.*\)", "delete inside command substitution"),
    DangerousPattern.compile(r"`.*\brm\b.*`", "delete inside backtick substitution"),
    DangerousPattern.compile(r"\bchown\s+-R\s+.*\s+/", "recursive ownership change from root"),
    DangerousPattern.compile(r"\bchmod\s+-R\s+[0-7]+\s+/", "recursive permission change from root"),
)

# Command shapes for common developer tools. Matched against the whole
# stripped command when the base command is not in the allowed set.
SAFE_COMMAND_SHAPES: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"^echo\b",
        r"^test\b",
        r"^\[.*\]$",
        r"^git\b",
        r"^npm\b",
        r"^yarn\b",
        r"^node\b",
        r"^python",
        r"^java\b",
        r"^kotlin\b",
        r"^gradle",
    )
)


@dataclass(frozen=True)
class PatternLibrary:
    """Immutable set of command tables consulted by the classifier."""

    allowed_commands: frozenset[str] = ALLOWED_COMMANDS
    blocked_commands: frozenset[str] = BLOCKED_COMMANDS
    dangerous_patterns: tuple[DangerousPattern, ...] = DANGEROUS_PATTERNS
    safe_shapes: tuple[re.Pattern[str], ...] = SAFE_COMMAND_SHAPES

    def extend(
        self,
        allowed: Iterable[str] = (),
        blocked: Iterable[str] = (),
        dangerous: Iterable[DangerousPattern] = (),
    ) -> "PatternLibrary":
        """Return a new library with additional entries."""
        return PatternLibrary(
            allowed_commands=self.allowed_commands | frozenset(allowed),
            blocked_commands=self.blocked_commands | frozenset(blocked),
            dangerous_patterns=self.dangerous_patterns + tuple(dangerous),
            safe_shapes=self.safe_shapes,
        )

    @classmethod
    def from_config(cls, config: "SecurityConfig") -> "PatternLibrary":
        """
        Build the library from the built-in tables plus configured extensions.

        Raises:
            re.error: If a configured dangerous pattern is not a valid regex.
        """
        return cls().extend(
            allowed=config.allowed_commands,
            blocked=config.blocked_commands,
            dangerous=[
                DangerousPattern.compile(p.pattern, p.description or p.pattern)
                for p in config.dangerous_patterns
            ],
        )


DEFAULT_LIBRARY = PatternLibrary()
