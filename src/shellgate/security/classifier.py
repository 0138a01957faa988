"""
Command classification for the shellgate gateway.

This module decides whether a raw command string may run, checking it
against dangerous patterns, the blocked and allowed command tables,
and every pipeline segment it contains.
"""

import posixpath
import re
from typing import Literal

from shellgate.security.models import CommandVerdict
from shellgate.security.patterns import DEFAULT_LIBRARY, PatternLibrary

UnknownCommandPolicy = Literal["warn", "block"]

_ENV_ASSIGNMENT = re.compile(r"""^(?:[A-Za-z_][A-Za-z0-9_]*=(?:"[^"]*"|'[^']*'|\S*)\s+)+""")
_RELATIVE_MARKERS = ("./", "../")
_SEGMENT_SEPARATORS = frozenset("|;&\n")


def first_token(command: str) -> str:
    """
    Return the program token of a command line.

    Leading NAME=value assignments are skipped. Relative path markers
    are kept.
    """
    stripped = _ENV_ASSIGNMENT.sub("", command.strip(), count=1)
    parts = stripped.split(None, 1)
    return parts[0] if parts else ""


def extract_base_command(command: str) -> str:
    """
    Extract the base command from a command line.

    Examples:
        >>> extract_base_command("FOO=1 BAR=2 make test")
        'make'
        >>> extract_base_command("./gradlew build")
        'gradlew'
    """
    token = first_token(command)
    for marker in _RELATIVE_MARKERS:
        if token.startswith(marker):
            return token[len(marker) :]
    return token


def split_segments(command: str) -> list[str]:
    """
    Split a command line on unquoted pipe and sequencing operators.

    This is a heuristic, not a shell parser: it honours single quotes,
    double quotes and backslash escapes, and nothing else.
    """
    segments: list[str] = []
    current: list[str] = []
    quote: str | None = None
    escaped = False

    for char in command:
        if escaped:
            current.append(char)
            escaped = False
            continue
        if char == "\\" and quote != "'":
            current.append(char)
            escaped = True
            continue
        if quote:
            if char == quote:
                quote = None
            current.append(char)
            continue
        if char in ("'", '"'):
            quote = char
            current.append(char)
            continue
        if char in _SEGMENT_SEPARATORS:
            segments.append("".join(current))
            current = []
            continue
        current.append(char)

    segments.append("".join(current))
    return [s.strip() for s in segments if s.strip()]


class CommandClassifier:
    """
    Classifies command strings as allowed, allowed with a warning, or blocked.

    Rules are applied in a fixed order and the first decisive rule wins:

    1. Empty commands are blocked
    2. Dangerous patterns anywhere in the string are blocked
    3. A blocked base command is blocked
    4. A blocked base command in any pipeline segment is blocked
    5. Allowed base commands and relative scripts are allowed
    6. Known developer tool shapes are allowed
    7. Anything else falls back to the unknown-command policy
    """

    def __init__(
        self,
        library: PatternLibrary | None = None,
        unknown_policy: UnknownCommandPolicy = "warn",
    ) -> None:
        """
        Initialize the classifier.

        Args:
            library: Command tables to consult (default: built-in tables)
            unknown_policy: "warn" to allow unrecognized commands with a
                warning, "block" to refuse them
        """
        self.library = library or DEFAULT_LIBRARY
        self.unknown_policy = unknown_policy

    def _is_blocked(self, base_command: str) -> bool:
        blocked = self.library.blocked_commands
        return base_command in blocked or posixpath.basename(base_command) in blocked

    def classify(self, command: str) -> CommandVerdict:
        """
        Classify a command.

        Args:
            command: Raw command string

        Returns:
            CommandVerdict with the decision and its reason
        """
        trimmed = command.strip()
        if not trimmed:
            return CommandVerdict.block("Empty command")

        for dangerous in self.library.dangerous_patterns:
            if dangerous.search(trimmed):
                return CommandVerdict.block(
                    f"Dangerous pattern detected: {dangerous.description}",
                    matched_rule=dangerous.pattern,
                )

        base_command = extract_base_command(trimmed)
        if self._is_blocked(base_command):
            return CommandVerdict.block(
                f"Blocked command: {base_command}", matched_rule=base_command
            )

        for segment in split_segments(trimmed):
            segment_base = extract_base_command(segment)
            if self._is_blocked(segment_base):
                return CommandVerdict.block(
                    f"Blocked command in pipe: {segment_base}",
                    matched_rule=segment_base,
                )

        if base_command in self.library.allowed_commands:
            return CommandVerdict.allow(matched_rule=base_command)

        program = first_token(trimmed)
        if program.startswith(_RELATIVE_MARKERS):
            return CommandVerdict.allow(matched_rule=program)

        for shape in self.library.safe_shapes:
            if shape.search(trimmed):
                return CommandVerdict.allow(matched_rule=shape.pattern)

        if self.unknown_policy == "block":
            return CommandVerdict.block(f"Unknown command requires review: {base_command}")

        return CommandVerdict.warn(
            f"Unknown command, proceeding with caution: {base_command}"
        )
