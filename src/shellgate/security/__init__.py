"""
Command policy and execution for shellgate.

This package provides the command tables, the classifier, the process
launcher and the executor that ties them together.
"""

from shellgate.security.classifier import CommandClassifier, extract_base_command, split_segments
from shellgate.security.executor import ShellExecutor
from shellgate.security.launcher import ProcessLauncher
from shellgate.security.models import (
    CommandVerdict,
    ExecutionRequest,
    ExecutionResult,
    Verdict,
)
from shellgate.security.patterns import DangerousPattern, PatternLibrary

__all__ = [
    "CommandClassifier",
    "CommandVerdict",
    "DangerousPattern",
    "ExecutionRequest",
    "ExecutionResult",
    "PatternLibrary",
    "ProcessLauncher",
    "ShellExecutor",
    "Verdict",
    "extract_base_command",
    "split_segments",
]
