"""
shellgate - Command execution gateway for AI agents

Classifies shell commands against allow/block tables and dangerous
patterns, then runs approved commands with bounded time and output.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("shellgate")
except PackageNotFoundError:
    __version__ = "0.3.0"

__all__ = [
    "__version__",
]
