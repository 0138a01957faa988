"""Agent tool interface for shellgate.

Exposes the gateway to tool-calling agents as command execution,
validation and availability tools with Anthropic-style input schemas.
"""

from shellgate.tools.base import Tool, ToolExecutionError
from shellgate.tools.models import ToolParameter, ToolResult
from shellgate.tools.shell import CommandAvailableTool, GatewayTool, ShellTool, ValidateCommandTool

__all__ = [
    "CommandAvailableTool",
    "GatewayTool",
    "ShellTool",
    "Tool",
    "ToolExecutionError",
    "ToolParameter",
    "ToolResult",
    "ValidateCommandTool",
]
