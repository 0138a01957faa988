"""Data models for the agent tool interface."""

from typing import Any, Optional

from pydantic import BaseModel


class ToolParameter(BaseModel):
    """Defines a parameter for a tool."""

    name: str
    type: str  # "string", "integer", "boolean", "array", "object"
    description: str
    required: bool = True
    default: Optional[Any] = None
    enum: Optional[list[str]] = None


class ToolResult(BaseModel):
    """Represents the result of tool execution."""

    tool_call_id: str  # Links to the caller's tool call
    output: str
    error: Optional[str] = None
    exit_code: Optional[int] = None
    is_error: bool = False
    warning: Optional[str] = None

    def __str__(self) -> str:
        """String representation."""
        if self.is_error:
            return f"Error: {self.error}"
        return self.output[:200] + ("..." if len(self.output) > 200 else "")
