"""Base class for the gateway's agent-facing tools."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from shellgate.tools.models import ToolParameter, ToolResult

# Keys a dispatcher may add to every call without declaring them
INTERNAL_PARAMETERS = frozenset({"tool_call_id"})


class ToolExecutionError(Exception):
    """Raised when a tool cannot reach a working gateway."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


def parameter_schema(param: ToolParameter) -> dict[str, Any]:
    """JSON schema fragment for one parameter."""
    return param.model_dump(include={"type", "description", "enum", "default"}, exclude_none=True)


class Tool(ABC):
    """A gateway operation exposed to a tool-calling agent.

    Subclasses declare a name, a description the model reads when choosing
    a tool, and their parameters. Calls arrive as keyword arguments and
    always produce a ToolResult.
    """

    def __init__(self):
        names = [p.name for p in self.parameters]
        if not self.name or not self.description:
            raise ValueError(f"{type(self).__name__} needs a name and a description")
        if len(names) != len(set(names)):
            raise ValueError(f"{self.name}: parameter names must be unique")

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name as the agent calls it."""

    @property
    @abstractmethod
    def description(self) -> str:
        """What the tool does, for the model."""

    @property
    @abstractmethod
    def parameters(self) -> list[ToolParameter]:
        """Declared call parameters."""

    @property
    def is_dangerous(self) -> bool:
        """Whether a call can change system state."""
        return False

    def get_input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {p.name: parameter_schema(p) for p in self.parameters},
            "required": [p.name for p in self.parameters if p.required],
        }

    def get_tool_definition(self) -> dict[str, Any]:
        """Anthropic-style tool definition."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.get_input_schema(),
        }

    def validate_input(self, **kwargs) -> None:
        """Reject unknown and missing parameters.

        Raises:
            ValueError: If a parameter is unknown or a required one is absent
        """
        declared = {p.name for p in self.parameters}

        unknown = set(kwargs) - declared - INTERNAL_PARAMETERS
        if unknown:
            raise ValueError(f"Unknown parameters: {', '.join(sorted(unknown))}")

        missing = {p.name for p in self.parameters if p.required} - set(kwargs)
        if missing:
            raise ValueError(f"Missing required parameters: {', '.join(sorted(missing))}")

    def error_result(self, tool_call_id: str, error: str, exit_code: Optional[int] = None) -> ToolResult:
        return ToolResult(
            tool_call_id=tool_call_id,
            output="",
            error=error,
            exit_code=exit_code,
            is_error=True,
        )

    @abstractmethod
    async def execute(self, **kwargs) -> ToolResult:
        """Run the tool with validated keyword arguments."""

    def __repr__(self) -> str:
        return f"<Tool name={self.name} dangerous={self.is_dangerous}>"
