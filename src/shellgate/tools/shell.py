"""Gateway tools for agent tool dispatchers."""

import logging
from typing import Optional

from shellgate.security.executor import ShellExecutor
from shellgate.tools.base import Tool, ToolExecutionError
from shellgate.tools.models import ToolParameter, ToolResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30
MAX_TIMEOUT_SECONDS = 300


class GatewayTool(Tool):
    """A tool backed by a ShellExecutor.

    The executor is built from the loaded configuration on first use
    unless one is passed in.
    """

    def __init__(self, executor: Optional[ShellExecutor] = None):
        self._executor = executor
        super().__init__()

    def _get_executor(self) -> ShellExecutor:
        if self._executor is None:
            from shellgate.audit.logger import get_audit_logger
            from shellgate.config import ConfigurationError, get_config

            try:
                config = get_config()
            except ConfigurationError as e:
                raise ToolExecutionError(f"Cannot load gateway configuration: {e}") from e

            audit_logger = get_audit_logger(config.security.audit_log) if config.is_audit_enabled() else None
            self._executor = ShellExecutor.from_config(config, audit_logger=audit_logger)
        return self._executor

    def _flush_audit(self, executor: ShellExecutor) -> None:
        # Events are on disk when each tool call returns
        if executor.audit_logger is not None:
            executor.audit_logger.flush()


class ShellTool(GatewayTool):
    """Execute shell commands through the gateway.

    Every command is classified before it runs. Blocked commands are
    never spawned, and allowed ones run with a timeout and an output cap.
    """

    @property
    def name(self) -> str:
        return "execute_command"

    @property
    def description(self) -> str:
        return (
            "Execute a shell command through a security gateway. "
            "Returns stdout, stderr, and exit code. "
            "Dangerous commands (recursive deletes, privilege escalation, "
            "process killing, remote shells) are blocked. "
            "Use this for: build tools, package managers, git, file inspection. "
            f"Avoid long-running commands (timeout: {DEFAULT_TIMEOUT_SECONDS}s default)."
        )

    @property
    def parameters(self) -> list[ToolParameter]:
        return [
            ToolParameter(
                name="command",
                type="string",
                description=(
                    "The shell command to execute. Pipes and redirection are supported. "
                    "Example: 'ls -la' or 'cat file.txt | grep pattern'"
                ),
                required=True,
            ),
            ToolParameter(
                name="working_dir",
                type="string",
                description="Working directory. Defaults to the configured project directory.",
                required=False,
            ),
            ToolParameter(
                name="timeout",
                type="integer",
                description=(
                    "Timeout in seconds. Kills the command if it runs longer. "
                    f"Default: {DEFAULT_TIMEOUT_SECONDS}. Max: {MAX_TIMEOUT_SECONDS}."
                ),
                required=False,
                default=DEFAULT_TIMEOUT_SECONDS,
            ),
            ToolParameter(
                name="environment",
                type="object",
                description="Extra environment variables. Keys must be valid identifiers.",
                required=False,
            ),
            ToolParameter(
                name="stdin",
                type="string",
                description="Text piped to the command's standard input.",
                required=False,
            ),
        ]

    @property
    def is_dangerous(self) -> bool:
        """Shell commands can modify system state."""
        return True

    async def execute(self, **kwargs) -> ToolResult:
        """Execute a shell command.

        Args:
            command: Command to execute
            working_dir: Optional working directory
            timeout: Optional timeout in seconds
            environment: Optional environment overrides
            stdin: Optional standard input

        Returns:
            ToolResult with command output

        Raises:
            ValueError: If parameters are missing or unknown
            ToolExecutionError: If the gateway cannot be configured
        """
        self.validate_input(**kwargs)

        command = kwargs["command"]
        tool_call_id = kwargs.get("tool_call_id", "unknown")
        timeout = min(int(kwargs.get("timeout") or DEFAULT_TIMEOUT_SECONDS), MAX_TIMEOUT_SECONDS)

        executor = self._get_executor()
        logger.info(f"Executing shell command: {command[:100]}")

        try:
            result = await executor.execute(
                command,
                working_dir=kwargs.get("working_dir"),
                timeout_ms=timeout * 1000,
                environment=kwargs.get("environment"),
                stdin=kwargs.get("stdin"),
            )
        except Exception as e:
            logger.error(f"Shell command execution error: {e}", exc_info=True)
            return self.error_result(tool_call_id, f"Execution failed: {e}", exit_code=-1)
        finally:
            self._flush_audit(executor)

        if result.blocked:
            return self.error_result(
                tool_call_id, f"Command blocked: {result.blocked_reason}", exit_code=result.exit_code
            )

        if result.timed_out:
            return self.error_result(tool_call_id, result.stderr, exit_code=result.exit_code)

        output_parts = []

        if result.warning:
            output_parts.append(f"Warning: {result.warning}")

        if result.stdout:
            output_parts.append(f"STDOUT:\n{result.stdout}")

        if result.stderr:
            output_parts.append(f"STDERR:\n{result.stderr}")

        if result.exit_code != 0:
            output_parts.append(f"Exit Code: {result.exit_code}")

        output = "\n\n".join(output_parts) if output_parts else "(no output)"

        return ToolResult(
            tool_call_id=tool_call_id,
            output=output,
            exit_code=result.exit_code,
            is_error=not result.success,
            error=None if result.success else f"Command failed with exit code {result.exit_code}",
            warning=result.warning,
        )


class ValidateCommandTool(GatewayTool):
    """Classify a command without running it."""

    @property
    def name(self) -> str:
        return "validate_command"

    @property
    def description(self) -> str:
        return (
            "Check whether a shell command would be allowed by the security gateway "
            "without executing it. Returns the decision and its reason."
        )

    @property
    def parameters(self) -> list[ToolParameter]:
        return [
            ToolParameter(
                name="command",
                type="string",
                description="The shell command to validate",
                required=True,
            ),
        ]

    async def execute(self, **kwargs) -> ToolResult:
        self.validate_input(**kwargs)
        tool_call_id = kwargs.get("tool_call_id", "unknown")

        verdict = self._get_executor().check_command(kwargs["command"])
        if verdict.allowed:
            output = f"Command is allowed: {verdict.reason}"
        else:
            output = f"Command blocked: {verdict.reason}"

        return ToolResult(
            tool_call_id=tool_call_id,
            output=output,
            is_error=not verdict.allowed,
            warning=verdict.reason if verdict.warning else None,
        )


class CommandAvailableTool(GatewayTool):
    """Report whether a program is installed."""

    @property
    def name(self) -> str:
        return "check_command_available"

    @property
    def description(self) -> str:
        return "Check whether a program is available on this system's PATH."

    @property
    def parameters(self) -> list[ToolParameter]:
        return [
            ToolParameter(
                name="command",
                type="string",
                description="Program name to look up, e.g. 'git' or 'docker'",
                required=True,
            ),
        ]

    async def execute(self, **kwargs) -> ToolResult:
        self.validate_input(**kwargs)
        tool_call_id = kwargs.get("tool_call_id", "unknown")
        name = kwargs["command"]

        executor = self._get_executor()
        try:
            available = await executor.is_command_available(name)
        finally:
            self._flush_audit(executor)

        if available:
            output = f"Command '{name}' is available"
        else:
            output = f"Command '{name}' is not available on this system"

        return ToolResult(tool_call_id=tool_call_id, output=output)
