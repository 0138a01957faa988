"""Tests for the execute_command tool."""

import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

from shellgate.config.loader import get_config
from shellgate.security.executor import ShellExecutor
from shellgate.security.models import CommandVerdict, ExecutionResult
from shellgate.storage.paths import get_global_config_path
from shellgate.tools.base import ToolExecutionError
from shellgate.tools.models import ToolParameter, ToolResult
from shellgate.tools.shell import CommandAvailableTool, ShellTool, ValidateCommandTool


def mock_executor(result: ExecutionResult) -> MagicMock:
    executor = MagicMock()
    executor.execute = AsyncMock(return_value=result)
    return executor


class TestToolModels:
    """Tests for tool data models."""

    def test_optional_parameter_with_default(self):
        param = ToolParameter(
            name="timeout",
            type="integer",
            description="Timeout in seconds",
            required=False,
            default=30,
        )

        assert param.required is False
        assert param.default == 30
        assert param.enum is None

    def test_result_str_error(self):
        result = ToolResult(tool_call_id="call_1", output="", error="Command blocked: x", is_error=True)
        assert str(result) == "Error: Command blocked: x"

    def test_result_str_truncation(self):
        result = ToolResult(tool_call_id="call_1", output="x" * 300)
        assert str(result).endswith("...")
        assert len(str(result)) == 203


class TestShellTool:
    """Tests for ShellTool."""

    def test_tool_properties(self):
        """Test tool basic properties."""
        tool = ShellTool(executor=ShellExecutor())

        assert tool.name == "execute_command"
        assert "security gateway" in tool.description
        assert tool.is_dangerous is True

        params = {p.name: p for p in tool.parameters}
        assert params["command"].required is True
        assert params["timeout"].default == 30
        assert {"working_dir", "environment", "stdin"} <= params.keys()

    def test_tool_definition(self):
        definition = ShellTool(executor=ShellExecutor()).get_tool_definition()

        assert definition["name"] == "execute_command"
        assert definition["input_schema"]["required"] == ["command"]
        assert definition["input_schema"]["properties"]["environment"]["type"] == "object"

    @pytest.mark.asyncio
    async def test_execute_success(self):
        executor = mock_executor(ExecutionResult(exit_code=0, stdout="Hello"))
        tool = ShellTool(executor=executor)

        result = await tool.execute(command="echo Hello", tool_call_id="call_123")

        assert result.tool_call_id == "call_123"
        assert result.is_error is False
        assert result.output == "STDOUT:\nHello"
        assert result.exit_code == 0

        executor.execute.assert_awaited_once()
        assert executor.execute.call_args.args[0] == "echo Hello"
        assert executor.execute.call_args.kwargs["timeout_ms"] == 30_000

    @pytest.mark.asyncio
    async def test_timeout_converted_and_capped(self):
        executor = mock_executor(ExecutionResult(exit_code=0))
        tool = ShellTool(executor=executor)

        await tool.execute(command="make", timeout=1000)

        assert executor.execute.call_args.kwargs["timeout_ms"] == 300_000

    @pytest.mark.asyncio
    async def test_execute_failure(self):
        executor = mock_executor(ExecutionResult(exit_code=2, stderr="No such file"))
        result = await ShellTool(executor=executor).execute(command="ls missing")

        assert result.is_error is True
        assert result.error == "Command failed with exit code 2"
        assert "STDERR:\nNo such file" in result.output
        assert "Exit Code: 2" in result.output

    @pytest.mark.asyncio
    async def test_execute_blocked(self):
        executor = mock_executor(ExecutionResult.blocked_by("Blocked command: ssh"))
        result = await ShellTool(executor=executor).execute(command="ssh host")

        assert result.is_error is True
        assert result.error == "Command blocked: Blocked command: ssh"
        assert result.output == ""

    @pytest.mark.asyncio
    async def test_execute_timeout(self):
        executor = mock_executor(
            ExecutionResult(exit_code=-1, stderr="Command timed out after 1000ms", timed_out=True)
        )
        result = await ShellTool(executor=executor).execute(command="sleep 60", timeout=1)

        assert result.is_error is True
        assert result.error == "Command timed out after 1000ms"

    @pytest.mark.asyncio
    async def test_execute_warning(self):
        executor = mock_executor(
            ExecutionResult(exit_code=0, stdout="ok", warning="Unknown command, proceeding with caution: jq")
        )
        result = await ShellTool(executor=executor).execute(command="jq .")

        assert result.is_error is False
        assert result.warning is not None
        assert result.output.startswith("Warning: Unknown command")

    @pytest.mark.asyncio
    async def test_no_output(self):
        executor = mock_executor(ExecutionResult(exit_code=0))
        result = await ShellTool(executor=executor).execute(command="true")

        assert result.output == "(no output)"

    @pytest.mark.asyncio
    async def test_executor_exception(self):
        executor = MagicMock()
        executor.execute = AsyncMock(side_effect=RuntimeError("boom"))
        result = await ShellTool(executor=executor).execute(command="ls")

        assert result.is_error is True
        assert result.error == "Execution failed: boom"

    @pytest.mark.asyncio
    async def test_missing_command(self):
        with pytest.raises(ValueError, match="Missing required parameters: command"):
            await ShellTool(executor=ShellExecutor()).execute(timeout=5)

    @pytest.mark.asyncio
    async def test_unknown_parameter(self):
        with pytest.raises(ValueError, match="Unknown parameters: shell"):
            await ShellTool(executor=ShellExecutor()).execute(command="ls", shell="bash")

    @pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")
    @pytest.mark.asyncio
    async def test_real_execution(self):
        tool = ShellTool(executor=ShellExecutor())

        result = await tool.execute(command="cat", stdin="piped", environment={"X": "1"})
        assert result.output == "STDOUT:\npiped"

        blocked = await tool.execute(command="rm -rf /")
        assert blocked.is_error is True
        assert "delete" in blocked.error

    def test_executor_from_config(self):
        get_global_config_path().write_text("security:\n  unknown_command_policy: block\n")
        get_config(reload=True)

        executor = ShellTool()._get_executor()

        assert executor.classifier.unknown_policy == "block"
        assert executor.audit_logger is not None

    def test_executor_config_error(self):
        get_global_config_path().write_text("security: [unclosed")

        with pytest.raises(ToolExecutionError, match="Cannot load gateway configuration"):
            ShellTool()._get_executor()

    @pytest.mark.asyncio
    async def test_audit_flushed_after_each_call(self):
        executor = mock_executor(ExecutionResult(exit_code=0, stdout="ok"))
        tool = ShellTool(executor=executor)

        await tool.execute(command="echo ok")
        await tool.execute(command="echo ok")

        assert executor.audit_logger.flush.call_count == 2

    @pytest.mark.asyncio
    async def test_audit_flushed_when_executor_raises(self):
        executor = MagicMock()
        executor.execute = AsyncMock(side_effect=RuntimeError("boom"))

        await ShellTool(executor=executor).execute(command="ls")

        executor.audit_logger.flush.assert_called_once()

    @pytest.mark.asyncio
    async def test_audit_written_through_configured_tool(self):
        get_global_config_path().write_text("security:\n  audit_log:\n    buffer_size: 100\n")
        get_config(reload=True)
        tool = ShellTool()

        await tool.execute(command="rm -rf /")

        audit_path = tool._get_executor().audit_logger.log_path
        assert "command_blocked" in audit_path.read_text()

    @pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")
    @pytest.mark.asyncio
    async def test_numeric_environment_values(self):
        result = await ShellTool(executor=ShellExecutor()).execute(
            command='echo "$PORT"', environment={"PORT": 8080}
        )

        assert result.is_error is False
        assert result.output == "STDOUT:\n8080"


class TestValidateCommandTool:
    """Tests for ValidateCommandTool."""

    def test_tool_properties(self):
        tool = ValidateCommandTool(executor=ShellExecutor())

        assert tool.name == "validate_command"
        assert tool.is_dangerous is False
        assert tool.get_input_schema()["required"] == ["command"]

    @pytest.mark.asyncio
    async def test_allowed_command(self):
        result = await ValidateCommandTool(executor=ShellExecutor()).execute(
            command="git status", tool_call_id="call_7"
        )

        assert result.tool_call_id == "call_7"
        assert result.is_error is False
        assert result.output == "Command is allowed: Command validated"

    @pytest.mark.asyncio
    async def test_blocked_command(self):
        result = await ValidateCommandTool(executor=ShellExecutor()).execute(command="ssh host")

        assert result.is_error is True
        assert result.output == "Command blocked: Blocked command: ssh"

    @pytest.mark.asyncio
    async def test_unknown_command_carries_warning(self):
        executor = MagicMock()
        executor.check_command.return_value = CommandVerdict.warn("Unknown command, proceeding with caution: jq")

        result = await ValidateCommandTool(executor=executor).execute(command="jq .")

        assert result.is_error is False
        assert result.output == "Command is allowed: Unknown command, proceeding with caution: jq"
        assert result.warning == "Unknown command, proceeding with caution: jq"
        executor.check_command.assert_called_once_with("jq .")

    @pytest.mark.asyncio
    async def test_nothing_is_executed(self):
        executor = MagicMock()
        executor.check_command.return_value = CommandVerdict.allow()
        executor.execute = AsyncMock()

        await ValidateCommandTool(executor=executor).execute(command="ls")

        executor.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_command(self):
        with pytest.raises(ValueError, match="Missing required parameters: command"):
            await ValidateCommandTool(executor=ShellExecutor()).execute()


class TestCommandAvailableTool:
    """Tests for CommandAvailableTool."""

    def test_tool_properties(self):
        tool = CommandAvailableTool(executor=ShellExecutor())

        assert tool.name == "check_command_available"
        assert tool.is_dangerous is False
        assert tool.get_tool_definition()["input_schema"]["required"] == ["command"]

    @pytest.mark.asyncio
    async def test_available(self):
        executor = MagicMock()
        executor.is_command_available = AsyncMock(return_value=True)

        result = await CommandAvailableTool(executor=executor).execute(command="git")

        assert result.is_error is False
        assert result.output == "Command 'git' is available"
        executor.is_command_available.assert_awaited_once_with("git")
        executor.audit_logger.flush.assert_called_once()

    @pytest.mark.asyncio
    async def test_not_available_is_not_an_error(self):
        executor = MagicMock()
        executor.is_command_available = AsyncMock(return_value=False)

        result = await CommandAvailableTool(executor=executor).execute(command="nonexistent-tool")

        assert result.is_error is False
        assert result.output == "Command 'nonexistent-tool' is not available on this system"

    @pytest.mark.asyncio
    async def test_unknown_parameter(self):
        with pytest.raises(ValueError, match="Unknown parameters: path"):
            await CommandAvailableTool(executor=ShellExecutor()).execute(command="git", path="/usr/bin")
