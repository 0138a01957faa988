"""Tests for the process launcher."""

import os
import sys
import time
from pathlib import Path

import pytest

from shellgate.security.launcher import OutputBudget, ProcessLauncher, build_environment
from shellgate.security.models import FAILED_EXIT_CODE

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")


class TestBuildEnvironment:
    """Test child environment construction."""

    def test_inherits_parent(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHELLGATE_TEST_PARENT", "yes")
        assert build_environment()["SHELLGATE_TEST_PARENT"] == "yes"

    def test_invalid_keys_dropped(self) -> None:
        env = build_environment({"GOOD_KEY": "1", "1BAD": "x", "BAD-KEY": "y", "": "z"})

        assert env["GOOD_KEY"] == "1"
        assert "1BAD" not in env
        assert "BAD-KEY" not in env
        assert "" not in env

    def test_override_replaces_parent(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHELLGATE_TEST_VALUE", "old")
        assert build_environment({"SHELLGATE_TEST_VALUE": "new"})["SHELLGATE_TEST_VALUE"] == "new"


class TestOutputBudget:
    """Test the shared output budget."""

    def test_take_slices_exactly(self) -> None:
        budget = OutputBudget(5)

        assert budget.take("abc") == "abc"
        assert budget.take("defg") == "de"
        assert budget.exhausted is True
        assert budget.take("more") == ""

    def test_zero_limit(self) -> None:
        budget = OutputBudget(0)
        assert budget.exhausted is True
        assert budget.take("x") == ""


class TestResolveWorkingDir:
    """Test working directory selection."""

    def test_requested_directory(self, temp_dir: Path) -> None:
        assert ProcessLauncher().resolve_working_dir(temp_dir) == temp_dir

    def test_default_directory(self, temp_dir: Path) -> None:
        launcher = ProcessLauncher(default_working_dir=temp_dir)
        assert launcher.resolve_working_dir(None) == temp_dir

    def test_missing_directory_falls_back(self, temp_dir: Path) -> None:
        launcher = ProcessLauncher(default_working_dir=temp_dir)
        assert launcher.resolve_working_dir(temp_dir / "missing") == temp_dir

    def test_current_directory_last(self, tmp_path: Path) -> None:
        assert ProcessLauncher().resolve_working_dir(tmp_path / "missing") == Path.cwd()


@posix_only
class TestProcessLauncher:
    """Test running real processes."""

    @pytest.mark.asyncio
    async def test_captures_stdout(self) -> None:
        result = await ProcessLauncher().run("echo hello")

        assert result.exit_code == 0
        assert result.stdout == "hello"
        assert result.stderr == ""
        assert result.timed_out is False

    @pytest.mark.asyncio
    async def test_captures_stderr_and_exit_code(self) -> None:
        result = await ProcessLauncher().run("echo oops 1>&2; exit 3")

        assert result.exit_code == 3
        assert result.stderr == "oops"
        assert result.success is False

    @pytest.mark.asyncio
    async def test_utf8_output(self) -> None:
        result = await ProcessLauncher().run("echo 'héllo wörld'")
        assert result.stdout == "héllo wörld"

    @pytest.mark.asyncio
    async def test_working_directory(self, temp_dir: Path) -> None:
        result = await ProcessLauncher().run("pwd", working_dir=temp_dir)
        assert Path(result.stdout).resolve() == temp_dir.resolve()

    @pytest.mark.asyncio
    async def test_environment_overrides(self) -> None:
        result = await ProcessLauncher().run(
            'echo "$GREETING"', environment={"GREETING": "hi there", "BAD-KEY": "x"}
        )
        assert result.stdout == "hi there"

    @pytest.mark.asyncio
    async def test_stdin(self) -> None:
        result = await ProcessLauncher().run("cat", stdin="line one\nline two\n")
        assert result.stdout == "line one\nline two"

    @pytest.mark.asyncio
    async def test_no_stdin_reads_eof(self) -> None:
        """Test a command reading stdin gets EOF rather than hanging."""
        result = await ProcessLauncher().run("cat", timeout_ms=5_000)

        assert result.timed_out is False
        assert result.stdout == ""

    @pytest.mark.asyncio
    async def test_output_cap(self) -> None:
        launcher = ProcessLauncher(max_output_chars=100)
        result = await launcher.run("head -c 5000 /dev/zero | tr '\\0' a")

        assert result.exit_code == 0
        assert result.stdout == "a" * 100

    @pytest.mark.asyncio
    async def test_output_cap_is_shared(self) -> None:
        launcher = ProcessLauncher(max_output_chars=100)
        result = await launcher.run(
            "head -c 300 /dev/zero | tr '\\0' a; head -c 300 /dev/zero | tr '\\0' b 1>&2"
        )

        assert len(result.stdout) + len(result.stderr) == 100

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        launcher = ProcessLauncher(kill_grace_ms=200)
        started = time.monotonic()
        result = await launcher.run("sleep 5", timeout_ms=500)

        assert result.timed_out is True
        assert result.exit_code == FAILED_EXIT_CODE
        assert result.stderr == "Command timed out after 500ms"
        assert time.monotonic() - started < 4

    @pytest.mark.asyncio
    async def test_timeout_kills_process_group(self, temp_dir: Path) -> None:
        """Test background children of the shell are killed too."""
        marker = temp_dir / "survived"
        launcher = ProcessLauncher(kill_grace_ms=100)

        result = await launcher.run(f"(sleep 2; touch {marker}) & wait", timeout_ms=500)
        assert result.timed_out is True

        time.sleep(2.5)
        assert not marker.exists()

    @pytest.mark.asyncio
    async def test_launch_failure(self) -> None:
        launcher = ProcessLauncher(shell=os.path.join(os.sep, "nonexistent", "shell"))
        result = await launcher.run("echo hi")

        assert result.exit_code == FAILED_EXIT_CODE
        assert result.stderr.startswith("Execution failed:")
        assert result.timed_out is False
