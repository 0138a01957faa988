"""
Process launcher for validated commands.

Spawns a shell for a command that already passed classification, drains
its output concurrently under a size cap, and kills the whole process
group when the timeout expires.
"""

import asyncio
import codecs
import logging
import os
import re
import signal
import time
from collections.abc import Mapping
from pathlib import Path

from shellgate.security.models import (
    DEFAULT_MAX_OUTPUT_CHARS,
    DEFAULT_TIMEOUT_MS,
    FAILED_EXIT_CODE,
    ExecutionResult,
)

logger = logging.getLogger(__name__)

_ENV_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_CHUNK_SIZE = 4096


def build_environment(overrides: Mapping[str, str] | None = None) -> dict[str, str]:
    """
    Build the child environment from the parent plus overrides.

    Override keys that are not identifiers are dropped.
    """
    env = os.environ.copy()
    for key, value in (overrides or {}).items():
        if not _ENV_KEY.match(key):
            logger.debug(f"Dropping invalid environment key: {key!r}")
            continue
        env[key] = str(value)
    return env


class OutputBudget:
    """Character budget shared by stdout and stderr of one process."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.used = 0

    @property
    def exhausted(self) -> bool:
        return self.used >= self.limit

    def take(self, text: str) -> str:
        """Return the part of text that fits in the remaining budget."""
        remaining = self.limit - self.used
        if remaining <= 0:
            return ""
        accepted = text[:remaining]
        self.used += len(accepted)
        return accepted


async def _drain(stream: asyncio.StreamReader, sink: list[str], budget: OutputBudget) -> None:
    """Read a stream to EOF, keeping only what fits in the budget."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            sink.append(budget.take(decoder.decode(b"", final=True)))
            return
        if not budget.exhausted:
            sink.append(budget.take(decoder.decode(chunk)))


async def _feed(stream: asyncio.StreamWriter, data: str) -> None:
    """Write stdin in one go and close it."""
    try:
        stream.write(data.encode("utf-8"))
        await stream.drain()
    except (BrokenPipeError, ConnectionResetError):
        logger.debug("Process closed stdin before reading all input")
    finally:
        stream.close()


class ProcessLauncher:
    """
    Runs approved commands through a single shell invocation.

    Provides:
    - Working directory resolution with a configured fallback
    - Environment overrides restricted to identifier keys
    - Optional stdin payload
    - Concurrent output draining with a combined size cap
    - Timeout enforcement that kills the process group
    """

    def __init__(
        self,
        default_working_dir: str | Path | None = None,
        max_output_chars: int = DEFAULT_MAX_OUTPUT_CHARS,
        shell: str | None = "/bin/sh",
        kill_grace_ms: int = 2_000,
    ) -> None:
        """
        Initialize the launcher.

        Args:
            default_working_dir: Directory used when a request names none
            max_output_chars: Combined stdout/stderr capture limit
            shell: Shell executable (None uses the platform default)
            kill_grace_ms: Time between SIGTERM and SIGKILL on timeout
        """
        self.default_working_dir = (
            Path(default_working_dir).expanduser() if default_working_dir else None
        )
        self.max_output_chars = max_output_chars
        self.shell = shell
        self.kill_grace_ms = kill_grace_ms

    def resolve_working_dir(self, working_dir: str | Path | None) -> Path:
        """Pick the requested directory, the default, or the current directory."""
        for candidate in (working_dir, self.default_working_dir):
            if candidate is None:
                continue
            path = Path(candidate).expanduser()
            if path.is_dir():
                return path
            logger.debug(f"Ignoring missing working directory: {path}")
        return Path.cwd()

    async def run(
        self,
        command: str,
        working_dir: str | Path | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        environment: Mapping[str, str] | None = None,
        stdin: str | None = None,
    ) -> ExecutionResult:
        """
        Run a command and capture its output.

        Args:
            command: Command that already passed classification
            working_dir: Requested working directory
            timeout_ms: Time budget in milliseconds
            environment: Environment overrides
            stdin: Text written to the process input, then closed

        Returns:
            ExecutionResult. Launch failures and timeouts are reported in
            the result, never raised.
        """
        cwd = self.resolve_working_dir(working_dir)
        started = time.monotonic()

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=build_environment(environment),
                executable=self.shell,
                start_new_session=True,
            )
        except Exception as e:
            logger.error(f"Failed to launch command: {command[:100]}", exc_info=True)
            return ExecutionResult(
                exit_code=FAILED_EXIT_CODE,
                stderr=f"Execution failed: {e}",
                duration_ms=_elapsed_ms(started),
            )

        logger.debug(f"Spawned pid {process.pid} in {cwd}: {command[:100]}")

        stdout_parts: list[str] = []
        stderr_parts: list[str] = []
        budget = OutputBudget(self.max_output_chars)

        try:
            exit_code = await asyncio.wait_for(
                self._communicate(process, stdin, stdout_parts, stderr_parts, budget),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            await self._terminate(process)
            logger.warning(f"Command timed out after {timeout_ms}ms: {command[:100]}")
            return ExecutionResult(
                exit_code=FAILED_EXIT_CODE,
                stderr=f"Command timed out after {timeout_ms}ms",
                timed_out=True,
                duration_ms=_elapsed_ms(started),
            )
        except asyncio.CancelledError:
            await self._terminate(process)
            raise

        if budget.exhausted:
            logger.debug(f"Output capped at {self.max_output_chars} characters")

        return ExecutionResult(
            exit_code=exit_code,
            stdout="".join(stdout_parts).rstrip(),
            stderr="".join(stderr_parts).rstrip(),
            duration_ms=_elapsed_ms(started),
        )

    async def _communicate(
        self,
        process: asyncio.subprocess.Process,
        stdin: str | None,
        stdout_parts: list[str],
        stderr_parts: list[str],
        budget: OutputBudget,
    ) -> int:
        tasks = [
            _drain(process.stdout, stdout_parts, budget),
            _drain(process.stderr, stderr_parts, budget),
        ]
        if stdin is not None:
            tasks.append(_feed(process.stdin, stdin))
        await asyncio.gather(*tasks)
        return await process.wait()

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """Stop the process and everything in its process group."""
        _signal_group(process, signal.SIGTERM)
        try:
            await asyncio.wait_for(process.wait(), timeout=self.kill_grace_ms / 1000)
        except asyncio.TimeoutError:
            logger.debug(f"pid {process.pid} ignored SIGTERM")
        # Descendants may outlive the shell, so the group is always killed
        _signal_group(process, getattr(signal, "SIGKILL", signal.SIGTERM))
        await process.wait()


def _signal_group(process: asyncio.subprocess.Process, sig: int) -> None:
    try:
        if hasattr(os, "killpg"):
            os.killpg(process.pid, sig)
        elif process.returncode is None:
            process.kill()
    except (ProcessLookupError, PermissionError):
        pass


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
