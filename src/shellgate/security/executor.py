"""
Gateway executor for agent command requests.

This module is the public entry point: it validates requests, classifies
commands, hands approved ones to the process launcher and records every
decision in the audit log.
"""

import asyncio
import getpass
import logging
import os
import platform
import re
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from shellgate.security.classifier import CommandClassifier
from shellgate.security.launcher import ProcessLauncher
from shellgate.security.models import (
    DEFAULT_MAX_COMMAND_LENGTH,
    DEFAULT_TIMEOUT_MS,
    FAILED_EXIT_CODE,
    CommandVerdict,
    ExecutionRequest,
    ExecutionResult,
)
from shellgate.security.patterns import PatternLibrary

if TYPE_CHECKING:
    from shellgate.audit.logger import AuditLogger
    from shellgate.config.schema import Config

logger = logging.getLogger(__name__)

_PROGRAM_NAME = re.compile(r"^[\w./+-]+$")
_PROBE_TIMEOUT_SECONDS = 5.0


class ShellExecutor:
    """
    Executes agent commands through the gateway.

    Provides:
    - Length and policy checks before anything is spawned
    - Single commands, stop-on-error sequences and stdin-piped commands
    - Availability probing and environment introspection
    - Audit logging integration

    No exception escapes an execution call: every failure is reported in
    the returned ExecutionResult.
    """

    def __init__(
        self,
        classifier: CommandClassifier | None = None,
        launcher: ProcessLauncher | None = None,
        audit_logger: "AuditLogger | None" = None,
        max_command_length: int = DEFAULT_MAX_COMMAND_LENGTH,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        """
        Initialize the executor.

        Args:
            classifier: Command classifier (default: built-in tables)
            launcher: Process launcher (default: /bin/sh, current directory)
            audit_logger: Audit logger for recording executions
            max_command_length: Longest command accepted, in characters
            default_timeout_ms: Timeout used when a request names none
        """
        self.classifier = classifier or CommandClassifier()
        self.launcher = launcher or ProcessLauncher()
        self.audit_logger = audit_logger
        self.max_command_length = max_command_length
        self.default_timeout_ms = default_timeout_ms

    @classmethod
    def from_config(
        cls, config: "Config", audit_logger: "AuditLogger | None" = None
    ) -> "ShellExecutor":
        """
        Create an executor from configuration.

        Args:
            config: Root configuration
            audit_logger: Optional audit logger

        Returns:
            Configured ShellExecutor instance
        """
        security = config.security
        classifier = CommandClassifier(
            library=PatternLibrary.from_config(security),
            unknown_policy=security.unknown_command_policy,
        )
        launcher = ProcessLauncher(
            default_working_dir=security.default_working_dir,
            max_output_chars=security.max_output_chars,
            shell=security.shell,
            kill_grace_ms=security.kill_grace_ms,
        )
        return cls(
            classifier=classifier,
            launcher=launcher,
            audit_logger=audit_logger,
            max_command_length=security.max_command_length,
            default_timeout_ms=security.default_timeout_ms,
        )

    def check_command(self, command: str) -> CommandVerdict:
        """
        Check whether a command would be allowed, without running it.

        Args:
            command: Command to check

        Returns:
            CommandVerdict result
        """
        if len(command) > self.max_command_length:
            return CommandVerdict.block(
                f"Command too long (max {self.max_command_length} characters)"
            )
        return self.classifier.classify(command)

    async def execute(
        self,
        request: ExecutionRequest | str,
        working_dir: str | Path | None = None,
        timeout_ms: int | None = None,
        environment: Mapping[str, str] | None = None,
        stdin: str | None = None,
    ) -> ExecutionResult:
        """
        Execute a command if policy allows it.

        Args:
            request: An ExecutionRequest, or a bare command string
            working_dir: Working directory (ignored when request is a model)
            timeout_ms: Timeout in milliseconds, clamped to [1000, 300000]
            environment: Environment overrides
            stdin: Text piped to the command

        Returns:
            ExecutionResult with output and status
        """
        if isinstance(request, str):
            try:
                request = ExecutionRequest(
                    command=request,
                    working_dir=working_dir,
                    timeout_ms=timeout_ms if timeout_ms is not None else self.default_timeout_ms,
                    environment=dict(environment or {}),
                    stdin=stdin,
                )
            except ValidationError as e:
                return self._blocked(request, f"Invalid request: {e.error_count()} validation error(s)")

        command = request.command
        check = self.check_command(command)

        if not check.allowed:
            return self._blocked(command, check.reason)

        if check.warning:
            logger.info(f"{check.reason} ({command[:100]})")
            if self.audit_logger:
                self.audit_logger.log_command_warning(command=command, reason=check.reason)

        if self.audit_logger:
            self.audit_logger.log_command_start(
                command=command,
                working_dir=str(request.working_dir) if request.working_dir else None,
            )

        try:
            result = await self.launcher.run(
                command,
                working_dir=request.working_dir,
                timeout_ms=request.timeout_ms,
                environment=request.environment,
                stdin=request.stdin,
            )
        except Exception as e:
            logger.error(f"Command execution error: {e}", exc_info=True)
            result = ExecutionResult(exit_code=FAILED_EXIT_CODE, stderr=f"Execution failed: {e}")

        if check.warning:
            result.warning = check.reason

        self._audit_result(command, request.timeout_ms, result)
        return result

    async def execute_sequence(
        self,
        commands: Sequence[str],
        working_dir: str | Path | None = None,
        timeout_ms: int | None = None,
        stop_on_error: bool = True,
    ) -> list[ExecutionResult]:
        """
        Execute commands one after another.

        With stop_on_error, the first blocked or non-zero result ends the
        sequence and is the last element returned.
        """
        results: list[ExecutionResult] = []

        for command in commands:
            result = await self.execute(command, working_dir=working_dir, timeout_ms=timeout_ms)
            results.append(result)

            if stop_on_error and (result.exit_code != 0 or result.blocked):
                logger.debug(f"Sequence stopped after {len(results)} of {len(commands)} commands")
                break

        return results

    async def execute_with_input(
        self,
        command: str,
        stdin: str,
        working_dir: str | Path | None = None,
        timeout_ms: int | None = None,
    ) -> ExecutionResult:
        """Execute a command with text piped to its standard input."""
        return await self.execute(command, working_dir=working_dir, timeout_ms=timeout_ms, stdin=stdin)

    async def is_command_available(self, name: str) -> bool:
        """
        Check whether a program can be found on PATH.

        The lookup runs without a shell and bypasses classification.
        """
        if not _PROGRAM_NAME.match(name):
            return False

        lookup = "where" if os.name == "nt" else "which"
        try:
            process = await asyncio.create_subprocess_exec(
                lookup,
                name,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            exit_code = await asyncio.wait_for(process.wait(), timeout=_PROBE_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.warning(f"Availability check timed out: {name}")
            return False
        except Exception:
            logger.error(f"Failed to check command availability: {name}", exc_info=True)
            return False

        return exit_code == 0

    async def get_system_info(self) -> dict[str, str]:
        """
        Collect basic facts about the execution environment.

        Keys whose probe fails are left out.
        """
        info: dict[str, str] = {}

        static_probes: dict[str, Callable[[], str]] = {
            "os.name": platform.system,
            "os.version": platform.release,
            "os.arch": platform.machine,
            "user.name": getpass.getuser,
            "user.home": lambda: str(Path.home()),
            "python.version": platform.python_version,
        }
        for key, probe in static_probes.items():
            try:
                value = probe()
            except Exception as e:
                logger.debug(f"System info probe {key} failed: {e}")
                continue
            if value:
                info[key] = value

        for key, command in (("pwd", "pwd"), ("shell", "echo $SHELL")):
            result = await self.execute(command)
            if result.success and result.stdout.strip():
                info[key] = result.stdout.strip()
            else:
                logger.debug(f"System info probe {key} failed: {result.stderr}")

        return info

    def _blocked(self, command: str, reason: str) -> ExecutionResult:
        logger.warning(f"Blocked command: {reason}")
        if self.audit_logger:
            self.audit_logger.log_command_blocked(command=command, reason=reason)
        return ExecutionResult.blocked_by(reason)

    def _audit_result(self, command: str, timeout_ms: int, result: ExecutionResult) -> None:
        if not self.audit_logger:
            return

        if result.timed_out:
            self.audit_logger.log_command_timeout(command=command, timeout_ms=timeout_ms)
        elif result.exit_code == FAILED_EXIT_CODE and result.stderr.startswith("Execution failed"):
            self.audit_logger.log_command_error(command=command, error=result.stderr)
        else:
            self.audit_logger.log_command_complete(
                command=command,
                exit_code=result.exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
                duration_ms=result.duration_ms,
            )
