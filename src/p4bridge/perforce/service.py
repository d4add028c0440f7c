"""Command gateway for the p4 executable.

:class:`PerforceService` combines the execution queue and the command
runner behind one async :meth:`~PerforceService.execute` call, and applies
the exit-status/stderr convention uniformly:

- the process could not start, or exited non-zero: :class:`HardFailure`
- exit 0 with something on stderr: :class:`SoftFailure`
- exit 0 with empty stderr: :class:`Ok`

Whether a soft failure is an error is left to the caller.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from p4bridge.config import P4BridgeConfig
from p4bridge.exceptions import (
    PerforceCommandError,
    PerforceSpawnError,
    PerforceStderrError,
    WorkingDirectoryError,
)
from p4bridge.logging import get_logger, log_context
from p4bridge.perforce.workspace import ConfigResolver, ResolvedConfig
from p4bridge.runners.command import CommandRunner
from p4bridge.runners.models import (
    CommandOutcome,
    CommandResult,
    HardFailure,
    Ok,
    SoftFailure,
)
from p4bridge.runners.queue import ExecutionQueue

__all__ = [
    "ExecuteCallback",
    "PerforceService",
    "build_command",
    "classify",
    "raise_for_outcome",
]

logger = get_logger(__name__)

#: Callback-style completion: ``(error message or None, stdout, stderr)``.
ExecuteCallback = Callable[[str | None, str, str], None]


def build_command(
    resolved: ResolvedConfig,
    command: str,
    args: list[str] | None = None,
    *,
    directory_override: str | None = None,
) -> list[str]:
    """Build the full argument list for one p4 invocation.

    Args:
        resolved: Settings for the invocation.
        command: The p4 subcommand (``"opened"``, ``"change"``, ...).
        args: Subcommand arguments.
        directory_override: Replaces the resolved ``-d`` directory.

    Returns:
        ``[executable, *global flags, command, *args]``.
    """
    if directory_override:
        resolved = replace(resolved, directory=directory_override)
    return [
        resolved.executable,
        *resolved.global_flags(),
        command,
        *resolved.strip_args(args or []),
    ]


def classify(command: str, result: CommandResult) -> CommandOutcome:
    """Classify a finished invocation as Ok, SoftFailure or HardFailure."""
    if result.spawn_error is not None:
        return HardFailure(
            message=result.spawn_error,
            stdout=result.stdout,
            stderr=result.stderr,
        )
    if result.returncode != 0:
        return HardFailure(
            message=(
                result.stderr.strip()
                or f"p4 {command} exited with code {result.returncode}"
            ),
            stdout=result.stdout,
            stderr=result.stderr,
            returncode=result.returncode,
        )
    if result.stderr.strip():
        return SoftFailure(stderr=result.stderr, stdout=result.stdout)
    return Ok(stdout=result.stdout)


class PerforceService:
    """Runs p4 commands for workspace resources.

    Configuration is resolved for every call, so registry changes take
    effect on the next command. All invocations share one
    :class:`ExecutionQueue`, which bounds how many p4 processes run at
    once.

    Example:
        ```python
        registry = WorkspaceRegistry(config.perforce)
        service = PerforceService(registry, config)
        outcome = await service.execute(Path("/home/me/depot"), "opened")
        if isinstance(outcome, Ok):
            print(outcome.stdout)
        ```
    """

    def __init__(
        self,
        resolver: ConfigResolver,
        settings: P4BridgeConfig | None = None,
        *,
        queue: ExecutionQueue | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self._resolver = resolver
        self._settings = settings or P4BridgeConfig()
        self._queue = queue or ExecutionQueue(
            self._settings.queue.max_concurrent,
            debug_mode=self._settings.queue.debug_mode,
        )
        self._runner = runner or CommandRunner()
        self._job_ids = itertools.count(1)

    @property
    def queue(self) -> ExecutionQueue:
        return self._queue

    @property
    def settings(self) -> P4BridgeConfig:
        return self._settings

    async def execute(
        self,
        resource: Path,
        command: str,
        args: list[str] | None = None,
        *,
        directory_override: str | None = None,
        input: str | None = None,
    ) -> CommandOutcome:
        """Run ``p4 <command> <args>`` for *resource* and classify the result.

        Args:
            resource: Workspace folder or file the command applies to.
            command: The p4 subcommand.
            args: Subcommand arguments.
            directory_override: Value for ``-d`` in place of the resolved one.
            input: Text piped to the process's stdin.

        Returns:
            Ok, SoftFailure or HardFailure. Never raises for a failed
            command; a missing working directory is a HardFailure like any
            other process that cannot be started.
        """
        resolved = self._resolver.resolve(resource)
        argv = build_command(
            resolved, command, args, directory_override=directory_override
        )
        label = f"<JOB_ID:{next(self._job_ids)}:{command}>"

        async def invoke() -> CommandResult:
            logger.debug(
                "p4_command_started",
                argv=argv,
                cwd=str(resolved.cwd) if resolved.cwd else None,
                has_input=input is not None,
            )
            try:
                return await self._runner.run(
                    argv,
                    cwd=resolved.cwd,
                    input=input,
                    max_retries=self._settings.network_retries,
                )
            except WorkingDirectoryError as e:
                return CommandResult.spawn_failure(e.message, 127)

        with log_context(p4_job=label):
            result = await self._queue.run(invoke, label=label)
            outcome = classify(command, result)
            if isinstance(outcome, HardFailure):
                logger.debug(
                    "p4_command_failed",
                    returncode=outcome.returncode,
                    error=outcome.message,
                    duration_ms=result.duration_ms,
                )
            else:
                logger.debug(
                    "p4_command_completed",
                    soft_failure=isinstance(outcome, SoftFailure),
                    duration_ms=result.duration_ms,
                )
        return outcome

    async def execute_checked(
        self,
        resource: Path,
        command: str,
        args: list[str] | None = None,
        *,
        directory_override: str | None = None,
        input: str | None = None,
    ) -> str:
        """Run a command and return stdout, raising on any failure.

        Raises:
            PerforceSpawnError: If p4 could not be started.
            PerforceCommandError: If p4 exited with a non-zero status.
            PerforceStderrError: If p4 exited cleanly but wrote to stderr.
        """
        outcome = await self.execute(
            resource,
            command,
            args,
            directory_override=directory_override,
            input=input,
        )
        return raise_for_outcome(command, outcome)

    def execute_with_callback(
        self,
        resource: Path,
        command: str,
        callback: ExecuteCallback,
        args: list[str] | None = None,
        *,
        directory_override: str | None = None,
        input: str | None = None,
    ) -> asyncio.Task[None]:
        """Run a command and report the result to *callback*.

        The callback receives the failure message for a hard failure (None
        otherwise), stdout and stderr. It runs after the queue slot has
        been released.

        Returns:
            The task driving the command.
        """

        async def drive() -> None:
            outcome = await self.execute(
                resource,
                command,
                args,
                directory_override=directory_override,
                input=input,
            )
            if isinstance(outcome, HardFailure):
                callback(outcome.message, outcome.stdout, outcome.stderr)
            elif isinstance(outcome, SoftFailure):
                callback(None, outcome.stdout, outcome.stderr)
            else:
                callback(None, outcome.stdout, "")

        return asyncio.get_running_loop().create_task(drive())


def raise_for_outcome(command: str, outcome: CommandOutcome) -> str:
    """Return stdout of an Ok outcome, or raise the matching PerforceError."""
    if isinstance(outcome, HardFailure):
        if outcome.spawn_failed:
            raise PerforceSpawnError(
                outcome.message, command=command, stderr=outcome.stderr
            )
        raise PerforceCommandError(
            outcome.message,
            command=command,
            stderr=outcome.stderr,
            returncode=outcome.returncode,
        )
    if isinstance(outcome, SoftFailure):
        raise PerforceStderrError(
            outcome.stderr.strip(), command=command, stderr=outcome.stderr
        )
    return outcome.stdout
