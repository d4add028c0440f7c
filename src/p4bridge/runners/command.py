"""Process invoker for the p4 executable.

:class:`CommandRunner` starts one process per call from an argument list
(never through a shell), optionally writes a stdin payload and closes the
pipe, then waits for exit and captures both output streams as text.

A process that cannot be started is reported in the result
(``spawn_error``) rather than raised, so callers handle every outcome in
one place. Failures that look like a lost server connection can be retried
with exponential backoff.
"""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from p4bridge.exceptions import WorkingDirectoryError
from p4bridge.logging import get_logger
from p4bridge.runners.models import CommandResult

__all__ = ["CommandRunner", "NETWORK_ERROR_MARKERS"]

logger = get_logger(__name__)

#: Lower-cased stderr fragments p4 prints when the server is unreachable.
NETWORK_ERROR_MARKERS: tuple[str, ...] = (
    "connect to server failed",
    "tcp connect to",
    "connection reset",
)

_MAX_BACKOFF_SECONDS = 10.0


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _last_result(state: RetryCallState) -> CommandResult:
    assert state.outcome is not None
    result: CommandResult = state.outcome.result()
    return result


def _log_retry(state: RetryCallState) -> None:
    result = state.outcome.result() if state.outcome else None
    logger.warning(
        "p4_network_error_retrying",
        attempt=state.attempt_number,
        stderr=result.stderr.strip() if result else None,
    )


class CommandRunner:
    """Run processes and collect their exit status and output.

    No timeout is applied: a process that never exits keeps its caller
    waiting.

    Args:
        cwd: Working directory used when :meth:`run` is given none.
        env: Variables added to the inherited environment for every run.

    Example:
        ```python
        runner = CommandRunner()
        result = await runner.run(
            ["p4", "change", "-i"], cwd=Path("/home/me/depot"), input=spec_text
        )
        ```
    """

    def __init__(
        self,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._cwd = cwd
        self._env = dict(env or {})

    @property
    def cwd(self) -> Path | None:
        return self._cwd

    def is_retryable(self, result: CommandResult) -> bool:
        """True for a failed run whose stderr reports a network error.

        Successful runs and spawn failures are never retried.
        """
        if result.success or result.spawn_error is not None:
            return False
        stderr = result.stderr.lower()
        return any(marker in stderr for marker in NETWORK_ERROR_MARKERS)

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        input: str | None = None,
        max_retries: int = 0,
        retry_delay: float = 1.0,
    ) -> CommandResult:
        """Run *command* to completion.

        Args:
            command: Executable followed by its arguments.
            cwd: Working directory for this run.
            env: Extra environment variables for this run.
            input: Text for stdin; stdin is not connected when None.
            max_retries: Extra attempts after a network error (0 = none).
            retry_delay: First backoff delay in seconds, doubled per retry.

        Returns:
            The result of the last attempt.

        Raises:
            WorkingDirectoryError: If the working directory does not exist.
        """
        workdir = cwd if cwd is not None else self._cwd
        if workdir is not None and not workdir.is_dir():
            raise WorkingDirectoryError(
                f"Working directory does not exist: {workdir}", path=workdir
            )
        process_env = {**os.environ, **self._env, **(env or {})}

        if max_retries <= 0:
            return await self._invoke(command, workdir, process_env, input)

        retrying = AsyncRetrying(
            retry=retry_if_result(self.is_retryable),
            stop=stop_after_attempt(max_retries + 1),
            wait=wait_exponential(
                multiplier=retry_delay, min=retry_delay, max=_MAX_BACKOFF_SECONDS
            ),
            before_sleep=_log_retry,
            retry_error_callback=_last_result,
        )
        result: CommandResult = await retrying(
            self._invoke, command, workdir, process_env, input
        )
        return result

    async def _invoke(
        self,
        command: Sequence[str],
        cwd: Path | None,
        env: dict[str, str],
        input: str | None,
    ) -> CommandResult:
        started = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE if input is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=env,
            )
        except FileNotFoundError:
            return CommandResult.spawn_failure(
                f"Command not found: {command[0]}", 127, _elapsed_ms(started)
            )
        except PermissionError:
            return CommandResult.spawn_failure(
                f"Permission denied: {command[0]}", 126, _elapsed_ms(started)
            )
        except OSError as e:
            return CommandResult.spawn_failure(
                f"Cannot start {command[0]}: {e}", 126, _elapsed_ms(started)
            )

        stdout, stderr = await process.communicate(
            input.encode("utf-8") if input is not None else None
        )
        return CommandResult(
            returncode=process.returncode or 0,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            duration_ms=_elapsed_ms(started),
        )
