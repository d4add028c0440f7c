"""Results of running p4.

:class:`CommandResult` is what the process invoker observed. The command
gateway classifies it into one of :class:`Ok`, :class:`SoftFailure` or
:class:`HardFailure`.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "CommandResult",
    "CommandOutcome",
    "Ok",
    "SoftFailure",
    "HardFailure",
]


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Exit status and captured output of one process run.

    Attributes:
        returncode: Exit code from the command (0 = success).
        stdout: Standard output captured from the command.
        stderr: Standard error captured from the command.
        duration_ms: Execution time in milliseconds.
        spawn_error: OS-level reason the process could not be started, if any.
    """

    returncode: int
    stdout: str
    stderr: str
    duration_ms: int
    spawn_error: str | None = None

    @property
    def success(self) -> bool:
        """True if the process started and exited with status 0."""
        return self.returncode == 0 and self.spawn_error is None

    @classmethod
    def spawn_failure(
        cls, reason: str, returncode: int, duration_ms: int = 0
    ) -> CommandResult:
        """Result for a process that could not be started.

        *returncode* follows the shell convention (127 not found, 126 not
        executable) so the result never reads as a success.
        """
        return cls(
            returncode=returncode,
            stdout="",
            stderr="",
            duration_ms=duration_ms,
            spawn_error=reason,
        )


@dataclass(frozen=True, slots=True)
class Ok:
    """Clean exit with nothing on stderr.

    Attributes:
        stdout: Standard output of the command.
    """

    stdout: str


@dataclass(frozen=True, slots=True)
class SoftFailure:
    """Clean exit, but the tool reported something on stderr.

    Whether this is an error depends on the operation; some treat it as
    an expected "nothing found" answer.

    Attributes:
        stderr: Standard error text.
        stdout: Standard output, which may still hold partial results.
    """

    stderr: str
    stdout: str = ""


@dataclass(frozen=True, slots=True)
class HardFailure:
    """Non-zero exit or the process could not be spawned.

    Attributes:
        message: Human-readable description of the failure.
        stdout: Standard output captured before the failure.
        stderr: Standard error captured before the failure.
        returncode: Exit status, or None when the process never started.
    """

    message: str
    stdout: str = ""
    stderr: str = ""
    returncode: int | None = None

    @property
    def spawn_failed(self) -> bool:
        """True if the executable could not be started."""
        return self.returncode is None


#: Three-way classification of a finished invocation.
CommandOutcome = Ok | SoftFailure | HardFailure
