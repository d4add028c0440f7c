"""Perforce (p4) exceptions.

Exceptions raised by the command gateway and the API facade when a ``p4``
invocation is classified as a failure.
"""

from __future__ import annotations

from p4bridge.exceptions.base import P4BridgeError


class PerforceError(P4BridgeError):
    """Base exception for p4 operations.

    Attributes:
        message: Human-readable error message.
        command: The p4 subcommand that failed (e.g. ``"submit"``).
        stderr: Raw stderr from the p4 process.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        stderr: str | None = None,
    ) -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(message)


class PerforceCommandError(PerforceError):
    """``p4`` exited with a non-zero status (hard failure).

    Attributes:
        returncode: Exit status of the process, if it ran at all.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        stderr: str | None = None,
        returncode: int | None = None,
    ) -> None:
        self.returncode = returncode
        super().__init__(message, command=command, stderr=stderr)


class PerforceSpawnError(PerforceCommandError):
    """The ``p4`` executable could not be started (missing or not executable)."""


class PerforceStderrError(PerforceError):
    """``p4`` exited cleanly but reported an error on stderr.

    Raised only by operations that do not tolerate stderr output.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        stderr: str | None = None,
    ) -> None:
        super().__init__(message, command=command, stderr=stderr)


class ClientRootError(PerforceError):
    """``p4 info`` did not report a usable client root."""

    def __init__(
        self,
        message: str = "P4 Info didn't specify a valid Client Root path",
    ) -> None:
        super().__init__(message, command="info")


__all__ = [
    "ClientRootError",
    "PerforceCommandError",
    "PerforceError",
    "PerforceSpawnError",
    "PerforceStderrError",
]
