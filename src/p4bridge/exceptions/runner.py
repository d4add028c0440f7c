from __future__ import annotations

from pathlib import Path

from p4bridge.exceptions.base import P4BridgeError


class RunnerError(P4BridgeError):
    """A process could not be run at all."""


class WorkingDirectoryError(RunnerError):
    """The directory a p4 process should run in is missing.

    Attributes:
        path: The missing directory.
    """

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = path
        super().__init__(message)
