"""p4bridge exception hierarchy.

All exceptions can be imported from this package:
    from p4bridge.exceptions import PerforceError, ConfigError
"""

from __future__ import annotations

# Base exception
from p4bridge.exceptions.base import P4BridgeError

# Configuration exceptions
from p4bridge.exceptions.config import ConfigError

# Perforce exceptions
from p4bridge.exceptions.perforce import (
    ClientRootError,
    PerforceCommandError,
    PerforceError,
    PerforceSpawnError,
    PerforceStderrError,
)

# Runner exceptions
from p4bridge.exceptions.runner import RunnerError, WorkingDirectoryError

__all__ = [
    # Base
    "P4BridgeError",
    # Config
    "ConfigError",
    # Perforce
    "ClientRootError",
    "PerforceCommandError",
    "PerforceError",
    "PerforceSpawnError",
    "PerforceStderrError",
    # Runner
    "RunnerError",
    "WorkingDirectoryError",
]
