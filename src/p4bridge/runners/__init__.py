"""Subprocess execution: the process invoker and the execution queue."""

from __future__ import annotations

from p4bridge.runners.command import CommandRunner
from p4bridge.runners.models import (
    CommandOutcome,
    CommandResult,
    HardFailure,
    Ok,
    SoftFailure,
)
from p4bridge.runners.queue import ExecutionQueue, Job

__all__ = [
    # Models
    "CommandOutcome",
    "CommandResult",
    "HardFailure",
    "Ok",
    "SoftFailure",
    # Runners
    "CommandRunner",
    "ExecutionQueue",
    "Job",
]
