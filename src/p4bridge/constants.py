"""Constants shared across p4bridge."""

from __future__ import annotations

import sys

#: Default number of concurrently running p4 processes.
DEFAULT_MAX_CONCURRENT: int = 10

#: Largest number of paths p4 accepts in a single fstat call.
FSTAT_BATCH_SIZE: int = 32

#: Executable used when no command path is configured.
DEFAULT_P4_EXECUTABLE: str = "p4.exe" if sys.platform.startswith("win") else "p4"

#: Settings value meaning "not configured" (inherited from the editor settings).
UNSET_VALUE: str = "none"

#: Name of the per-workspace config file when P4CONFIG is not set.
DEFAULT_CONFIG_FILENAME: str = ".p4config"

#: Project-level p4bridge settings file, looked up in the current directory.
PROJECT_CONFIG_NAME: str = "p4bridge.yaml"
