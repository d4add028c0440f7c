from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_process() -> MagicMock:
    """Create a mock subprocess with a successful communicate()."""
    process = MagicMock()
    process.returncode = 0
    process.pid = 12345
    process.communicate = AsyncMock(return_value=(b"stdout output", b""))
    process.wait = AsyncMock()
    return process
