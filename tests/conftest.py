from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Generator, Iterator
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def configure_test_logging() -> Generator[None, None, None]:
    """Configure structlog for the test run.

    Logs go to stderr at WARNING level so debug traces of every p4
    invocation do not drown test output.
    """
    from p4bridge.logging import configure_logging

    configure_logging(level=logging.WARNING)
    yield


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files.

    Also saves and restores the current working directory so tests that
    use os.chdir() do not affect each other.
    """
    original_cwd = os.getcwd()
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
    os.chdir(original_cwd)


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Remove all P4BRIDGE_ environment variables for clean testing."""
    original_env = os.environ.copy()
    for key in list(os.environ.keys()):
        if key.startswith("P4BRIDGE_"):
            del os.environ[key]
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def sample_config_yaml() -> str:
    """Return sample p4bridge.yaml content for testing."""
    return """
perforce:
  port: "ssl:perforce.example.com:1666"
  user: "build"
  client: "none"

queue:
  max_concurrent: 4
  debug_mode: true

fstat_batch_size: 16
network_retries: 2
"""
