from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from p4bridge.config import P4BridgeConfig, PerforceSettings, WorkspaceConfig
from p4bridge.perforce.client import PerforceClient
from p4bridge.perforce.service import PerforceService
from p4bridge.perforce.workspace import WorkspaceRegistry
from p4bridge.runners.command import CommandRunner
from p4bridge.runners.models import CommandResult

WORKSPACE_ROOT = Path("/home/user/depot")


@pytest.fixture
def workspace_root() -> Path:
    return WORKSPACE_ROOT


@pytest.fixture
def registry() -> WorkspaceRegistry:
    """Registry with one workspace and no global connection settings."""
    registry = WorkspaceRegistry(PerforceSettings())
    registry.add(WORKSPACE_ROOT, WorkspaceConfig(local_dir=str(WORKSPACE_ROOT)))
    return registry


@pytest.fixture
def mock_runner() -> AsyncMock:
    """CommandRunner mock; every command succeeds with empty output."""
    runner = AsyncMock(spec=CommandRunner)
    runner.run.return_value = CommandResult(
        returncode=0, stdout="", stderr="", duration_ms=1
    )
    return runner


@pytest.fixture
def settings() -> P4BridgeConfig:
    """Default settings, without reading the environment or YAML files."""
    return P4BridgeConfig.model_construct()


@pytest.fixture
def service(
    registry: WorkspaceRegistry, settings: P4BridgeConfig, mock_runner: AsyncMock
) -> PerforceService:
    return PerforceService(registry, settings, runner=mock_runner)


@pytest.fixture
def client(service: PerforceService) -> PerforceClient:
    return PerforceClient(service, WORKSPACE_ROOT)
