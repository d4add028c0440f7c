"""Workspace registry and per-invocation configuration resolution.

The registry is owned by whoever composes the adapter and passed by
reference to the gateway. It maps workspace roots to their
:class:`~p4bridge.config.WorkspaceConfig` and resolves any resource (a
workspace folder or a file inside one) to the settings of a single ``p4``
invocation.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from p4bridge.config import PerforceSettings, WorkspaceConfig
from p4bridge.constants import DEFAULT_P4_EXECUTABLE
from p4bridge.logging import get_logger

__all__ = [
    "ConfigResolver",
    "ResolvedConfig",
    "WorkspaceRegistry",
    "normalize_path",
]

logger = get_logger(__name__)


def normalize_path(path: Path | str) -> str:
    """Return *path* as a string with forward slashes."""
    return str(path).replace("\\", "/")


@dataclass(frozen=True, slots=True)
class ResolvedConfig:
    """Settings for one p4 invocation.

    Each connection value is None when unset, in which case the flag is
    omitted and p4 falls back to its own environment.

    Attributes:
        executable: Path to the p4 executable.
        user: Value for ``-u``.
        client: Value for ``-c``.
        port: Value for ``-p``.
        password: Value for ``-P``.
        directory: Value for ``-d``.
        cwd: Working directory for the process.
        local_dir: Workspace root, when the resource belongs to a workspace.
        strip_local_dir: Strip ``local_dir`` from arguments.
    """

    executable: str
    user: str | None = None
    client: str | None = None
    port: str | None = None
    password: str | None = None
    directory: str | None = None
    cwd: Path | None = None
    local_dir: str | None = None
    strip_local_dir: bool = False

    def global_flags(self) -> list[str]:
        """Build the global p4 flags preceding the subcommand."""
        flags: list[str] = []
        for flag, value in (
            ("-u", self.user),
            ("-c", self.client),
            ("-p", self.port),
            ("-P", self.password),
            ("-d", self.directory),
        ):
            if value:
                flags.extend([flag, value])
        return flags

    def strip_args(self, args: list[str]) -> list[str]:
        """Remove the workspace root prefix from arguments when configured."""
        if not self.strip_local_dir or not self.local_dir:
            return list(args)
        stripped: list[str] = []
        for arg in args:
            normalized = normalize_path(arg)
            if normalized.startswith(self.local_dir):
                stripped.append(normalized[len(self.local_dir) :])
            else:
                stripped.append(arg)
        return stripped


@runtime_checkable
class ConfigResolver(Protocol):
    """Resolves a resource to the settings of one p4 invocation.

    Called for every invocation; implementations decide whether to cache.
    """

    def resolve(self, resource: Path) -> ResolvedConfig:
        """Return the invocation settings for *resource*."""
        ...


class WorkspaceRegistry:
    """Registry of open workspaces and their p4 settings.

    Global :class:`PerforceSettings` supply defaults; the settings of the
    workspace containing a resource override them value by value.

    Example:
        ```python
        registry = WorkspaceRegistry(PerforceSettings(port="ssl:p4:1666"))
        registry.add(
            Path("/home/me/depot"), WorkspaceConfig(local_dir="/home/me/depot")
        )
        resolved = registry.resolve(Path("/home/me/depot/src/main.c"))
        ```
    """

    def __init__(self, settings: PerforceSettings | None = None) -> None:
        self._settings = settings or PerforceSettings()
        self._workspaces: dict[str, WorkspaceConfig] = {}

    @property
    def settings(self) -> PerforceSettings:
        return self._settings

    def add(self, workspace_path: Path | str, config: WorkspaceConfig) -> None:
        """Register (or replace) the settings for a workspace root."""
        key = self._key(workspace_path)
        self._workspaces[key] = config
        logger.debug("workspace_registered", workspace=key)

    def remove(self, workspace_path: Path | str) -> None:
        """Forget a workspace; unknown workspaces are ignored."""
        key = self._key(workspace_path)
        if self._workspaces.pop(key, None) is not None:
            logger.debug("workspace_removed", workspace=key)

    def get(self, workspace_path: Path | str) -> WorkspaceConfig | None:
        return self._workspaces.get(self._key(workspace_path))

    def workspaces(self) -> list[str]:
        """Registered workspace roots, in registration order."""
        return list(self._workspaces)

    def find_workspace(self, resource: Path | str) -> str | None:
        """Return the registered root that contains *resource*, if any.

        The longest matching root wins, so nested workspaces resolve to the
        innermost one.
        """
        target = self._key(resource)
        best: str | None = None
        for root in self._workspaces:
            if target == root or target.startswith(root.rstrip("/") + "/"):
                if best is None or len(root) > len(best):
                    best = root
        return best

    def convert_to_rel(self, path: Path | str) -> str:
        """Strip the workspace root from *path* when the workspace asks for it.

        Only applies when the workspace has ``strip_local_dir`` set and a
        ``p4_dir`` configured; otherwise *path* is returned unchanged.
        """
        root = self.find_workspace(path)
        config = self._workspaces.get(root) if root else None
        if (
            config is None
            or not config.strip_local_dir
            or not config.local_dir
            or not config.p4_dir
        ):
            return str(path)
        normalized = normalize_path(path)
        if normalized.startswith(config.local_dir):
            return normalized[len(config.local_dir) :]
        return str(path)

    def resolve(self, resource: Path) -> ResolvedConfig:
        """Resolve *resource* to invocation settings.

        The working directory is the workspace's ``local_dir`` when the
        resource belongs to a registered workspace; otherwise the resource
        itself if it is a directory, or its parent.
        """
        settings = self._settings
        root = self.find_workspace(resource)
        config = self._workspaces.get(root) if root else None

        if config is not None:
            cwd: Path | None = Path(config.local_dir)
        elif resource.is_dir():
            cwd = resource
        else:
            cwd = resource.parent

        return ResolvedConfig(
            executable=settings.command or DEFAULT_P4_EXECUTABLE,
            user=_first(config.p4_user if config else None, settings.user),
            client=_first(config.p4_client if config else None, settings.client),
            port=_first(config.p4_port if config else None, settings.port),
            password=_first(config.p4_pass if config else None, settings.password),
            directory=_first(config.p4_dir if config else None, settings.dir),
            cwd=cwd,
            local_dir=config.local_dir if config else None,
            strip_local_dir=config.strip_local_dir if config else False,
        )

    @staticmethod
    def _key(path: Path | str) -> str:
        normalized = normalize_path(path)
        if len(normalized) > 1:
            normalized = normalized.rstrip("/")
        return normalized


def _first(*values: str | None) -> str | None:
    for value in values:
        if value:
            return value
    return None
