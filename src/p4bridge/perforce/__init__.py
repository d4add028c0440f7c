"""Perforce (p4) adapter: gateway, output parsers and typed API.

Typical composition:
    registry = WorkspaceRegistry(config.perforce)
    service = PerforceService(registry, config)
    client = PerforceClient(service, workspace_root)
"""

from __future__ import annotations

from p4bridge.perforce.changespec import decode, encode
from p4bridge.perforce.client import PerforceClient, escape_path
from p4bridge.perforce.models import (
    Annotation,
    ChangeInfo,
    ChangelistResult,
    ChangelistStatus,
    ChangeSpec,
    ChangeSpecFile,
    DepotFileOperation,
    DescribedChangelist,
    Direction,
    FileLogIntegration,
    FileLogItem,
    FixedJob,
    FstatInfo,
    HaveFile,
    IntegratedRevision,
    OpenedFile,
    OpenedFileDetails,
    RawField,
    ResolveWarning,
    ShelvedChangeInfo,
    UnopenedFile,
    UnopenedFileReason,
    UnshelvedFile,
    UnshelvedFiles,
    WhereFile,
)
from p4bridge.perforce.service import PerforceService
from p4bridge.perforce.workspace import (
    ConfigResolver,
    ResolvedConfig,
    WorkspaceRegistry,
)

__all__ = [
    # Gateway and API
    "ConfigResolver",
    "PerforceClient",
    "PerforceService",
    "ResolvedConfig",
    "WorkspaceRegistry",
    "escape_path",
    # Change spec codec
    "decode",
    "encode",
    # Records
    "Annotation",
    "ChangeInfo",
    "ChangeSpec",
    "ChangeSpecFile",
    "ChangelistResult",
    "ChangelistStatus",
    "DepotFileOperation",
    "DescribedChangelist",
    "Direction",
    "FileLogIntegration",
    "FileLogItem",
    "FixedJob",
    "FstatInfo",
    "HaveFile",
    "IntegratedRevision",
    "OpenedFile",
    "OpenedFileDetails",
    "RawField",
    "ResolveWarning",
    "ShelvedChangeInfo",
    "UnopenedFile",
    "UnopenedFileReason",
    "UnshelvedFile",
    "UnshelvedFiles",
    "WhereFile",
]
