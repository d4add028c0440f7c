"""Typed records produced by the p4 output parsers.

Value records are frozen dataclasses with ``to_dict()`` for serialization.
Optional fields are ``None`` when the tool did not report them; an empty
string always means the tool reported an empty value.

:class:`ChangeSpec` is the one mutable record: callers edit its typed views
before submitting it back with ``p4 change -i``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

#: Per-file fstat fields (``depotFile``, ``headRev``, ...) mapped to values.
FstatInfo = dict[str, str]


class Direction(str, Enum):
    """Which side of an integration record the file is on."""

    #: The revision was integrated from the other file.
    FROM = "from"
    #: The revision was integrated into the other file.
    TO = "to"


class ChangelistStatus(str, Enum):
    """Changelist status filter for ``p4 changes -s``."""

    PENDING = "pending"
    SHELVED = "shelved"
    SUBMITTED = "submitted"


class UnopenedFileReason(str, Enum):
    """Why ``p4 opened`` reported a file as not open."""

    NOT_OPENED = "not_opened"
    NOT_IN_ROOT = "not_in_root"


# =============================================================================
# Change specification
# =============================================================================


@dataclass(frozen=True, slots=True)
class RawField:
    """One field of a change specification, exactly as the tool emitted it.

    Attributes:
        name: Field name without the trailing colon (e.g. ``"Jobs"``).
        value: The field's lines, with indentation removed.
    """

    name: str
    value: tuple[str, ...]

    def to_dict(self) -> dict[str, object]:
        return {"name": self.name, "value": list(self.value)}


@dataclass(frozen=True, slots=True)
class ChangeSpecFile:
    """A line of the ``Files`` field.

    Attributes:
        depot_path: Depot path of the file.
        action: Open action (``edit``, ``add``, ...), None if not given.
    """

    depot_path: str
    action: str | None = None

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(slots=True)
class ChangeSpec:
    """A changelist specification as edited by ``p4 change``.

    ``raw_fields`` holds every field the tool emitted, in order.
    ``description`` and ``files`` are views over the ``Description`` and
    ``Files`` fields; when set they take precedence over the raw value on
    encode. Fields with no typed view (``Jobs``, ``Client``, ...) are
    re-emitted verbatim.

    Attributes:
        change: ``"new"`` or an existing changelist number.
        description: Description text, None if not set.
        files: Files in the changelist, None if the spec has no Files field.
        raw_fields: All fields, in the order the tool emitted them.
    """

    change: str
    description: str | None = None
    files: list[ChangeSpecFile] | None = None
    raw_fields: list[RawField] = field(default_factory=list)

    def raw_field(self, name: str) -> RawField | None:
        """Return the raw field called *name*, if present."""
        for raw in self.raw_fields:
            if raw.name == name:
                return raw
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "change": self.change,
            "description": self.description,
            "files": None if self.files is None else [f.to_dict() for f in self.files],
            "raw_fields": [r.to_dict() for r in self.raw_fields],
        }


@dataclass(frozen=True, slots=True)
class ChangelistResult:
    """Result of creating, updating or submitting a changelist.

    Attributes:
        raw_output: The tool's full stdout.
        chnum: Changelist number reported by the tool, None if not found.
    """

    raw_output: str
    chnum: str | None = None

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


# =============================================================================
# Opened files / fstat / have / where
# =============================================================================


@dataclass(frozen=True, slots=True)
class OpenedFile:
    """One line of ``p4 opened`` output.

    Attributes:
        depot_path: Depot path of the open file.
        revision: Revision the file was opened at.
        chnum: Changelist number, or ``"default"``.
        operation: Open action (``edit``, ``move/add``, ...).
        filetype: File type (``text``, ``binary+l``, ...).
        message: The original output line.
    """

    depot_path: str
    revision: str
    chnum: str
    operation: str
    filetype: str
    message: str

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class UnopenedFile:
    """A path ``p4 opened`` reported on stderr as not open.

    Attributes:
        file_path: The path as given to the tool.
        reason: Why the file is not open.
        message: The original stderr line.
    """

    file_path: str
    reason: UnopenedFileReason
    message: str

    def to_dict(self) -> dict[str, object]:
        return {
            "file_path": self.file_path,
            "reason": self.reason.value,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class OpenedFileDetails:
    """Open and unopened files among a set of requested paths."""

    open: tuple[OpenedFile, ...] = ()
    unopen: tuple[UnopenedFile, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "open": [f.to_dict() for f in self.open],
            "unopen": [f.to_dict() for f in self.unopen],
        }


@dataclass(frozen=True, slots=True)
class HaveFile:
    """A line of ``p4 have`` output.

    Attributes:
        depot_path: Depot path of the synced file.
        revision: Revision in the workspace.
        local_path: Local path of the file.
    """

    depot_path: str
    revision: str
    local_path: Path

    def to_dict(self) -> dict[str, object]:
        return {
            "depot_path": self.depot_path,
            "revision": self.revision,
            "local_path": str(self.local_path),
        }


@dataclass(frozen=True, slots=True)
class WhereFile:
    """A line of ``p4 where`` output.

    Attributes:
        depot_path: Depot syntax.
        client_path: Client syntax.
        local_path: Local syntax.
    """

    depot_path: str
    client_path: str
    local_path: str

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


# =============================================================================
# Changelists / describe
# =============================================================================


@dataclass(frozen=True, slots=True)
class ChangeInfo:
    """A changelist from ``p4 changes -l``.

    Attributes:
        chnum: Changelist number.
        date: Date of the change.
        user: Owner.
        client: Workspace the change belongs to.
        is_pending: True if the change is pending.
        description: Description lines.
    """

    chnum: str
    date: datetime | None
    user: str
    client: str
    is_pending: bool
    description: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "chnum": self.chnum,
            "date": self.date.isoformat() if self.date else None,
            "user": self.user,
            "client": self.client,
            "is_pending": self.is_pending,
            "description": list(self.description),
        }


@dataclass(frozen=True, slots=True)
class FixedJob:
    """A job listed in the ``Jobs fixed`` section of ``p4 describe``."""

    id: str
    description: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "description": list(self.description)}


@dataclass(frozen=True, slots=True)
class DepotFileOperation:
    """A file listed in the affected or shelved files of ``p4 describe``."""

    depot_path: str
    revision: str
    operation: str

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class DescribedChangelist:
    """One changelist block of ``p4 describe`` output.

    Section lists are empty, never None, when a section has no entries.
    """

    chnum: str
    user: str
    client: str
    date: datetime | None
    is_pending: bool
    description: tuple[str, ...] = ()
    fixed_jobs: tuple[FixedJob, ...] = ()
    affected_files: tuple[DepotFileOperation, ...] = ()
    shelved_files: tuple[DepotFileOperation, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "chnum": self.chnum,
            "user": self.user,
            "client": self.client,
            "date": self.date.isoformat() if self.date else None,
            "is_pending": self.is_pending,
            "description": list(self.description),
            "fixed_jobs": [j.to_dict() for j in self.fixed_jobs],
            "affected_files": [f.to_dict() for f in self.affected_files],
            "shelved_files": [f.to_dict() for f in self.shelved_files],
        }


@dataclass(frozen=True, slots=True)
class ShelvedChangeInfo:
    """A changelist that has shelved files.

    Attributes:
        chnum: Changelist number.
        paths: Depot paths of the shelved files, without revisions.
    """

    chnum: int
    paths: tuple[str, ...]

    def to_dict(self) -> dict[str, object]:
        return {"chnum": self.chnum, "paths": list(self.paths)}


@dataclass(frozen=True, slots=True)
class UnshelvedFile:
    """A file opened by ``p4 unshelve``."""

    depot_path: str
    operation: str

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ResolveWarning:
    """A file that must be resolved before the change can be submitted."""

    depot_path: str
    resolve_path: str

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class UnshelvedFiles:
    """Result of ``p4 unshelve``."""

    files: tuple[UnshelvedFile, ...] = ()
    warnings: tuple[ResolveWarning, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "files": [f.to_dict() for f in self.files],
            "warnings": [w.to_dict() for w in self.warnings],
        }


# =============================================================================
# History / integrations / annotations
# =============================================================================


@dataclass(frozen=True, slots=True)
class FileLogIntegration:
    """An integration line under a ``p4 filelog`` revision.

    Attributes:
        direction: FROM if this revision came from *file*, TO if it went into it.
        file: The other file.
        start_rev: First revision of the range, None for a single revision.
        end_rev: Last (or only) revision of the range.
        operation: Kind of integration (branch, integrate, copy, move, ...).
    """

    direction: Direction
    file: str
    start_rev: str | None
    end_rev: str
    operation: str

    def to_dict(self) -> dict[str, object]:
        return {
            "direction": self.direction.value,
            "file": self.file,
            "start_rev": self.start_rev,
            "end_rev": self.end_rev,
            "operation": self.operation,
        }


@dataclass(frozen=True, slots=True)
class FileLogItem:
    """One revision of a file from ``p4 filelog``."""

    file: str
    revision: str
    chnum: str
    operation: str
    date: datetime | None
    user: str
    client: str
    filetype: str
    description: str
    integrations: tuple[FileLogIntegration, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "file": self.file,
            "revision": self.revision,
            "chnum": self.chnum,
            "operation": self.operation,
            "date": self.date.isoformat() if self.date else None,
            "user": self.user,
            "client": self.client,
            "filetype": self.filetype,
            "description": self.description,
            "integrations": [i.to_dict() for i in self.integrations],
        }


@dataclass(frozen=True, slots=True)
class IntegratedRevision:
    """A line of ``p4 integrated`` output.

    Attributes:
        display_direction: ``"into"`` or ``"from"`` as printed by the tool.
        from_file: Source file.
        from_start_rev: First source revision, None for a single revision.
        from_end_rev: Last (or only) source revision.
        operation: How the revision was integrated (edit, branch, copy, ...).
        to_file: Target file.
        to_rev: Target revision.
    """

    display_direction: str
    from_file: str
    from_start_rev: str | None
    from_end_rev: str
    operation: str
    to_file: str
    to_rev: str

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Annotation:
    """One annotated source line from ``p4 annotate``.

    Attributes:
        line: The source line (may be empty).
        revision_or_chnum: Revision, or changelist number in changelist mode.
        user: Author, only when user output was requested.
        date: Date string, only when user output was requested.
    """

    line: str
    revision_or_chnum: str
    user: str | None = None
    date: str | None = None

    def to_dict(self) -> dict[str, object]:
        return asdict(self)
