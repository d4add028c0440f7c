"""Parser for ``p4 fstat`` output and re-ordering of batched results."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from p4bridge.perforce.models import FstatInfo
from p4bridge.perforce.parsers.common import split_lines

__all__ = ["order_by_paths", "parse_fstat"]

_PREFIX = "... "


def parse_fstat(output: str) -> list[FstatInfo]:
    """Parse ``p4 fstat`` output into one mapping per file.

    Records are separated by blank lines. Every ``... key value`` line adds
    one entry; a key printed without a value (``... isMapped``) maps to
    ``"true"``. Lines without the ``...`` marker are skipped.
    """
    records: list[FstatInfo] = []
    current: FstatInfo = {}
    for line in split_lines(output):
        if not line.strip():
            if current:
                records.append(current)
                current = {}
            continue
        if not line.startswith(_PREFIX):
            continue
        body = line[len(_PREFIX) :]
        # Nested "... ... otherOpen0 user@ws" lines
        while body.startswith(_PREFIX):
            body = body[len(_PREFIX) :]
        key, _, value = body.partition(" ")
        if not key:
            continue
        current[key] = value if value.strip() else "true"
    if current:
        records.append(current)
    return records


def order_by_paths(
    records: Iterable[FstatInfo], paths: Sequence[str]
) -> list[FstatInfo | None]:
    """Arrange *records* to match the order of the requested *paths*.

    A record matches a path through its ``depotFile`` or ``clientFile``.
    Paths with no record (reported on stderr only) map to None.
    """
    by_path: dict[str, FstatInfo] = {}
    for record in records:
        for key in ("depotFile", "clientFile"):
            value = record.get(key)
            if value and value not in by_path:
                by_path[value] = record
    return [by_path.get(path) for path in paths]
