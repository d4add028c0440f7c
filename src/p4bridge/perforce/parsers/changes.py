"""Parser for ``p4 changes -l`` output."""

from __future__ import annotations

import re

from p4bridge.perforce.models import ChangeInfo
from p4bridge.perforce.parsers.common import parse_date, split_lines, strip_tab

__all__ = ["parse_changes"]

# Change 2148152 on 2020/01/20 by user2@client *pending*
_CHANGE_RE = re.compile(
    r"^Change (?P<chnum>\d+) on (?P<date>\S+(?: \d\d:\d\d:\d\d)?) "
    r"by (?P<user>[^@\s]+)@(?P<client>\S+)(?: \*(?P<status>\w+)\*)?"
)


def parse_changes(output: str) -> list[ChangeInfo]:
    """Parse long-form changelist listings.

    Each changelist is a header line followed by its tab-indented
    description. A line holding only a tab is an empty description line.
    """
    changes: list[ChangeInfo] = []
    header: re.Match[str] | None = None
    description: list[str] = []

    def flush() -> None:
        if header is None:
            return
        changes.append(
            ChangeInfo(
                chnum=header.group("chnum"),
                date=parse_date(header.group("date")),
                user=header.group("user"),
                client=header.group("client"),
                is_pending=header.group("status") == "pending",
                description=tuple(description),
            )
        )

    for line in split_lines(output):
        match = _CHANGE_RE.match(line)
        if match:
            flush()
            header = match
            description = []
        elif header is not None and line.startswith("\t"):
            description.append(strip_tab(line))
    flush()
    return changes
