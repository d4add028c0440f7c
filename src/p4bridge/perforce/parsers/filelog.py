"""Parser for ``p4 filelog -l -t`` output, with optional lineage following.

Output is a sequence of file blocks. Each starts with the depot path on
its own line, followed by revision headers::

    //depot/branch/newFile.txt
    ... #2 change 24 edit on 2020/03/09 22:22:42 by user.b@b_client (text)

    <TAB>make some changes in the branch

    ... ... move from //depot/TestArea/newFile.txt#1,#2

When run with ``-i`` the tool prints the history of every file the first
one was branched from, so the lineage can be followed without further
invocations.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from p4bridge.perforce.models import Direction, FileLogIntegration, FileLogItem
from p4bridge.perforce.parsers.common import parse_date, split_lines, strip_tab

__all__ = ["FOLLOWED_OPERATIONS", "parse_filelog", "parse_integration_verb"]

_REVISION_RE = re.compile(
    r"^\.\.\. #(?P<rev>\d+) change (?P<chnum>\d+) (?P<op>\S+) "
    r"on (?P<date>\S+(?: \d\d:\d\d:\d\d)?) "
    r"by (?P<user>[^@\s]+)@(?P<client>\S+) \((?P<type>[^)]*)\)"
)
_INTEGRATION_RE = re.compile(
    r"^\.\.\. \.\.\. (?P<how>.+?) (?P<file>//[^#]+)"
    r"#(?P<first>\d+)(?:,#(?P<second>\d+))?\s*$"
)

#: Integration operations whose FROM side is part of a file's lineage.
FOLLOWED_OPERATIONS = frozenset({"branch", "copy", "move"})

# Verb words as printed by p4, mapped to an operation kind
_OPERATIONS = {
    "branch": "branch",
    "integrate": "integrate",
    "merge": "merge",
    "edit": "edit",
    "copy": "copy",
    "move": "move",
    "moved": "move",
    "delete": "delete",
    "add": "add",
    "ignored": "ignore",
    "undid": "undo",
    "undone": "undo",
}


def parse_integration_verb(how: str) -> tuple[Direction, str]:
    """Map an integration verb (``"branch from"``) to direction and operation.

    ``from`` marks the revision as integrated from the other file; ``into``
    and ``by`` mark it as integrated into the other file. Single-word
    verbs (``ignored``, ``undid``) read as FROM.
    """
    words = how.split()
    if not words:
        return Direction.FROM, ""
    direction = Direction.TO if words[-1] in ("into", "by") else Direction.FROM
    operation = _OPERATIONS.get(words[0], words[0])
    return direction, operation


@dataclass
class _Revision:
    file: str
    header: re.Match[str]
    description: list[str] = field(default_factory=list)
    integrations: list[FileLogIntegration] = field(default_factory=list)

    def build(self) -> FileLogItem:
        header = self.header
        return FileLogItem(
            file=self.file,
            revision=header.group("rev"),
            chnum=header.group("chnum"),
            operation=header.group("op"),
            date=parse_date(header.group("date")),
            user=header.group("user"),
            client=header.group("client"),
            filetype=header.group("type"),
            description="\n".join(self.description),
            integrations=tuple(self.integrations),
        )


def _parse_blocks(output: str) -> dict[str, list[FileLogItem]]:
    """Parse every file block into its revisions, keyed by depot path."""
    histories: dict[str, list[FileLogItem]] = {}
    current_file: str | None = None
    revision: _Revision | None = None

    def flush() -> None:
        nonlocal revision
        if revision is not None:
            histories[revision.file].append(revision.build())
            revision = None

    for line in split_lines(output):
        if line.startswith("//"):
            flush()
            current_file = line.rstrip()
            histories.setdefault(current_file, [])
            continue
        if current_file is None:
            continue

        match = _REVISION_RE.match(line)
        if match:
            flush()
            revision = _Revision(file=current_file, header=match)
            continue
        if revision is None:
            continue

        integration = _INTEGRATION_RE.match(line)
        if integration:
            direction, operation = parse_integration_verb(integration.group("how"))
            second = integration.group("second")
            revision.integrations.append(
                FileLogIntegration(
                    direction=direction,
                    file=integration.group("file"),
                    start_rev=integration.group("first") if second else None,
                    end_rev=second or integration.group("first"),
                    operation=operation,
                )
            )
        elif line.startswith("\t"):
            revision.description.append(strip_tab(line))

    flush()
    return histories


def _follow(
    file: str,
    histories: dict[str, list[FileLogItem]],
    chain: frozenset[str],
) -> list[FileLogItem]:
    """Return *file*'s revisions followed by those of its ancestors.

    Ancestors are appended depth-first in the order their integration
    records appear. Only files on the path from the starting file are
    skipped, so an ancestor reached along two branches is listed under
    each of them, while cycles still stop.
    """
    chain = chain | {file}
    items = list(histories.get(file, []))
    for item in list(items):
        for integration in item.integrations:
            if (
                integration.direction is Direction.FROM
                and integration.operation in FOLLOWED_OPERATIONS
                and integration.file in histories
                and integration.file not in chain
            ):
                items.extend(_follow(integration.file, histories, chain))
    return items


def parse_filelog(
    output: str,
    *,
    follow_branches: bool = False,
    file: str | None = None,
) -> list[FileLogItem]:
    """Parse ``p4 filelog`` output into revision records.

    Args:
        output: Raw stdout of ``p4 filelog -l -t [-i]``.
        follow_branches: Append the history of every file this one was
            branched, copied or moved from, recursively.
        file: Depot path to start from when following; defaults to the
            first file in the output.

    Returns:
        Revision records, newest first for each file.
    """
    histories = _parse_blocks(output)
    if not histories:
        return []

    if not follow_branches:
        return [item for items in histories.values() for item in items]

    start = file if file in histories else next(iter(histories))
    return _follow(start, histories, frozenset())
