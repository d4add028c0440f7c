"""Parser for ``p4 integrated`` output."""

from __future__ import annotations

import re

from p4bridge.perforce.models import IntegratedRevision
from p4bridge.perforce.parsers.common import split_lines

__all__ = ["parse_integrated"]

# //a#2,#9 - copy into //b#5
# //a#9 - edit from //b#3,#4
_INTEGRATED_RE = re.compile(
    r"^(?P<left>//[^#]+)#(?P<left_first>\d+)(?:,#(?P<left_second>\d+))? - "
    r"(?P<how>\w+) (?P<dir>into|from) "
    r"(?P<right>//[^#]+)#(?P<right_first>\d+)(?:,#(?P<right_second>\d+))?\s*$"
)


def _range(first: str, second: str | None) -> tuple[str | None, str]:
    return (first, second) if second else (None, first)


def parse_integrated(output: str) -> list[IntegratedRevision]:
    """Parse integration records, normalizing each to source and target.

    For ``into`` lines the listed file is the source; for ``from`` lines
    it is the target.
    """
    revisions: list[IntegratedRevision] = []
    for line in split_lines(output):
        match = _INTEGRATED_RE.match(line)
        if not match:
            continue
        left_start, left_end = _range(
            match.group("left_first"), match.group("left_second")
        )
        right_start, right_end = _range(
            match.group("right_first"), match.group("right_second")
        )
        if match.group("dir") == "into":
            from_file, to_file = match.group("left"), match.group("right")
            from_start, from_end, to_rev = left_start, left_end, right_end
        else:
            from_file, to_file = match.group("right"), match.group("left")
            from_start, from_end, to_rev = right_start, right_end, left_end
        revisions.append(
            IntegratedRevision(
                display_direction=match.group("dir"),
                from_file=from_file,
                from_start_rev=from_start,
                from_end_rev=from_end,
                operation=match.group("how"),
                to_file=to_file,
                to_rev=to_rev,
            )
        )
    return revisions
