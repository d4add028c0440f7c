"""Parser for ``p4 annotate -q`` output."""

from __future__ import annotations

import re

from p4bridge.perforce.models import Annotation
from p4bridge.perforce.parsers.common import split_lines

__all__ = ["parse_annotate"]

_LINE_RE = re.compile(r"^(?P<key>\d+):(?: (?P<rest>.*))?$")


def parse_annotate(output: str, *, with_user: bool = False) -> list[Annotation]:
    """Parse annotated lines of the form ``<key>: <remainder>``.

    ``<key>`` is a revision or changelist number depending on the flags
    passed to the tool. With ``with_user`` the remainder is
    ``<user> <date> <source line>``. An empty remainder is a blank source
    line. Lines of any other shape are skipped.
    """
    annotations: list[Annotation] = []
    for line in split_lines(output):
        match = _LINE_RE.match(line)
        if not match:
            continue
        rest = match.group("rest") or ""
        if with_user:
            parts = rest.split(" ", 2)
            user = parts[0]
            date = parts[1] if len(parts) > 1 else None
            source = parts[2] if len(parts) > 2 else ""
            annotations.append(
                Annotation(
                    line=source,
                    revision_or_chnum=match.group("key"),
                    user=user,
                    date=date,
                )
            )
        else:
            annotations.append(
                Annotation(line=rest, revision_or_chnum=match.group("key"))
            )
    return annotations
