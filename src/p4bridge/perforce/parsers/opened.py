"""Parsers for ``p4 opened`` stdout and stderr."""

from __future__ import annotations

import re

from p4bridge.perforce.models import OpenedFile, UnopenedFile, UnopenedFileReason
from p4bridge.perforce.parsers.common import split_lines

__all__ = ["parse_opened", "parse_unopened"]

# //depot/a#3 - edit change 35 (text)
# //depot/b#1 - move/add default change (text) *locked*
_OPENED_RE = re.compile(
    r"^(?P<path>.+?)#(?P<rev>\d+) - (?P<op>\S+) "
    r"(?:default change|change (?P<chnum>\d+)) \((?P<type>[^)]+)\)"
)

_NOT_OPENED_RE = re.compile(r"^(?P<path>.+) - file\(s\) not opened on this client\.")
_NOT_IN_ROOT_RE = re.compile(
    r"^Path '(?P<path>.+)' is not under client's root '.*'\."
)


def parse_opened(output: str) -> list[OpenedFile]:
    """Parse ``p4 opened`` stdout; lines of any other shape are skipped."""
    files: list[OpenedFile] = []
    for line in split_lines(output):
        match = _OPENED_RE.match(line)
        if not match:
            continue
        files.append(
            OpenedFile(
                depot_path=match.group("path"),
                revision=match.group("rev"),
                chnum=match.group("chnum") or "default",
                operation=match.group("op"),
                filetype=match.group("type"),
                message=line,
            )
        )
    return files


def parse_unopened(stderr: str) -> list[UnopenedFile]:
    """Parse the ``p4 opened`` stderr lines naming files that are not open."""
    files: list[UnopenedFile] = []
    for line in split_lines(stderr):
        match = _NOT_OPENED_RE.match(line)
        if match:
            files.append(
                UnopenedFile(
                    file_path=match.group("path"),
                    reason=UnopenedFileReason.NOT_OPENED,
                    message=line,
                )
            )
            continue
        match = _NOT_IN_ROOT_RE.match(line)
        if match:
            files.append(
                UnopenedFile(
                    file_path=match.group("path"),
                    reason=UnopenedFileReason.NOT_IN_ROOT,
                    message=line,
                )
            )
    return files
