"""Parsers for small line-oriented outputs: info, set, have and where."""

from __future__ import annotations

import re
from pathlib import Path

from p4bridge.perforce.models import HaveFile, WhereFile
from p4bridge.perforce.parsers.common import split_lines

__all__ = ["parse_have", "parse_info", "parse_set", "parse_where"]

_INFO_RE = re.compile(r"^(?P<key>[^:\s][^:]*): (?P<value>.*)$")
_SET_RE = re.compile(
    r"^(?P<key>[A-Z0-9_]+)=(?P<value>.*?)"
    r"(?: \((?:set|config|enviro)\))?$"
)
# //depot/testArea/Makefile#4 - /home/perforce/TestArea/Makefile
_HAVE_RE = re.compile(r"^(?P<depot>//[^#]+)#(?P<rev>\d+) - (?P<local>.+)$")
_WHERE_RE = re.compile(r"^(?P<depot>//.+?) (?P<client>//.+?) (?P<local>.+)$")


def parse_info(output: str) -> dict[str, str]:
    """Parse ``p4 info`` into an ordered ``{"Client root": "/home/..."}`` map.

    Lines that are not ``Key: value`` pairs are ignored.
    """
    info: dict[str, str] = {}
    for line in split_lines(output):
        match = _INFO_RE.match(line)
        if match:
            info[match.group("key")] = match.group("value").rstrip()
    return info


def parse_set(output: str) -> dict[str, str]:
    """Parse ``p4 set -q`` (``P4CLIENT=ws``) into a mapping."""
    values: dict[str, str] = {}
    for line in split_lines(output):
        match = _SET_RE.match(line.rstrip())
        if match:
            values[match.group("key")] = match.group("value")
    return values


def parse_have(output: str) -> HaveFile | None:
    """Parse the first ``p4 have`` line, or None if there is none."""
    for line in split_lines(output):
        match = _HAVE_RE.match(line.rstrip())
        if match:
            return HaveFile(
                depot_path=match.group("depot"),
                revision=match.group("rev"),
                local_path=Path(match.group("local")),
            )
    return None


def parse_where(output: str) -> WhereFile | None:
    """Parse the first mapped ``p4 where`` line.

    Unmapped lines (prefixed with ``-``) are skipped.
    """
    for line in split_lines(output):
        match = _WHERE_RE.match(line.rstrip())
        if match:
            return WhereFile(
                depot_path=match.group("depot"),
                client_path=match.group("client"),
                local_path=match.group("local"),
            )
    return None
