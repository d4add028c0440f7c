"""Parsers for the confirmation output of commands that change state."""

from __future__ import annotations

import re

from p4bridge.perforce.models import ResolveWarning, UnshelvedFile, UnshelvedFiles
from p4bridge.perforce.parsers.common import split_lines

__all__ = ["parse_change_saved", "parse_submitted", "parse_unshelve"]

_SAVED_RE = re.compile(r"Change (\d+) (?:created|updated)")
_RENAMED_RE = re.compile(r"Change \d+ renamed change (\d+) and submitted")
_SUBMITTED_RE = re.compile(r"Change (\d+) submitted")

_UNSHELVED_RE = re.compile(r"^(?P<path>.+?) - unshelved, opened for (?P<op>\S+)")
_RESOLVE_RE = re.compile(
    r"^\.\.\. (?P<path>.+?) - must resolve (?P<resolve>.+?) before submitting"
)


def parse_change_saved(output: str) -> str | None:
    """Return the changelist number from ``Change N created.`` / ``updated.``."""
    match = _SAVED_RE.search(output)
    return match.group(1) if match else None


def parse_submitted(output: str) -> str | None:
    """Return the submitted changelist number.

    When the server renumbers the change on submit, the new number wins.
    """
    match = _RENAMED_RE.search(output) or _SUBMITTED_RE.search(output)
    return match.group(1) if match else None


def parse_unshelve(output: str) -> UnshelvedFiles:
    """Parse ``p4 unshelve`` output into opened files and resolve warnings."""
    files: list[UnshelvedFile] = []
    warnings: list[ResolveWarning] = []
    for line in split_lines(output):
        match = _RESOLVE_RE.match(line)
        if match:
            warnings.append(
                ResolveWarning(
                    depot_path=match.group("path"),
                    resolve_path=match.group("resolve"),
                )
            )
            continue
        match = _UNSHELVED_RE.match(line)
        if match:
            files.append(
                UnshelvedFile(
                    depot_path=match.group("path"), operation=match.group("op")
                )
            )
    return UnshelvedFiles(files=tuple(files), warnings=tuple(warnings))
