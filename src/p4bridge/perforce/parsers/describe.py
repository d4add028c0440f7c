"""Parsers for ``p4 describe`` output.

A single invocation can describe several changelists. Each block starts
with a ``Change <n> by <user>@<client> on <date>`` header and contains, in
order, the description, an optional ``Jobs fixed ...`` section, then the
``Affected files ...`` and/or ``Shelved files ...`` sections. Anything after
a section this module does not know (``Differences ...``) is skipped until
the next known section or changelist header.
"""

from __future__ import annotations

import re

from p4bridge.perforce.models import (
    DepotFileOperation,
    DescribedChangelist,
    FixedJob,
    ShelvedChangeInfo,
)
from p4bridge.perforce.parsers.common import parse_date, split_lines, strip_tab

__all__ = ["parse_describe", "shelved_changes"]

_HEADER_RE = re.compile(
    r"^Change (?P<chnum>\d+) by (?P<user>[^@\s]+)@(?P<client>\S+) "
    r"on (?P<date>\S+(?: \d\d:\d\d:\d\d)?)(?P<pending> \*pending\*)?"
)
# job000001 on 2020/04/03 by user *closed*
_JOB_RE = re.compile(r"^(?P<id>\S+) on \S+ by \S+(?: \*\w+\*)?\s*$")
# ... //depot/a.txt#3 edit
_FILE_RE = re.compile(r"^\.\.\. (?P<path>[^#]+)#(?P<rev>\d+) (?P<op>\S+)")

_SECTION_HEADERS = {
    "Jobs fixed ...": "jobs",
    "Affected files ...": "affected",
    "Shelved files ...": "shelved",
}
_SKIPPED_SECTION_RE = re.compile(r"^[A-Z][\w ]* \.\.\.\s*$")


class _BlockBuilder:
    """Accumulates the lines of one changelist block."""

    def __init__(self, header: re.Match[str]) -> None:
        self.header = header
        self.section = "description"
        self.description: list[str] = []
        self.jobs: list[tuple[str, list[str]]] = []
        self.affected: list[DepotFileOperation] = []
        self.shelved: list[DepotFileOperation] = []

    def feed(self, line: str) -> None:
        section = _SECTION_HEADERS.get(line.rstrip())
        if section is not None:
            self.section = section
            return
        if _SKIPPED_SECTION_RE.match(line):
            self.section = "skip"
            return

        if self.section == "description":
            if line.startswith("\t"):
                self.description.append(strip_tab(line))
        elif self.section == "jobs":
            self._feed_job(line)
        elif self.section in ("affected", "shelved"):
            match = _FILE_RE.match(line)
            if match:
                target = self.affected if self.section == "affected" else self.shelved
                target.append(
                    DepotFileOperation(
                        depot_path=match.group("path"),
                        revision=match.group("rev"),
                        operation=match.group("op"),
                    )
                )

    def _feed_job(self, line: str) -> None:
        if line.startswith("\t"):
            if self.jobs:
                self.jobs[-1][1].append(strip_tab(line))
            return
        match = _JOB_RE.match(line)
        if match:
            self.jobs.append((match.group("id"), []))

    def build(self) -> DescribedChangelist:
        return DescribedChangelist(
            chnum=self.header.group("chnum"),
            user=self.header.group("user"),
            client=self.header.group("client"),
            date=parse_date(self.header.group("date")),
            is_pending=self.header.group("pending") is not None,
            description=tuple(self.description),
            fixed_jobs=tuple(
                FixedJob(id=job_id, description=tuple(lines))
                for job_id, lines in self.jobs
            ),
            affected_files=tuple(self.affected),
            shelved_files=tuple(self.shelved),
        )


def parse_describe(output: str) -> list[DescribedChangelist]:
    """Parse the output of ``p4 describe`` for one or more changelists."""
    described: list[DescribedChangelist] = []
    builder: _BlockBuilder | None = None
    for line in split_lines(output):
        match = _HEADER_RE.match(line)
        if match:
            if builder is not None:
                described.append(builder.build())
            builder = _BlockBuilder(match)
        elif builder is not None:
            builder.feed(line)
    if builder is not None:
        described.append(builder.build())
    return described


def shelved_changes(described: list[DescribedChangelist]) -> list[ShelvedChangeInfo]:
    """Keep only changelists with shelved files, as chnum + depot paths."""
    return [
        ShelvedChangeInfo(
            chnum=int(change.chnum),
            paths=tuple(f.depot_path for f in change.shelved_files),
        )
        for change in described
        if change.shelved_files
    ]
