"""Tests for the p4 integrated parser."""

from __future__ import annotations

from p4bridge.perforce.models import IntegratedRevision
from p4bridge.perforce.parsers import parse_integrated

DEPOT_PATH = "//depot/branches/branch1/newFile.txt"
BRANCH2 = "//depot/branches/branch2/newFile.txt"
MAIN = "//depot/TestArea/newFile.txt"


class TestParseIntegrated:
    def test_normalizes_source_and_target(self):
        output = "\n".join(
            [
                f"{DEPOT_PATH}#1 - edit into {BRANCH2}#2",
                f"{DEPOT_PATH}#1 - branch from {MAIN}#1",
                f"{DEPOT_PATH}#9 - edit from {MAIN}#3,#4",
                f"{DEPOT_PATH}#2,#9 - copy into {MAIN}#5",
            ]
        )

        assert parse_integrated(output) == [
            IntegratedRevision(
                display_direction="into",
                from_file=DEPOT_PATH,
                from_start_rev=None,
                from_end_rev="1",
                operation="edit",
                to_file=BRANCH2,
                to_rev="2",
            ),
            IntegratedRevision(
                display_direction="from",
                from_file=MAIN,
                from_start_rev=None,
                from_end_rev="1",
                operation="branch",
                to_file=DEPOT_PATH,
                to_rev="1",
            ),
            IntegratedRevision(
                display_direction="from",
                from_file=MAIN,
                from_start_rev="3",
                from_end_rev="4",
                operation="edit",
                to_file=DEPOT_PATH,
                to_rev="9",
            ),
            IntegratedRevision(
                display_direction="into",
                from_file=DEPOT_PATH,
                from_start_rev="2",
                from_end_rev="9",
                operation="copy",
                to_file=MAIN,
                to_rev="5",
            ),
        ]

    def test_skips_other_lines(self):
        output = f"No integrations\n{DEPOT_PATH}#1 - edit into {BRANCH2}#2\n"

        assert len(parse_integrated(output)) == 1

    def test_empty_output(self):
        assert parse_integrated("") == []
