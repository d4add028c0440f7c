"""Tests for the p4 annotate parser."""

from __future__ import annotations

from p4bridge.perforce.models import Annotation
from p4bridge.perforce.parsers import parse_annotate

# (line, chnum, revision, user, date)
ANNOTATED = [
    ("here is a file", "5", "1", "user.a", "2020/01/02"),
    ("", "5", "1", "user.a", "2020/01/02"),
    (" it has some lines", "9", "2", "user.b", "2020/02/03"),
    ("and another line", "126125", "14", "xyz", "2020/04/09"),
]


class TestParseAnnotate:
    def test_annotation_per_revision_line(self):
        output = "\n".join(f"{rev}: {line}" for line, _, rev, _, _ in ANNOTATED)

        assert parse_annotate(output) == [
            Annotation(line=line, revision_or_chnum=rev)
            for line, _, rev, _, _ in ANNOTATED
        ]

    def test_changelist_keys(self):
        output = "\n".join(f"{chnum}: {line}" for line, chnum, _, _, _ in ANNOTATED)

        result = parse_annotate(output)

        assert [a.revision_or_chnum for a in result] == ["5", "5", "9", "126125"]
        assert result[2].line == " it has some lines"

    def test_with_user_splits_user_and_date(self):
        output = "\n".join(
            f"{chnum}: {user} {date} {line}"
            for line, chnum, _, user, date in ANNOTATED
        )

        assert parse_annotate(output, with_user=True) == [
            Annotation(line=line, revision_or_chnum=chnum, user=user, date=date)
            for line, chnum, _, user, date in ANNOTATED
        ]

    def test_skips_malformed_lines(self):
        output = "not annotated\n3: kept\n"

        assert parse_annotate(output) == [
            Annotation(line="kept", revision_or_chnum="3")
        ]

    def test_empty_output(self):
        assert parse_annotate("") == []

    def test_blank_line_without_trailing_space(self):
        output = "1: first\n1:\n2: third\n"

        result = parse_annotate(output)

        assert [a.line for a in result] == ["first", "", "third"]
        assert [a.revision_or_chnum for a in result] == ["1", "1", "2"]
