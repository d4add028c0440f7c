"""Tests for the p4 fstat parser and result ordering."""

from __future__ import annotations

from p4bridge.perforce.parsers import order_by_paths, parse_fstat

FSTAT_OUTPUT = "\n".join(
    [
        "... depotFile //depot/testArea/ilikenewfiles",
        "... clientFile /home/perforce/depot/testArea/newPlace/ilikenewfiles",
        "... isMapped ",
        "... headAction add",
        "... headRev 1",
        "",
        "... depotFile //depot/testArea/ireallylikenewfiles",
        "... clientFile /home/perforce/depot/testArea/newPlace/ireallylikenewfiles",
        "... isMapped ",
        "... headAction add",
        "... headRev 1",
        "",
    ]
)


class TestParseFstat:
    def test_one_record_per_block(self):
        records = parse_fstat(FSTAT_OUTPUT)

        assert len(records) == 2
        assert records[0]["depotFile"] == "//depot/testArea/ilikenewfiles"
        assert records[0]["headAction"] == "add"
        assert records[1]["clientFile"] == (
            "/home/perforce/depot/testArea/newPlace/ireallylikenewfiles"
        )

    def test_key_without_value_is_true(self):
        records = parse_fstat(FSTAT_OUTPUT)

        assert records[0]["isMapped"] == "true"

    def test_values_keep_inner_spaces(self):
        records = parse_fstat("... depotFile //depot/my file.txt\n")

        assert records == [{"depotFile": "//depot/my file.txt"}]

    def test_nested_entries_are_flattened(self):
        output = "\n".join(
            [
                "... depotFile //depot/a.txt",
                "... ... otherOpen0 bob@ws",
                "... ... otherAction0 edit",
            ]
        )

        (record,) = parse_fstat(output)

        assert record["otherOpen0"] == "bob@ws"
        assert record["otherAction0"] == "edit"

    def test_trailing_record_without_blank_line(self):
        output = "... depotFile //depot/a\n\n... depotFile //depot/b"

        assert [r["depotFile"] for r in parse_fstat(output)] == [
            "//depot/a",
            "//depot/b",
        ]

    def test_empty_output(self):
        assert parse_fstat("") == []
        assert parse_fstat("\n\n") == []


class TestOrderByPaths:
    def test_matches_requested_order(self):
        records = parse_fstat(FSTAT_OUTPUT)

        ordered = order_by_paths(
            records,
            [
                "//depot/testArea/ireallylikenewfiles",
                "//depot/testArea/ilikenewfiles",
                "//depot/testArea/filewithnooutput",
            ],
        )

        assert ordered[0] is records[1]
        assert ordered[1] is records[0]
        assert ordered[2] is None

    def test_matches_on_client_file(self):
        records = parse_fstat(FSTAT_OUTPUT)

        ordered = order_by_paths(
            records, ["/home/perforce/depot/testArea/newPlace/ilikenewfiles"]
        )

        assert ordered == [records[0]]

    def test_no_paths(self):
        assert order_by_paths(parse_fstat(FSTAT_OUTPUT), []) == []
