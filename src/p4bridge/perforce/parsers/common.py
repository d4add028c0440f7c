"""Helpers shared by the p4 output parsers."""

from __future__ import annotations

from datetime import datetime

__all__ = ["parse_date", "split_lines", "strip_tab"]

_DATE_FORMATS = ("%Y/%m/%d %H:%M:%S", "%Y/%m/%d")


def split_lines(output: str) -> list[str]:
    """Split tool output into lines, accepting both LF and CRLF endings."""
    return output.replace("\r\n", "\n").split("\n")


def strip_tab(line: str) -> str:
    """Remove exactly one leading tab from a continuation line."""
    return line[1:] if line.startswith("\t") else line


def parse_date(value: str) -> datetime | None:
    """Parse a p4 date (``2020/01/21`` or ``2020/01/21 16:36:07``).

    Returns None for anything else; p4 dates carry no timezone.
    """
    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None
