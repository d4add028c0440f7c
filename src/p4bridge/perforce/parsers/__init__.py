"""Parsers turning raw p4 stdout/stderr into typed records.

Parsers are pure functions and never raise: lines that do not match the
expected shape are skipped.
"""

from __future__ import annotations

from p4bridge.perforce.parsers.annotate import parse_annotate
from p4bridge.perforce.parsers.changes import parse_changes
from p4bridge.perforce.parsers.confirmations import (
    parse_change_saved,
    parse_submitted,
    parse_unshelve,
)
from p4bridge.perforce.parsers.describe import parse_describe, shelved_changes
from p4bridge.perforce.parsers.filelog import (
    FOLLOWED_OPERATIONS,
    parse_filelog,
    parse_integration_verb,
)
from p4bridge.perforce.parsers.fstat import order_by_paths, parse_fstat
from p4bridge.perforce.parsers.info import (
    parse_have,
    parse_info,
    parse_set,
    parse_where,
)
from p4bridge.perforce.parsers.integrated import parse_integrated
from p4bridge.perforce.parsers.opened import parse_opened, parse_unopened

__all__ = [
    "FOLLOWED_OPERATIONS",
    "order_by_paths",
    "parse_annotate",
    "parse_change_saved",
    "parse_changes",
    "parse_describe",
    "parse_filelog",
    "parse_fstat",
    "parse_have",
    "parse_info",
    "parse_integrated",
    "parse_integration_verb",
    "parse_opened",
    "parse_set",
    "parse_submitted",
    "parse_unopened",
    "parse_unshelve",
    "parse_where",
    "shelved_changes",
]
