"""Codec for the change specification edited by ``p4 change -o`` / ``-i``.

A change specification is a block of ``Name:`` fields. A value is either
inline after a tab, or on the following tab-indented lines; fields are
separated by blank lines and ``#`` lines are comments::

    Change:<TAB>new

    Description:
    <TAB><enter description here>

    Files:
    <TAB>//depot/testArea/testFile<TAB># edit

:func:`decode` keeps every field in :attr:`ChangeSpec.raw_fields` so fields
without a typed view survive an edit round trip unchanged.
"""

from __future__ import annotations

import re

from p4bridge.perforce.models import ChangeSpec, ChangeSpecFile, RawField
from p4bridge.perforce.parsers.common import split_lines, strip_tab

__all__ = ["DESCRIPTION_PLACEHOLDER", "decode", "encode"]

#: Description p4 fills in for a new changelist.
DESCRIPTION_PLACEHOLDER = "<enter description here>"

_FIELD_RE = re.compile(r"^(?P<name>[A-Za-z][\w-]*):(?P<rest>.*)$")
_FILE_ACTION_SEP = "\t#"


def _parse_fields(text: str) -> list[RawField]:
    fields: list[RawField] = []
    name: str | None = None
    value: list[str] = []

    def flush() -> None:
        nonlocal name, value
        if name is not None:
            fields.append(RawField(name=name, value=tuple(value)))
        name, value = None, []

    for line in split_lines(text):
        if line.startswith("#"):
            continue
        if not line.strip() and not line.startswith("\t"):
            flush()
            continue
        match = _FIELD_RE.match(line)
        if match:
            flush()
            name = match.group("name")
            rest = match.group("rest")
            value = [rest[1:]] if rest else []
            continue
        if name is not None:
            value.append(strip_tab(line))
    flush()
    return fields


def _description_view(change: str, lines: tuple[str, ...]) -> str:
    if change == "new" and lines and lines[0] == DESCRIPTION_PLACEHOLDER:
        lines = lines[1:]
    return "\n".join(lines)


def _files_view(lines: tuple[str, ...]) -> list[ChangeSpecFile]:
    files: list[ChangeSpecFile] = []
    for line in lines:
        if not line.strip():
            continue
        path, sep, action = line.partition(_FILE_ACTION_SEP)
        files.append(
            ChangeSpecFile(
                depot_path=path.strip(),
                action=action.strip() if sep else None,
            )
        )
    return files


def _encode_files(files: list[ChangeSpecFile]) -> tuple[str, ...]:
    return tuple(
        f"{f.depot_path}{_FILE_ACTION_SEP} {f.action}" if f.action else f.depot_path
        for f in files
    )


def decode(text: str) -> ChangeSpec:
    """Parse a change specification.

    The ``description`` view joins the Description lines with newlines. On a
    new changelist p4's placeholder line is dropped from the view (the raw
    field keeps it). A spec without a Files field has ``files = None``.
    """
    raw_fields = _parse_fields(text)
    by_name = {raw.name: raw for raw in raw_fields}

    change_field = by_name.get("Change")
    change = "new"
    if change_field is not None and change_field.value:
        change = change_field.value[0].strip()

    description_field = by_name.get("Description")
    files_field = by_name.get("Files")

    return ChangeSpec(
        change=change,
        description=(
            _description_view(change, description_field.value)
            if description_field is not None
            else None
        ),
        files=_files_view(files_field.value) if files_field is not None else None,
        raw_fields=raw_fields,
    )


def _encode_field(name: str, lines: tuple[str, ...]) -> str:
    if not lines:
        return f"{name}:"
    if lines == ("",):
        return f"{name}:\t"
    return f"{name}:\t" + "\n\t".join(lines)


def encode(spec: ChangeSpec) -> str:
    """Serialize *spec* for ``p4 change -i``.

    Typed values with no raw counterpart come first (Change, Description,
    Files), followed by the raw fields in their original order. A typed
    view that was changed since decoding replaces the raw value in place;
    an unchanged one leaves the raw text untouched.
    """
    raw_names = {raw.name for raw in spec.raw_fields}
    override: dict[str, tuple[str, ...]] = {"Change": (spec.change,)}

    if spec.description is not None:
        raw = spec.raw_field("Description")
        if (
            raw is None
            or _description_view(spec.change, raw.value) != spec.description
        ):
            override["Description"] = tuple(spec.description.split("\n"))
    if spec.files is not None:
        raw = spec.raw_field("Files")
        if raw is None or _files_view(raw.value) != spec.files:
            override["Files"] = _encode_files(spec.files)

    fields: list[tuple[str, tuple[str, ...]]] = [
        (name, override[name])
        for name in ("Change", "Description", "Files")
        if name in override and name not in raw_names
    ]
    fields.extend(
        (raw.name, override.get(raw.name, raw.value)) for raw in spec.raw_fields
    )
    text = "\n\n".join(_encode_field(name, lines) for name, lines in fields)
    # p4 ends the form with a blank line when the last field is empty
    if fields and fields[-1][1] == ("",):
        text += "\n\n"
    return text
