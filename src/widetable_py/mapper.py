from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, TypeAlias

from .errors import ValidationError
from .schema import PrimaryKeySchema

Row: TypeAlias = dict[str, Any]
KeyColumns: TypeAlias = list[dict[str, Any]]


class _Omit:
    def __repr__(self) -> str:  # pragma: no cover
        return "OMIT"


OMIT: Any = _Omit()


def row_to_primary_key(
    schema: PrimaryKeySchema,
    row: Mapping[str, Any] | None,
    fallback: Any = OMIT,
) -> KeyColumns:
    # Missing components take `fallback` verbatim, or are omitted when there is none.
    row = row or {}
    out: KeyColumns = []
    for desc in schema:
        if desc.name in row:
            out.append({desc.name: desc.encode(row[desc.name])})
        elif fallback is not OMIT:
            out.append({desc.name: fallback})
    return out


def missing_key_columns(schema: PrimaryKeySchema, row: Mapping[str, Any]) -> list[str]:
    return [name for name in schema.names if name not in row]


def row_to_full_primary_key(schema: PrimaryKeySchema, row: Mapping[str, Any]) -> KeyColumns:
    missing = missing_key_columns(schema, row)
    if missing:
        raise ValidationError(f"row is missing primary key columns: {missing}")
    return row_to_primary_key(schema, row)


def row_to_attribute_columns(schema: PrimaryKeySchema, row: Mapping[str, Any]) -> KeyColumns:
    key_names = set(schema.names)
    return [{name: value} for name, value in row.items() if name not in key_names]


def row_to_update_columns(schema: PrimaryKeySchema, row: Mapping[str, Any]) -> list[dict[str, KeyColumns]]:
    # Only whole-column PUT updates are emitted; DELETE/DELETE_ALL variants are not.
    return [{"PUT": row_to_attribute_columns(schema, row)}]


def _merge_single_entry_maps(entries: Any, out: Row) -> None:
    if not isinstance(entries, Sequence) or isinstance(entries, (str, bytes)):
        return
    for entry in entries:
        if isinstance(entry, Mapping):
            out.update(entry)


def params_to_row(params: Mapping[str, Any]) -> Row:
    row: Row = {}
    _merge_single_entry_maps(params.get("primaryKey"), row)
    _merge_single_entry_maps(params.get("attributeColumns"), row)
    return row


def key_entries_to_row(entries: Any) -> Row:
    row: Row = {}
    if not isinstance(entries, Sequence) or isinstance(entries, (str, bytes)):
        return row
    for entry in entries:
        if isinstance(entry, Mapping) and "name" in entry:
            row[str(entry["name"])] = entry.get("value")
    return row


def response_to_row(item: Mapping[str, Any] | None) -> Row | None:
    if not item:
        return None

    row = key_entries_to_row(item.get("primaryKey"))
    attributes = item.get("attributes")
    if isinstance(attributes, Sequence) and not isinstance(attributes, (str, bytes)):
        for attr in attributes:
            if isinstance(attr, Mapping) and "columnName" in attr:
                row[str(attr["columnName"])] = attr.get("columnValue")

    # The backend reports a missing row as an empty record.
    if not row:
        return None
    return row
