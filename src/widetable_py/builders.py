from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .errors import ValidationError
from .mapper import row_to_attribute_columns, row_to_full_primary_key, row_to_update_columns
from .schema import RETURN_PRIMARY_KEY, Condition, PrimaryKeySchema


def require_row(row: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if not row:
        raise ValidationError("row is required")
    if not isinstance(row, Mapping):
        raise ValidationError(f"row must be a mapping, got {type(row).__name__}")
    return row


def build_put(
    schema: PrimaryKeySchema,
    table_name: str,
    row: Mapping[str, Any] | None,
    condition: Condition | None = None,
) -> dict[str, Any]:
    row = require_row(row)
    return {
        "tableName": table_name,
        "condition": condition or Condition.ignore(),
        "primaryKey": row_to_full_primary_key(schema, row),
        "attributeColumns": row_to_attribute_columns(schema, row),
        "returnContent": {"returnType": RETURN_PRIMARY_KEY},
    }


def build_insert(
    schema: PrimaryKeySchema,
    table_name: str,
    row: Mapping[str, Any] | None,
    condition: Condition | None = None,
) -> dict[str, Any]:
    return build_put(schema, table_name, row, condition or Condition.expect_not_exist())


def build_update(
    schema: PrimaryKeySchema,
    table_name: str,
    row: Mapping[str, Any] | None,
    condition: Condition | None = None,
) -> dict[str, Any]:
    row = require_row(row)
    primary_key = row_to_full_primary_key(schema, row)
    update_columns = row_to_update_columns(schema, row)
    return {
        "tableName": table_name,
        "condition": condition or Condition.expect_exist(),
        "primaryKey": primary_key,
        "updateOfAttributeColumns": update_columns,
        # Mirrors the PUT entry so batch results can be turned back into rows.
        "attributeColumns": update_columns[0]["PUT"],
        "returnContent": {"returnType": RETURN_PRIMARY_KEY},
    }


def build_delete(
    schema: PrimaryKeySchema,
    table_name: str,
    row: Mapping[str, Any] | None,
    condition: Condition | None = None,
) -> dict[str, Any]:
    row = require_row(row)
    return {
        "tableName": table_name,
        "condition": condition or Condition.ignore(),
        "primaryKey": row_to_full_primary_key(schema, row),
    }
