from __future__ import annotations

import re

from .errors import ValidationError

MaxTableNameLength = 255
MaxColumnNameLength = 255

_NAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def validate_table_name(name: str) -> None:
    if not isinstance(name, str) or not name:
        raise ValidationError("table name cannot be empty")
    if len(name) > MaxTableNameLength:
        raise ValidationError("table name exceeds maximum length")
    if _NAME_PATTERN.match(name) is None:
        raise ValidationError(
            f"table name must start with a letter or underscore and contain only "
            f"alphanumeric characters and underscores: {name!r}"
        )


def validate_column_name(name: str) -> None:
    if not isinstance(name, str) or not name:
        raise ValidationError("column name cannot be empty")
    if len(name) > MaxColumnNameLength:
        raise ValidationError("column name exceeds maximum length")
    if _NAME_PATTERN.match(name) is None:
        raise ValidationError(
            f"column name must start with a letter or underscore and contain only "
            f"alphanumeric characters and underscores: {name!r}"
        )
