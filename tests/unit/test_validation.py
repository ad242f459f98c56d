from __future__ import annotations

import pytest

from widetable_py import ValidationError
from widetable_py.validation import (
    MaxColumnNameLength,
    MaxTableNameLength,
    validate_column_name,
    validate_table_name,
)


@pytest.mark.parametrize("name", ["events", "_tmp", "user_events_2024", "A" * MaxTableNameLength])
def test_validate_table_name_accepts_valid_names(name: str) -> None:
    validate_table_name(name)


@pytest.mark.parametrize(
    ("name", "match"),
    [
        ("", "cannot be empty"),
        (None, "cannot be empty"),
        ("a" * (MaxTableNameLength + 1), "maximum length"),
        ("1events", "must start with a letter"),
        ("user-events", "must start with a letter"),
        ("user events", "must start with a letter"),
    ],
)
def test_validate_table_name_rejects_invalid_names(name: object, match: str) -> None:
    with pytest.raises(ValidationError, match=match):
        validate_table_name(name)  # type: ignore[arg-type]


def test_validate_column_name() -> None:
    validate_column_name("uid")
    validate_column_name("_")
    with pytest.raises(ValidationError, match="cannot be empty"):
        validate_column_name("")
    with pytest.raises(ValidationError, match="maximum length"):
        validate_column_name("c" * (MaxColumnNameLength + 1))
    with pytest.raises(ValidationError, match="column name must start"):
        validate_column_name("a.b")
