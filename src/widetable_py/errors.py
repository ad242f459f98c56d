from __future__ import annotations

from typing import Any


class WidetablePyError(Exception):
    pass


class ValidationError(WidetablePyError):
    pass


class KeyEncodingError(ValidationError):
    def __init__(self, *, column: str, value: Any, reason: str) -> None:
        super().__init__(f"{column}: {reason} (value={value!r})")
        self.column = column
        self.value = value


class ConfigError(ValidationError):
    pass


class SchemaNotResolvedError(WidetablePyError):
    def __init__(self, table_name: str) -> None:
        super().__init__(f"{table_name}: primary key schema is not resolved; await Table.sync() first")
        self.table_name = table_name
