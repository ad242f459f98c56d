from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any, cast

import yaml

from .errors import ConfigError, ValidationError
from .schema import PrimaryKeySchema
from .validation import validate_table_name


@dataclass(frozen=True)
class TableOptions:
    max_versions: int = 1
    range_page_size: int = 5
    select_limit: int = 10

    def __post_init__(self) -> None:
        for name in ("max_versions", "range_page_size", "select_limit"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValidationError(f"{name} must be a positive integer")

    @staticmethod
    def from_mapping(raw: Mapping[str, Any] | None) -> TableOptions:
        raw = raw or {}
        known = {f.name for f in fields(TableOptions)}
        unknown = sorted(set(raw).difference(known))
        if unknown:
            raise ConfigError(f"unknown table options: {unknown}")
        return TableOptions(**cast(dict[str, Any], dict(raw)))


@dataclass(frozen=True)
class TableConfig:
    table_name: str
    primary_keys: PrimaryKeySchema | None = None
    options: TableOptions = field(default_factory=TableOptions)


def parse_table_document(raw: str) -> dict[str, Any]:
    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as err:
        raise ConfigError("invalid table document YAML/JSON") from err

    if not isinstance(parsed, dict):
        raise ConfigError("table document must be a map/object")

    tables = parsed.get("tables")
    if not isinstance(tables, list) or len(tables) == 0:
        raise ConfigError("table document must include tables[]")

    for idx, table in enumerate(tables):
        if not isinstance(table, dict):
            raise ConfigError(f"tables[{idx}] must be a map")
        if not isinstance(table.get("name"), str):
            raise ConfigError(f"tables[{idx}].name is required")

    return parsed


def get_table_config(doc: Mapping[str, Any], name: str) -> TableConfig:
    tables = doc.get("tables")
    if not isinstance(tables, list):
        raise ConfigError("table document missing tables[]")

    for table in tables:
        if not isinstance(table, dict) or table.get("name") != name:
            continue

        keys_raw = table.get("primary_keys")
        options_raw = table.get("options")
        if options_raw is not None and not isinstance(options_raw, dict):
            raise ConfigError(f"{name}: options must be a map")

        try:
            validate_table_name(name)
            primary_keys = PrimaryKeySchema.from_mappings(keys_raw) if keys_raw is not None else None
            options = TableOptions.from_mapping(options_raw)
        except ConfigError:
            raise
        except ValidationError as err:
            raise ConfigError(f"{name}: {err}") from err
        return TableConfig(table_name=name, primary_keys=primary_keys, options=options)

    raise ConfigError(f"table not found in document: {name}")
