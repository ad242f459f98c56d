from __future__ import annotations

import math
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any, Literal, TypeAlias

from .errors import KeyEncodingError, ValidationError
from .validation import validate_column_name

PrimaryKeyType: TypeAlias = Literal["STRING", "INTEGER", "BINARY"]
RowExistence: TypeAlias = Literal["IGNORE", "EXPECT_EXIST", "EXPECT_NOT_EXIST"]
Direction: TypeAlias = Literal["FORWARD", "BACKWARD"]

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# describe_table reports key types either by name or by wire enum value.
_TYPE_ALIASES: dict[Any, PrimaryKeyType] = {
    "STRING": "STRING",
    "INTEGER": "INTEGER",
    "INTEGER64": "INTEGER",
    "INT64": "INTEGER",
    "LONG": "INTEGER",
    "BINARY": "BINARY",
    1: "INTEGER",
    2: "STRING",
    3: "BINARY",
}


class _Boundary:
    def __init__(self, name: str, rank: int) -> None:
        self._name = name
        self.rank = rank

    def __repr__(self) -> str:
        return self._name


INF_MIN: Any = _Boundary("INF_MIN", -1)
INF_MAX: Any = _Boundary("INF_MAX", 1)


def is_boundary(value: Any) -> bool:
    return value is INF_MIN or value is INF_MAX


@dataclass(frozen=True)
class Condition:
    row_existence_expectation: RowExistence
    column_condition: Any | None = None

    @staticmethod
    def ignore() -> Condition:
        return Condition("IGNORE")

    @staticmethod
    def expect_exist() -> Condition:
        return Condition("EXPECT_EXIST")

    @staticmethod
    def expect_not_exist() -> Condition:
        return Condition("EXPECT_NOT_EXIST")


RETURN_PRIMARY_KEY = "PRIMARY_KEY"


def normalize_key_type(raw: Any) -> PrimaryKeyType:
    key = raw.strip().upper() if isinstance(raw, str) else raw
    if isinstance(key, bool):
        raise ValidationError(f"unsupported primary key type: {raw!r}")
    try:
        return _TYPE_ALIASES[key]
    except (KeyError, TypeError) as err:
        raise ValidationError(f"unsupported primary key type: {raw!r}") from err


def encode_int64(column: str, value: Any) -> int:
    if isinstance(value, bool):
        raise KeyEncodingError(column=column, value=value, reason="boolean is not an integer")

    if isinstance(value, int):
        out = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise KeyEncodingError(column=column, value=value, reason="not a finite number")
        out = int(value)
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation as err:
            raise KeyEncodingError(column=column, value=value, reason="not numeric") from err
        if not parsed.is_finite():
            raise KeyEncodingError(column=column, value=value, reason="not a finite number")
        truncated = parsed.to_integral_value(rounding=ROUND_DOWN)
        if truncated < INT64_MIN or truncated > INT64_MAX:
            raise KeyEncodingError(column=column, value=value, reason="outside signed 64-bit range")
        out = int(truncated)
    else:
        raise KeyEncodingError(column=column, value=value, reason="not numeric")

    if out < INT64_MIN or out > INT64_MAX:
        raise KeyEncodingError(column=column, value=value, reason="outside signed 64-bit range")
    return out


@dataclass(frozen=True)
class PrimaryKeyDescriptor:
    name: str
    type: PrimaryKeyType = "STRING"

    def encode(self, value: Any) -> Any:
        if is_boundary(value):
            return value
        if self.type == "INTEGER":
            return encode_int64(self.name, value)
        if self.type == "BINARY" and isinstance(value, bytearray):
            return bytes(value)
        return value


@dataclass(frozen=True)
class PrimaryKeySchema:

    descriptors: tuple[PrimaryKeyDescriptor, ...]

    def __post_init__(self) -> None:
        if not self.descriptors:
            raise ValidationError("primary key schema requires at least one column")
        seen: set[str] = set()
        for desc in self.descriptors:
            validate_column_name(desc.name)
            if desc.name in seen:
                raise ValidationError(f"duplicate primary key column: {desc.name}")
            seen.add(desc.name)

    def __iter__(self) -> Iterator[PrimaryKeyDescriptor]:
        return iter(self.descriptors)

    def __len__(self) -> int:
        return len(self.descriptors)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(d.name for d in self.descriptors)

    @staticmethod
    def of(*columns: tuple[str, str] | str) -> PrimaryKeySchema:
        out: list[PrimaryKeyDescriptor] = []
        for col in columns:
            if isinstance(col, str):
                out.append(PrimaryKeyDescriptor(col))
            else:
                name, key_type = col
                out.append(PrimaryKeyDescriptor(name, normalize_key_type(key_type)))
        return PrimaryKeySchema(tuple(out))

    @staticmethod
    def from_mappings(raw: Sequence[Any]) -> PrimaryKeySchema:
        if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
            raise ValidationError("primary keys must be a list")

        out: list[PrimaryKeyDescriptor] = []
        for idx, item in enumerate(raw):
            if isinstance(item, PrimaryKeyDescriptor):
                out.append(item)
                continue
            if not isinstance(item, Mapping):
                raise ValidationError(f"primary_key[{idx}] must be a map")
            name = item.get("name")
            if not isinstance(name, str) or not name:
                raise ValidationError(f"primary_key[{idx}].name is required")
            out.append(PrimaryKeyDescriptor(name, normalize_key_type(item.get("type", "STRING"))))
        return PrimaryKeySchema(tuple(out))

    @staticmethod
    def from_describe_response(resp: Mapping[str, Any]) -> PrimaryKeySchema:
        meta = resp.get("table_meta")
        if not isinstance(meta, Mapping):
            raise ValidationError("describe_table response is missing table_meta")
        return PrimaryKeySchema.from_mappings(meta.get("primary_key") or [])


def coerce_schema(raw: PrimaryKeySchema | Sequence[Any]) -> PrimaryKeySchema:
    if isinstance(raw, PrimaryKeySchema):
        return raw
    return PrimaryKeySchema.from_mappings(raw)
