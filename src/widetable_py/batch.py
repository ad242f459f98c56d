from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal, TypeAlias

from .builders import build_delete, build_insert, build_put, build_update, require_row
from .errors import ValidationError
from .mapper import Row, params_to_row
from .schema import PrimaryKeySchema

BatchLabel: TypeAlias = Literal["put", "insert", "update", "delete"]
BatchOperation: TypeAlias = Literal["PUT", "UPDATE", "DELETE"]

BATCH_LABELS: tuple[BatchLabel, ...] = ("put", "insert", "update", "delete")

_BUILDERS: dict[str, tuple[BatchOperation, Callable[..., dict[str, Any]]]] = {
    "put": ("PUT", build_put),
    "insert": ("PUT", build_insert),
    "update": ("UPDATE", build_update),
    "delete": ("DELETE", build_delete),
}


@dataclass(frozen=True)
class BatchItem:
    label: BatchLabel
    type: BatchOperation
    params: Mapping[str, Any]

    def to_request(self) -> dict[str, Any]:
        out = dict(self.params)
        out["type"] = self.type
        return out


@dataclass(frozen=True)
class BatchItemOutcome:
    label: BatchLabel
    row: Row
    ok: bool
    error: Any | None = None


def empty_buckets() -> dict[str, list[Row]]:
    return {label: [] for label in BATCH_LABELS}


def normalize_label(label: Any) -> BatchLabel:
    normalized = str(label).strip().lower()
    if normalized not in _BUILDERS:
        raise ValidationError(f"unsupported batch operation: {label!r}")
    return normalized  # type: ignore[return-value]


def _iter_operations(op_map: Any) -> list[tuple[BatchLabel, Sequence[Mapping[str, Any]]]]:
    if not isinstance(op_map, Mapping):
        raise ValidationError("batch operations must be a map of operation -> rows")

    out: list[tuple[BatchLabel, Sequence[Mapping[str, Any]]]] = []
    for raw_label, rows in op_map.items():
        label = normalize_label(raw_label)
        if not rows:
            continue
        if isinstance(rows, (Mapping, str, bytes)) or not isinstance(rows, Sequence):
            raise ValidationError(f"{label}: rows must be a list")
        out.append((label, rows))

    if not out:
        raise ValidationError("batch contains no rows")
    return out


def check_batch_operations(op_map: Mapping[str, Sequence[Mapping[str, Any]] | None]) -> int:
    count = 0
    for _, rows in _iter_operations(op_map):
        for row in rows:
            require_row(row)
            count += 1
    return count


def objects_to_batch_items(
    schema: PrimaryKeySchema,
    table_name: str,
    op_map: Mapping[str, Sequence[Mapping[str, Any]] | None],
) -> list[BatchItem]:
    # Map order, then row order; results are matched back by position.
    items: list[BatchItem] = []
    for label, rows in _iter_operations(op_map):
        op_type, builder = _BUILDERS[label]
        for row in rows:
            params = builder(schema, table_name, row)
            params.pop("tableName", None)
            items.append(BatchItem(label=label, type=op_type, params=params))
    return items


def reconcile_batch_outcomes(
    items: Sequence[BatchItem],
    results: Sequence[Mapping[str, Any] | None] | None,
) -> list[BatchItemOutcome]:
    results = results or []
    out: list[BatchItemOutcome] = []
    for idx, item in enumerate(items):
        result = results[idx] if idx < len(results) else None
        ok = bool(result and result.get("isOk"))
        error = None if ok or not result else result.get("error")
        out.append(BatchItemOutcome(label=item.label, row=params_to_row(item.params), ok=ok, error=error))
    return out


def outcomes_to_object(outcomes: Sequence[BatchItemOutcome]) -> dict[str, list[Row]]:
    buckets = empty_buckets()
    for outcome in outcomes:
        if outcome.ok:
            buckets[outcome.label].append(outcome.row)
    return buckets


def batch_items_to_object(
    items: Sequence[BatchItem],
    results: Sequence[Mapping[str, Any] | None] | None,
) -> dict[str, list[Row]]:
    return outcomes_to_object(reconcile_batch_outcomes(items, results))
