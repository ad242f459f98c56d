from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from .mocks import ANY, FakeBackendError, FakeTablestoreClient, InMemoryTablestoreClient


def range_response(
    rows: Sequence[Mapping[str, Any]],
    key_names: Sequence[str],
    *,
    next_key: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    records: list[dict[str, Any]] = []
    for row in rows:
        records.append(
            {
                "primaryKey": [{"name": n, "value": row[n]} for n in key_names],
                "attributes": [
                    {"columnName": k, "columnValue": v} for k, v in row.items() if k not in key_names
                ],
            }
        )

    resp: dict[str, Any] = {"rows": records}
    if next_key is not None:
        resp["next_start_primary_key"] = [{"name": n, "value": next_key[n]} for n in key_names]
    return resp


__all__ = [
    "ANY",
    "FakeBackendError",
    "FakeTablestoreClient",
    "InMemoryTablestoreClient",
    "range_response",
]
