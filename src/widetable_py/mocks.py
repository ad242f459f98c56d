from __future__ import annotations

import itertools
from collections import deque
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias

from .schema import PrimaryKeySchema, coerce_schema, is_boundary


class _Wildcard:
    def __repr__(self) -> str:  # pragma: no cover
        return "ANY"


ANY: Any = _Wildcard()


class FakeBackendError(Exception):
    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(f"{code}: {message}" if message else code)
        self.code = code
        self.message = message


def _mismatch(expected: Any, actual: Any, path: str) -> str | None:
    # Mappings match on the expected keys only; lists match item by item.
    if expected is ANY:
        return None
    if isinstance(expected, dict):
        if not isinstance(actual, dict):
            return f"{path}: expected dict, got {type(actual).__name__}"
        for name, want in expected.items():
            if name not in actual:
                return f"{path}: missing key {name!r}"
            problem = _mismatch(want, actual[name], f"{path}.{name}")
            if problem:
                return problem
        return None
    if isinstance(expected, list):
        if not isinstance(actual, list):
            return f"{path}: expected list, got {type(actual).__name__}"
        if len(expected) != len(actual):
            return f"{path}: expected {len(expected)} items, got {len(actual)}"
        for idx, (want, got) in enumerate(zip(expected, actual, strict=True)):
            problem = _mismatch(want, got, f"{path}[{idx}]")
            if problem:
                return problem
        return None
    if expected != actual:
        return f"{path}: expected {expected!r}, got {actual!r}"
    return None


ParamsCheck: TypeAlias = Mapping[str, Any] | Callable[[Mapping[str, Any]], None]


@dataclass(frozen=True)
class ScriptedCall:
    method: str
    check: ParamsCheck | None
    response: Mapping[str, Any] | None
    error: Exception | None


class FakeTablestoreClient:
    def __init__(self) -> None:
        self._script: deque[ScriptedCall] = deque()
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def expect(
        self,
        method: str,
        check: ParamsCheck | None = None,
        *,
        response: Mapping[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._script.append(ScriptedCall(method, check, response, error))

    def assert_no_pending(self) -> None:
        if self._script:
            raise AssertionError(f"{len(self._script)} scripted calls still pending: {list(self._script)!r}")

    def _respond(self, method: str, params: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append((method, dict(params)))
        if not self._script:
            raise AssertionError(f"unexpected call: {method}")

        scripted = self._script.popleft()
        if scripted.method != method:
            raise AssertionError(f"expected {scripted.method}, got {method}")
        if callable(scripted.check):
            scripted.check(params)
        elif scripted.check is not None:
            problem = _mismatch(dict(scripted.check), dict(params), method)
            if problem:
                raise AssertionError(problem)

        if scripted.error is not None:
            raise scripted.error
        return dict(scripted.response or {})

    async def describe_table(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        return self._respond("describe_table", params)

    async def put_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        return self._respond("put_row", params)

    async def update_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        return self._respond("update_row", params)

    async def delete_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        return self._respond("delete_row", params)

    async def get_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        return self._respond("get_row", params)

    async def batch_get_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        return self._respond("batch_get_row", params)

    async def batch_write_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        return self._respond("batch_write_row", params)

    async def get_range(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        return self._respond("get_range", params)


_Key: TypeAlias = tuple[Any, ...]


def _sort_key(key: _Key) -> tuple[tuple[int, Any], ...]:
    return tuple((value.rank, 0) if is_boundary(value) else (0, value) for value in key)


class InMemoryTablestoreClient:

    def __init__(self, tables: Mapping[str, PrimaryKeySchema | Sequence[Any]]) -> None:
        self._schemas: dict[str, PrimaryKeySchema] = {
            name: coerce_schema(keys) for name, keys in tables.items()
        }
        self._rows: dict[str, dict[_Key, dict[str, Any]]] = {name: {} for name in self._schemas}
        self._clock = itertools.count(1)
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def rows(self, table_name: str) -> list[dict[str, Any]]:
        schema = self._schema(table_name)
        out: list[dict[str, Any]] = []
        for key in sorted(self._rows[table_name], key=_sort_key):
            row = dict(zip(schema.names, key, strict=True))
            row.update(self._rows[table_name][key])
            out.append(row)
        return out

    def _schema(self, table_name: Any) -> PrimaryKeySchema:
        schema = self._schemas.get(table_name)
        if schema is None:
            raise FakeBackendError("OTSObjectNotExist", f"table not found: {table_name}")
        return schema

    def _key(self, table_name: str, entries: Any, *, allow_boundaries: bool = False) -> _Key:
        schema = self._schema(table_name)
        given: dict[str, Any] = {}
        for entry in entries or []:
            given.update(entry)

        if list(given) != list(schema.names):
            raise FakeBackendError("OTSParameterInvalid", f"primary key must be {list(schema.names)}")
        if not allow_boundaries and any(is_boundary(v) for v in given.values()):
            raise FakeBackendError("OTSParameterInvalid", "INF_MIN/INF_MAX only allowed in range scans")
        return tuple(given[name] for name in schema.names)

    def _check_condition(self, table_name: str, key: _Key, condition: Any) -> None:
        expectation = getattr(condition, "row_existence_expectation", "IGNORE")
        exists = key in self._rows[table_name]
        if expectation == "EXPECT_EXIST" and not exists:
            raise FakeBackendError("OTSConditionCheckFail", "row does not exist")
        if expectation == "EXPECT_NOT_EXIST" and exists:
            raise FakeBackendError("OTSConditionCheckFail", "row already exists")

    @staticmethod
    def _columns(entries: Any) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for entry in entries or []:
            out.update(entry)
        return out

    def _record(self, table_name: str, key: _Key, params: Mapping[str, Any]) -> dict[str, Any]:
        schema = self._schema(table_name)
        start = params.get("startColumn")
        end = params.get("endColumn")
        attributes = []
        for name, value in self._rows[table_name][key].items():
            if start is not None and name < start:
                continue
            if end is not None and name >= end:
                continue
            attributes.append({"columnName": name, "columnValue": value, "timestamp": next(self._clock)})
        return {
            "primaryKey": [{"name": n, "value": v} for n, v in zip(schema.names, key, strict=True)],
            "attributes": attributes,
        }

    def _apply_write(self, table_name: str, op: str, params: Mapping[str, Any]) -> None:
        key = self._key(table_name, params.get("primaryKey"))
        self._check_condition(table_name, key, params.get("condition"))
        rows = self._rows[table_name]

        if op == "PUT":
            rows[key] = self._columns(params.get("attributeColumns"))
        elif op == "UPDATE":
            current = rows.setdefault(key, {})
            for update in params.get("updateOfAttributeColumns") or []:
                current.update(self._columns(update.get("PUT")))
        elif op == "DELETE":
            rows.pop(key, None)
        else:
            raise FakeBackendError("OTSParameterInvalid", f"unsupported row type: {op}")

    async def describe_table(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append(("describe_table", dict(params)))
        schema = self._schema(params.get("tableName"))
        return {"table_meta": {"primary_key": [{"name": d.name, "type": d.type} for d in schema]}}

    async def put_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append(("put_row", dict(params)))
        self._apply_write(params["tableName"], "PUT", params)
        return {}

    async def update_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append(("update_row", dict(params)))
        self._apply_write(params["tableName"], "UPDATE", params)
        return {}

    async def delete_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append(("delete_row", dict(params)))
        self._apply_write(params["tableName"], "DELETE", params)
        return {}

    async def get_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append(("get_row", dict(params)))
        table_name = params["tableName"]
        key = self._key(table_name, params.get("primaryKey"))
        if key not in self._rows[table_name]:
            return {"row": {}}
        return {"row": self._record(table_name, key, params)}

    async def batch_get_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append(("batch_get_row", dict(params)))
        tables: list[list[dict[str, Any]]] = []
        for table_req in params.get("tables") or []:
            table_name = table_req["tableName"]
            out: list[dict[str, Any]] = []
            for entries in table_req.get("primaryKey") or []:
                try:
                    key = self._key(table_name, entries)
                except FakeBackendError as err:
                    out.append({"isOk": False, "error": {"code": err.code, "message": err.message}})
                    continue
                if key in self._rows[table_name]:
                    out.append({"isOk": True, **self._record(table_name, key, table_req)})
                else:
                    out.append({"isOk": True, "primaryKey": None, "attributes": []})
            tables.append(out)
        return {"tables": tables}

    async def batch_write_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append(("batch_write_row", dict(params)))
        tables: dict[str, list[dict[str, Any]]] = {}
        for table_req in params.get("tables") or []:
            table_name = table_req["tableName"]
            results: list[dict[str, Any]] = []
            for row in table_req.get("rows") or []:
                try:
                    self._apply_write(table_name, str(row.get("type")), row)
                except FakeBackendError as err:
                    results.append({"isOk": False, "error": {"code": err.code, "message": err.message}})
                    continue
                results.append({"isOk": True})
            tables[table_name] = results
        return {"tables": tables}

    async def get_range(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append(("get_range", dict(params)))
        table_name = params["tableName"]
        schema = self._schema(table_name)
        if params.get("direction", "FORWARD") != "FORWARD":
            raise FakeBackendError("OTSParameterInvalid", "only FORWARD scans are supported")

        start_key = self._key(table_name, params.get("inclusiveStartPrimaryKey"), allow_boundaries=True)
        end_key = self._key(table_name, params.get("exclusiveEndPrimaryKey"), allow_boundaries=True)
        start, end = _sort_key(start_key), _sort_key(end_key)
        limit = params.get("limit")

        in_range = [k for k in sorted(self._rows[table_name], key=_sort_key) if start <= _sort_key(k) < end]
        page = in_range if limit is None else in_range[:limit]
        rest = in_range[len(page) :]

        resp: dict[str, Any] = {"rows": [self._record(table_name, key, params) for key in page]}
        if rest:
            resp["next_start_primary_key"] = [
                {"name": n, "value": v} for n, v in zip(schema.names, rest[0], strict=True)
            ]
        else:
            resp["next_start_primary_key"] = None
        return resp
