from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping, Sequence
from typing import Any

from .batch import (
    BatchItemOutcome,
    check_batch_operations,
    objects_to_batch_items,
    outcomes_to_object,
    reconcile_batch_outcomes,
)
from .builders import build_delete, build_insert, build_put, build_update, require_row
from .config import TableConfig, TableOptions
from .errors import SchemaNotResolvedError, ValidationError
from .mapper import (
    KeyColumns,
    Row,
    key_entries_to_row,
    missing_key_columns,
    response_to_row,
    row_to_full_primary_key,
    row_to_primary_key,
)
from .runtime import BackendClient
from .schema import INF_MAX, INF_MIN, Condition, Direction, PrimaryKeySchema, coerce_schema
from .validation import validate_table_name

logger = logging.getLogger(__name__)

# Column bounds that select no attribute columns; the skip scan only needs keys.
SKIP_SCAN_START_COLUMN = "_"
SKIP_SCAN_END_COLUMN = "__"


def _positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{name} must be > 0")
    return value


def _error_code(error: Any) -> str:
    if isinstance(error, Mapping):
        return str(error.get("code") or error.get("message") or "UnknownError")
    if error is None:
        return "NoResult"
    return str(error)


class Table:
    def __init__(
        self,
        table_name: str,
        *,
        client: BackendClient | None = None,
        primary_keys: PrimaryKeySchema | Sequence[Any] | None = None,
        options: TableOptions | None = None,
    ) -> None:
        validate_table_name(table_name)

        self._table_name = table_name
        self._client: Any = client
        self._options = options or TableOptions()
        self._schema: PrimaryKeySchema | None = None
        if primary_keys is not None:
            self._schema = coerce_schema(primary_keys)
        self._sync_lock: asyncio.Lock | None = None
        self._sync_loop: asyncio.AbstractEventLoop | None = None

    @staticmethod
    def from_config(config: TableConfig, *, client: BackendClient | None = None) -> Table:
        return Table(
            config.table_name,
            client=client,
            primary_keys=config.primary_keys,
            options=config.options,
        )

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def options(self) -> TableOptions:
        return self._options

    @property
    def is_synced(self) -> bool:
        return self._schema is not None

    @property
    def primary_keys(self) -> PrimaryKeySchema:
        if self._schema is None:
            raise SchemaNotResolvedError(self._table_name)
        return self._schema

    def set_client(self, client: BackendClient) -> Table:
        self._client = client
        return self

    def _require_client(self) -> Any:
        if self._client is None:
            raise ValidationError(f"{self._table_name}: backend client is not configured")
        return self._client

    async def sync(self, force: bool = False) -> Table:
        if self._schema is not None and not force:
            return self

        async with self._lock_for_running_loop():
            # Another caller may have resolved the schema while we waited.
            if self._schema is not None and not force:
                return self
            client = self._require_client()
            resp = await client.describe_table({"tableName": self._table_name})
            self._schema = PrimaryKeySchema.from_describe_response(resp)
            logger.info("%s: synced primary key schema %s", self._table_name, list(self._schema.names))
        return self

    def _lock_for_running_loop(self) -> asyncio.Lock:
        # An asyncio.Lock binds to the loop it first waits on; keep one per loop.
        loop = asyncio.get_running_loop()
        if self._sync_lock is None or self._sync_loop is not loop:
            self._sync_lock = asyncio.Lock()
            self._sync_loop = loop
        return self._sync_lock

    async def _resolve_schema(self) -> PrimaryKeySchema:
        if self._schema is None:
            await self.sync()
        return self.primary_keys

    async def validate_row(self, row: Mapping[str, Any] | None) -> bool:
        if not row:
            return False
        return not missing_key_columns(await self._resolve_schema(), row)

    async def put(
        self, row: Mapping[str, Any], *, condition: Condition | None = None
    ) -> Mapping[str, Any]:
        require_row(row)
        params = build_put(await self._resolve_schema(), self._table_name, row, condition)
        await self._require_client().put_row(params)
        return row

    async def insert(
        self, row: Mapping[str, Any], *, condition: Condition | None = None
    ) -> Mapping[str, Any]:
        require_row(row)
        params = build_insert(await self._resolve_schema(), self._table_name, row, condition)
        await self._require_client().put_row(params)
        return row

    async def update(
        self, row: Mapping[str, Any], *, condition: Condition | None = None
    ) -> Mapping[str, Any]:
        """Update the attribute columns of an existing row.

        Returns ``row`` itself, not the backend response; the default condition
        fails when the row does not exist.
        """
        require_row(row)
        params = build_update(await self._resolve_schema(), self._table_name, row, condition)
        await self._require_client().update_row(params)
        return row

    async def delete(
        self, row: Mapping[str, Any], *, condition: Condition | None = None
    ) -> Mapping[str, Any]:
        require_row(row)
        params = build_delete(await self._resolve_schema(), self._table_name, row, condition)
        await self._require_client().delete_row(params)
        return row

    async def batch_write_outcomes(
        self,
        operations: Mapping[str, Sequence[Mapping[str, Any]] | None],
    ) -> list[BatchItemOutcome]:
        # Outcomes are in request order: map order, then row order.
        check_batch_operations(operations)
        schema = await self._resolve_schema()
        items = objects_to_batch_items(schema, self._table_name, operations)

        resp = await self._require_client().batch_write_row(
            {"tables": [{"tableName": self._table_name, "rows": [item.to_request() for item in items]}]}
        )
        results = (resp.get("tables") or {}).get(self._table_name) or []
        if len(results) != len(items):
            logger.warning(
                "%s: batch_write got %d results for %d items", self._table_name, len(results), len(items)
            )

        outcomes = reconcile_batch_outcomes(items, results)
        failed = [o for o in outcomes if not o.ok]
        if failed:
            logger.warning(
                "%s: batch_write %d of %d items failed: %s",
                self._table_name,
                len(failed),
                len(outcomes),
                [_error_code(o.error) for o in failed],
            )
        return outcomes

    async def batch_write(
        self,
        operations: Mapping[str, Sequence[Mapping[str, Any]] | None],
    ) -> dict[str, list[Row]]:
        # Failed items are dropped here; batch_write_outcomes keeps them.
        return outcomes_to_object(await self.batch_write_outcomes(operations))

    async def batch_put(self, rows: Sequence[Mapping[str, Any]]) -> dict[str, list[Row]]:
        if not rows:
            raise ValidationError("rows is required")
        return await self.batch_write({"put": rows})

    async def batch_insert(self, rows: Sequence[Mapping[str, Any]]) -> dict[str, list[Row]]:
        if not rows:
            raise ValidationError("rows is required")
        return await self.batch_write({"insert": rows})

    async def batch_update(self, rows: Sequence[Mapping[str, Any]]) -> dict[str, list[Row]]:
        if not rows:
            raise ValidationError("rows is required")
        return await self.batch_write({"update": rows})

    async def batch_delete(self, rows: Sequence[Mapping[str, Any]]) -> dict[str, list[Row]]:
        if not rows:
            raise ValidationError("rows is required")
        return await self.batch_write({"delete": rows})

    async def get(
        self,
        row: Mapping[str, Any],
        *,
        start_column: str | None = None,
        end_column: str | None = None,
    ) -> Row | None:
        require_row(row)
        schema = await self._resolve_schema()

        params: dict[str, Any] = {
            "tableName": self._table_name,
            "primaryKey": row_to_full_primary_key(schema, row),
            "maxVersions": self._options.max_versions,
        }
        self._apply_column_range(params, start_column, end_column)

        resp = await self._require_client().get_row(params)
        return response_to_row(resp.get("row"))

    async def batch_get(
        self,
        rows: Sequence[Mapping[str, Any]],
        *,
        start_column: str | None = None,
        end_column: str | None = None,
    ) -> list[Row]:
        if not rows:
            raise ValidationError("rows is required")
        for row in rows:
            require_row(row)
        schema = await self._resolve_schema()

        table_req: dict[str, Any] = {
            "tableName": self._table_name,
            "primaryKey": [row_to_full_primary_key(schema, row) for row in rows],
            "maxVersions": self._options.max_versions,
        }
        self._apply_column_range(table_req, start_column, end_column)

        resp = await self._require_client().batch_get_row({"tables": [table_req]})
        tables = resp.get("tables") or []
        items = tables[0] if tables else []

        out: list[Row] = []
        failed = 0
        for item in items or []:
            if not item.get("isOk"):
                failed += 1
                continue
            found = response_to_row(item)
            if found is not None:
                out.append(found)
        if failed:
            logger.warning("%s: batch_get %d of %d keys failed", self._table_name, failed, len(rows))
        return out

    async def iter_range(
        self,
        start_row: Mapping[str, Any] | None = None,
        end_row: Mapping[str, Any] | None = None,
        *,
        start_column: str | None = None,
        end_column: str | None = None,
        page_size: int | None = None,
    ) -> AsyncIterator[Row]:
        if page_size is None:
            page_size = self._options.range_page_size
        limit = _positive_int("page_size", page_size)
        schema = await self._resolve_schema()
        client = self._require_client()

        end_key = row_to_primary_key(schema, end_row, INF_MAX)
        cursor: Mapping[str, Any] = start_row or {}
        pages = 0

        while True:
            params = self._range_params(
                row_to_primary_key(schema, cursor, INF_MIN),
                end_key,
                limit=limit,
                start_column=start_column,
                end_column=end_column,
            )
            resp = await client.get_range(params)
            pages += 1

            items = resp.get("rows") or []
            logger.debug("%s: range page %d returned %d rows", self._table_name, pages, len(items))
            for item in items:
                row = response_to_row(item)
                if row is not None:
                    yield row

            next_key = resp.get("next_start_primary_key")
            if not next_key:
                break
            cursor = key_entries_to_row(next_key)

    async def get_range(
        self,
        start_row: Mapping[str, Any] | None = None,
        end_row: Mapping[str, Any] | None = None,
        *,
        start_column: str | None = None,
        end_column: str | None = None,
        page_size: int | None = None,
    ) -> list[Row]:
        return [
            row
            async for row in self.iter_range(
                start_row,
                end_row,
                start_column=start_column,
                end_column=end_column,
                page_size=page_size,
            )
        ]

    async def select(
        self,
        where: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
        page: int = 1,
        start_column: str | None = None,
        end_column: str | None = None,
    ) -> list[Row]:
        """Return page ``page`` of ``limit`` rows starting at the ``where`` key prefix.

        The backend has no offsets, so pages after the first are reached with a
        key-only skip scan over ``(page - 1) * limit`` rows followed by a real
        scan from its continuation key. Each call costs at most two round trips
        but work grows linearly with ``page``: this approximates offset paging,
        it is not random access. A page past the end of the data is ``[]``.
        """
        limit = _positive_int("limit", limit if limit is not None else self._options.select_limit)
        if isinstance(page, bool) or not isinstance(page, int):
            raise ValidationError("page must be an integer")
        page = max(page, 1)

        schema = await self._resolve_schema()
        client = self._require_client()

        start_key = row_to_primary_key(schema, where, INF_MIN)
        end_key = row_to_primary_key(schema, None, INF_MAX)

        if page == 1:
            resp = await client.get_range(
                self._range_params(
                    start_key, end_key, limit=limit, start_column=start_column, end_column=end_column
                )
            )
            items = resp.get("rows") or []
        else:
            offset = (page - 1) * limit
            skipped = await client.get_range(
                self._range_params(
                    start_key,
                    end_key,
                    limit=offset,
                    start_column=SKIP_SCAN_START_COLUMN,
                    end_column=SKIP_SCAN_END_COLUMN,
                )
            )
            next_key = skipped.get("next_start_primary_key")
            if not next_key:
                logger.debug("%s: select page %d is past the end of the data", self._table_name, page)
                return []

            resume_key = row_to_primary_key(schema, key_entries_to_row(next_key), INF_MIN)
            resp = await client.get_range(
                self._range_params(
                    resume_key, end_key, limit=limit, start_column=start_column, end_column=end_column
                )
            )
            items = resp.get("rows") or []

        out: list[Row] = []
        for item in items:
            row = response_to_row(item)
            if row is not None:
                out.append(row)
        return out

    def _range_params(
        self,
        start_key: KeyColumns,
        end_key: KeyColumns,
        *,
        limit: int,
        start_column: str | None,
        end_column: str | None,
        direction: Direction = "FORWARD",
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "tableName": self._table_name,
            "direction": direction,
            "inclusiveStartPrimaryKey": start_key,
            "exclusiveEndPrimaryKey": end_key,
            "limit": limit,
            "maxVersions": self._options.max_versions,
        }
        self._apply_column_range(params, start_column, end_column)
        return params

    @staticmethod
    def _apply_column_range(params: dict[str, Any], start_column: str | None, end_column: str | None) -> None:
        if start_column is not None:
            params["startColumn"] = start_column
        if end_column is not None:
            params["endColumn"] = end_column
