from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class BackendClient(Protocol):
    async def describe_table(self, params: Mapping[str, Any]) -> Mapping[str, Any]: ...

    async def put_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]: ...

    async def update_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]: ...

    async def delete_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]: ...

    async def get_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]: ...

    async def batch_get_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]: ...

    async def batch_write_row(self, params: Mapping[str, Any]) -> Mapping[str, Any]: ...

    async def get_range(self, params: Mapping[str, Any]) -> Mapping[str, Any]: ...


@dataclass(frozen=True)
class BackendCallMetric:
    operation: str
    seconds: float
    ok: bool


def log_backend_call(metric: BackendCallMetric) -> None:
    logger.debug(
        "backend call %s %s in %.3fs",
        metric.operation,
        "ok" if metric.ok else "failed",
        metric.seconds,
    )


class _InstrumentedClient:
    def __init__(self, client: Any, on_call: Callable[[BackendCallMetric], None]) -> None:
        self._client = client
        self._on_call = on_call

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._client, name)
        if name.startswith("_") or not inspect.iscoroutinefunction(attr):
            return attr

        async def wrapped(*args: Any, **kwargs: Any) -> Any:
            start = time.monotonic()
            try:
                out = await attr(*args, **kwargs)
            except Exception:
                self._on_call(BackendCallMetric(operation=name, seconds=time.monotonic() - start, ok=False))
                raise

            self._on_call(BackendCallMetric(operation=name, seconds=time.monotonic() - start, ok=True))
            return out

        return wrapped


def instrument_client(
    client: Any,
    *,
    on_call: Callable[[BackendCallMetric], None] | None = None,
) -> Any:
    return _InstrumentedClient(client, on_call or log_backend_call)
