from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .errors import (
    ConfigError,
    KeyEncodingError,
    SchemaNotResolvedError,
    ValidationError,
    WidetablePyError,
)
from .schema import (
    INF_MAX,
    INF_MIN,
    Condition,
    PrimaryKeyDescriptor,
    PrimaryKeySchema,
    encode_int64,
)

if TYPE_CHECKING:
    from .batch import BatchItem, BatchItemOutcome, batch_items_to_object, objects_to_batch_items
    from .config import TableConfig, TableOptions, get_table_config, parse_table_document
    from .runtime import BackendCallMetric, BackendClient, instrument_client
    from .table import Table

__version__ = "0.1.0"


def __getattr__(name: str) -> Any:
    if name == "Table":
        from .table import Table

        return Table
    if name in {"BatchItem", "BatchItemOutcome", "batch_items_to_object", "objects_to_batch_items"}:
        from . import batch

        return getattr(batch, name)
    if name in {"TableConfig", "TableOptions", "get_table_config", "parse_table_document"}:
        from . import config

        return getattr(config, name)
    if name in {"BackendCallMetric", "BackendClient", "instrument_client"}:
        from . import runtime

        return getattr(runtime, name)
    raise AttributeError(name)


__all__ = [
    "BackendCallMetric",
    "BackendClient",
    "BatchItem",
    "BatchItemOutcome",
    "batch_items_to_object",
    "Condition",
    "ConfigError",
    "encode_int64",
    "get_table_config",
    "INF_MAX",
    "INF_MIN",
    "instrument_client",
    "KeyEncodingError",
    "objects_to_batch_items",
    "parse_table_document",
    "PrimaryKeyDescriptor",
    "PrimaryKeySchema",
    "SchemaNotResolvedError",
    "Table",
    "TableConfig",
    "TableOptions",
    "ValidationError",
    "WidetablePyError",
    "__version__",
]
