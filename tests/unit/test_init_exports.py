from __future__ import annotations

import pytest

import widetable_py as widetable


def test_init_exposes_lazy_exports_via_getattr() -> None:
    assert callable(widetable.Table)
    assert callable(widetable.TableOptions)
    assert callable(widetable.TableConfig)
    assert callable(widetable.get_table_config)
    assert callable(widetable.parse_table_document)
    assert callable(widetable.objects_to_batch_items)
    assert callable(widetable.batch_items_to_object)
    assert callable(widetable.instrument_client)
    assert widetable.BatchItem.__name__ == "BatchItem"
    assert widetable.BackendCallMetric.__name__ == "BackendCallMetric"

    with pytest.raises(AttributeError):
        _ = widetable.DoesNotExist


def test_all_names_resolve() -> None:
    for name in widetable.__all__:
        assert getattr(widetable, name) is not None
    assert widetable.__version__ == "0.1.0"
