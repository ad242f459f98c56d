from __future__ import annotations

import pytest

from widetable_py import (
    INF_MAX,
    INF_MIN,
    Condition,
    KeyEncodingError,
    PrimaryKeyDescriptor,
    PrimaryKeySchema,
    ValidationError,
    encode_int64,
)
from widetable_py.schema import coerce_schema, is_boundary, normalize_key_type


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("STRING", "STRING"),
        ("integer", "INTEGER"),
        (" INT64 ", "INTEGER"),
        ("long", "INTEGER"),
        ("binary", "BINARY"),
        (1, "INTEGER"),
        (2, "STRING"),
        (3, "BINARY"),
    ],
)
def test_normalize_key_type(raw: object, expected: str) -> None:
    assert normalize_key_type(raw) == expected


@pytest.mark.parametrize("raw", ["DOUBLE", "", None, True, 4, ["STRING"]])
def test_normalize_key_type_rejects_unknown_types(raw: object) -> None:
    with pytest.raises(ValidationError, match="unsupported primary key type"):
        normalize_key_type(raw)


def test_encode_int64_reports_the_reason() -> None:
    with pytest.raises(KeyEncodingError, match=r"uid: outside signed 64-bit range \(value=\d+\)"):
        encode_int64("uid", 2**63)
    with pytest.raises(KeyEncodingError, match="boolean"):
        encode_int64("uid", False)
    with pytest.raises(KeyEncodingError, match="finite"):
        encode_int64("uid", float("inf"))
    with pytest.raises(KeyEncodingError, match="finite"):
        encode_int64("uid", "NaN")
    with pytest.raises(KeyEncodingError, match="not numeric"):
        encode_int64("uid", "1.5x")
    with pytest.raises(KeyEncodingError, match="64-bit range"):
        encode_int64("uid", "1e30")
    assert encode_int64("uid", " 42.99 ") == 42


def test_descriptor_encode_passes_boundaries_and_other_types_through() -> None:
    desc = PrimaryKeyDescriptor("uid", "INTEGER")
    assert desc.encode(INF_MIN) is INF_MIN
    assert desc.encode(INF_MAX) is INF_MAX
    assert desc.encode("7") == 7
    assert PrimaryKeyDescriptor("name").encode(7) == 7
    assert PrimaryKeyDescriptor("blob", "BINARY").encode(b"x") == b"x"


def test_boundaries() -> None:
    assert is_boundary(INF_MIN)
    assert is_boundary(INF_MAX)
    assert not is_boundary(None)
    assert repr(INF_MIN) == "INF_MIN"
    assert INF_MIN.rank < INF_MAX.rank


def test_schema_construction_forms_agree() -> None:
    a = PrimaryKeySchema.of(("uid", "INTEGER"), "name")
    b = PrimaryKeySchema.from_mappings([{"name": "uid", "type": "INTEGER"}, {"name": "name"}])
    c = coerce_schema([PrimaryKeyDescriptor("uid", "INTEGER"), {"name": "name", "type": "STRING"}])

    assert a == b == c
    assert coerce_schema(a) is a
    assert a.names == ("uid", "name")
    assert len(a) == 2
    assert [d.type for d in a] == ["INTEGER", "STRING"]


@pytest.mark.parametrize(
    ("raw", "match"),
    [
        ([], "at least one column"),
        ([{"name": "a"}, {"name": "a"}], "duplicate"),
        ([{"type": "STRING"}], r"primary_key\[0\].name"),
        (["a"], r"primary_key\[0\] must be a map"),
        ("uid", "must be a list"),
        ([{"name": "bad-name"}], "column name"),
        ([{"name": "a", "type": "FLOAT"}], "unsupported primary key type"),
    ],
)
def test_schema_rejects_invalid_definitions(raw: object, match: str) -> None:
    with pytest.raises(ValidationError, match=match):
        PrimaryKeySchema.from_mappings(raw)  # type: ignore[arg-type]


def test_from_describe_response() -> None:
    schema = PrimaryKeySchema.from_describe_response(
        {"table_meta": {"primary_key": [{"name": "uid", "type": 1}, {"name": "ts", "type": "INTEGER"}]}}
    )
    assert schema == PrimaryKeySchema.of(("uid", "INTEGER"), ("ts", "INTEGER"))

    with pytest.raises(ValidationError, match="table_meta"):
        PrimaryKeySchema.from_describe_response({})
    with pytest.raises(ValidationError, match="at least one column"):
        PrimaryKeySchema.from_describe_response({"table_meta": {}})


def test_conditions() -> None:
    assert Condition.ignore().row_existence_expectation == "IGNORE"
    assert Condition.expect_exist().row_existence_expectation == "EXPECT_EXIST"
    assert Condition.expect_not_exist() == Condition("EXPECT_NOT_EXIST")
    assert Condition.ignore().column_condition is None
