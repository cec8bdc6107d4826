from datetime import date, datetime, timezone

from neo4j.time import Date, DateTime

from docgraph.core.normalize import (
    is_wide_int,
    normalize_record,
    normalize_value,
    wide_int_value,
)


def test_boxed_one_becomes_plain_int():
    assert normalize_value({"low": 1, "high": 0}) == 1


def test_boxed_values_beyond_32_bits():
    assert wide_int_value({"low": 0, "high": 1}) == 2**32
    assert wide_int_value({"low": 5, "high": 2}) == 2 * 2**32 + 5


def test_boxed_negative_values():
    assert wide_int_value({"low": -1, "high": -1}) == -1
    assert wide_int_value({"low": -2, "high": -1}) == -2


def test_only_the_exact_marker_shape_is_unboxed():
    assert not is_wide_int({"low": 1, "high": 0, "extra": 2})
    assert not is_wide_int({"low": "1", "high": 0})
    assert not is_wide_int({"low": True, "high": False})
    assert not is_wide_int({"low": 1})
    assert normalize_value({"low": 1}) == {"low": 1}


def test_nested_structures_are_walked():
    record = {
        "n": {
            "name": "CUST-001",
            "credit_limit": {"low": 50000, "high": 0},
            "tags": [{"low": 3, "high": 0}, "vip"],
        },
        "total": {"low": 7, "high": 0},
    }
    assert normalize_record(record) == {
        "n": {"name": "CUST-001", "credit_limit": 50000, "tags": [3, "vip"]},
        "total": 7,
    }


def test_schema_flags_are_unboxed():
    field = {"fieldname": "status", "reqd": {"low": 1, "high": 0}, "in_list_view": {"low": 0, "high": 0}}
    assert normalize_value(field) == {"fieldname": "status", "reqd": 1, "in_list_view": 0}


def test_plain_values_pass_through():
    for value in ["text", 3, 2.5, True, False, None]:
        assert normalize_value(value) == value


def test_driver_temporal_values_become_iso_strings():
    value = normalize_value(DateTime(2025, 3, 15, 10, 30, 0, tzinfo=timezone.utc))
    assert isinstance(value, str)
    assert value.startswith("2025-03-15T10:30:00")
    assert normalize_value(Date(2025, 1, 20)) == "2025-01-20"


def test_native_temporal_values_become_iso_strings():
    assert normalize_value(date(2025, 4, 1)) == "2025-04-01"
    assert normalize_value(datetime(2025, 4, 1, 12, 0)) == "2025-04-01T12:00:00"


def test_tuples_become_lists():
    assert normalize_value(({"low": 2, "high": 0}, "x")) == [2, "x"]
