"""
Value normalization at the store -> application boundary.

Every record read from Neo4j passes through ``normalize_value`` before it
reaches a caller, so nothing above the client ever sees driver types:

- boxed wide integers (``{"low": ..., "high": ...}``, the shape the
  JavaScript driver and some JSON bridges emit) become plain ints
- ``neo4j.time`` temporal values and stdlib dates become ISO-8601 strings
- ``Node`` / ``Relationship`` values become plain dicts of their properties
- dicts, lists and tuples are walked recursively
"""

from datetime import date, datetime, time, timedelta
from typing import Any

from neo4j.graph import Node, Relationship
from neo4j.time import Date, DateTime, Duration, Time

WIDE_INT_KEYS = frozenset({"low", "high"})

_TEMPORAL_TYPES = (DateTime, Date, Time, Duration)
_NATIVE_TEMPORAL_TYPES = (datetime, date, time)


def is_wide_int(value: Any) -> bool:
    """True for a ``{"low": int, "high": int}`` mapping and nothing else."""
    if not isinstance(value, dict) or set(value.keys()) != WIDE_INT_KEYS:
        return False
    low, high = value["low"], value["high"]
    return (
        isinstance(low, int) and not isinstance(low, bool)
        and isinstance(high, int) and not isinstance(high, bool)
    )


def wide_int_value(value: dict) -> int:
    """Combine signed 32-bit halves into the integer they represent."""
    return (value["high"] << 32) + (value["low"] & 0xFFFFFFFF)


def normalize_value(value: Any) -> Any:
    """Recursively convert a driver value into plain Python values."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if is_wide_int(value):
        return wide_int_value(value)
    if isinstance(value, _TEMPORAL_TYPES):
        return value.iso_format()
    if isinstance(value, _NATIVE_TEMPORAL_TYPES):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (Node, Relationship)):
        return {key: normalize_value(val) for key, val in value.items()}
    if isinstance(value, dict):
        return {key: normalize_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_value(item) for item in value]
    return value


def normalize_record(record: dict[str, Any]) -> dict[str, Any]:
    """Normalize every field of one result record."""
    return {key: normalize_value(value) for key, value in record.items()}


def normalize_records(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [normalize_record(record) for record in records]
