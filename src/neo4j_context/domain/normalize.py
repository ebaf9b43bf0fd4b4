"""Result normalization: raw driver records and summaries to plain shapes.

Pure functions. Raw results are recognised by shape (an object exposing
``records`` and ``summary``) so nothing here imports the driver, and every
function answers already-normalized input unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

# Counter attributes exposed by the driver's SummaryCounters
COUNTER_NAMES: tuple[str, ...] = (
    "nodes_created",
    "nodes_deleted",
    "relationships_created",
    "relationships_deleted",
    "properties_set",
    "labels_added",
    "labels_removed",
    "indexes_added",
    "indexes_removed",
    "constraints_added",
    "constraints_removed",
    "system_updates",
)


def is_raw_result(result: Any) -> bool:
    """True for a driver result (``EagerResult``-shaped), False for plain data."""
    if isinstance(result, Mapping | str | bytes):
        return False
    return hasattr(result, "records") and hasattr(result, "summary")


def record_to_dict(record: Any, only_fields: Sequence[str] | None = None) -> dict[str, Any]:
    """Convert one record to an ordered ``{field: value}`` dict.

    With *only_fields*, project those fields in the requested order; missing
    fields map to ``None``.
    """
    if only_fields is None:
        if isinstance(record, dict):
            return dict(record)
        return dict(record.items())
    return {name: record.get(name) for name in only_fields}


def flat_query_statistics(counters: Any) -> dict[str, int]:
    """Flatten query counters to ``{stat: n}``, dropping zero values."""
    if counters is None:
        return {}
    if isinstance(counters, Mapping):
        items = counters.items()
    else:
        items = ((name, getattr(counters, name, 0)) for name in COUNTER_NAMES)
    return {
        stat: num
        for stat, num in items
        if isinstance(num, int) and not isinstance(num, bool) and num > 0
    }


def normalize_summary(summary: Any) -> dict[str, Any] | None:
    """Convert a driver result summary into a flat, loggable dict.

    ``update_statistics`` mirrors ``counters`` for consumers that read either
    name.
    """
    if summary is None:
        return None
    if isinstance(summary, dict):
        return summary
    if isinstance(summary, Mapping):
        return dict(summary)
    counters = flat_query_statistics(getattr(summary, "counters", None))
    return {
        "counters": counters,
        "update_statistics": dict(counters),
        "query_type": getattr(summary, "query_type", None),
        "database": getattr(summary, "database", None),
    }


def normalize_records(result: Any, only_fields: Sequence[str] | None = None) -> Any:
    """Convert a raw result's records to dicts; pass anything else through."""
    if not is_raw_result(result):
        return result
    return [record_to_dict(rec, only_fields) for rec in result.records or []]
