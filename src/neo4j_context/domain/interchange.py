"""Textual interchange of query results.

Integers from the database are arbitrary precision. JSON consumers commonly
read numbers as IEEE doubles, so an integer outside the exactly representable
range is emitted as a string of its decimal digits instead of a lossy number.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import IO, Any

import orjson

MAX_SAFE_INTEGER = 2**53 - 1  # 9007199254740991
MIN_SAFE_INTEGER = -MAX_SAFE_INTEGER


def to_interchange(value: Any) -> Any:
    """Recursively replace unsafe integers with their decimal strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if MIN_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER:
            return value
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): to_interchange(v) for k, v in value.items()}
    if isinstance(value, list | tuple | set | frozenset):
        return [to_interchange(v) for v in value]
    return value


def _default(obj: Any) -> Any:
    # neo4j.time temporal types
    iso_format = getattr(obj, "iso_format", None)
    if callable(iso_format):
        return iso_format()
    msg = f"Type is not JSON serializable: {type(obj).__name__}"
    raise TypeError(msg)


def dumps(value: Any) -> bytes:
    """Serialize *value* to JSON bytes with exact integer interchange."""
    return orjson.dumps(to_interchange(value), default=_default)


def write_result(data: Any, stream: IO[str]) -> None:
    """Write ``{"result": data}`` as a single JSON line to *stream*."""
    stream.write(dumps({"result": data}).decode())
    stream.write("\n")
