"""
Text rendering of query log entries.

Turns a `LogEntry` into a list of string fragments (joinable without
intermediate copies) with the shape:

    <query> <params> <OK|ERROR>[ query=D.Dms][ decode=D.Dms][ queue=D.Dms]

Usage:
    from querylog.rendering import render, to_iodata

    entry, fragments = to_iodata(entry)
    line = render(entry)
"""

from __future__ import annotations

import datetime as dt
import math
import uuid
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from querylog.domain.models import LogEntry, Ok, Tagged

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\x1b": "\\e",
    "\x00": "\\0",
}


def _quote(text: str) -> str:
    """Render text as a double-quoted literal with control characters escaped."""
    out: List[str] = ['"']
    for char in text:
        if char in _ESCAPES:
            out.append(_ESCAPES[char])
        elif char.isprintable():
            out.append(char)
        elif ord(char) < 0x100:
            out.append(f"\\x{ord(char):02X}")
        else:
            out.append(f"\\u{{{ord(char):X}}}")
    out.append('"')
    return "".join(out)


def _inspect_bytes(data: bytes) -> str:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        text = None
    if text is not None and all(char in _ESCAPES or char.isprintable() for char in text):
        return _quote(text)
    return "<<" + ", ".join(str(byte) for byte in data) + ">>"


def _inspect_int(value: int) -> str:
    try:
        return str(value)
    except ValueError:
        # past sys.get_int_max_str_digits(); hex conversion has no limit
        return hex(value)


def _inspect_float(value: float) -> str:
    """Shortest round-trip form with a stable exponent shape, e.g. 1.0e20."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    text = repr(value)
    if "e" not in text:
        return text
    mantissa, exponent = text.split("e")
    if "." not in mantissa:
        mantissa += ".0"
    return f"{mantissa}e{int(exponent)}"


def inspect_value(value: Any) -> str:
    """
    Render a parameter value as a human-readable literal.

    Covers the value kinds query parameters take: text, bytes, booleans,
    None, numbers, dates and times, UUIDs, and nested sequences or mappings.
    Anything else falls back to `repr()`.
    """
    if value is None:
        return "nil"
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _inspect_bytes(bytes(value))
    if isinstance(value, int):
        return _inspect_int(value)
    if isinstance(value, float):
        return _inspect_float(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return _quote(value.isoformat())
    if isinstance(value, dt.timedelta):
        return repr(value)
    if isinstance(value, uuid.UUID):
        return _quote(str(value))
    if isinstance(value, Mapping):
        items = ", ".join(f"{inspect_value(k)} => {inspect_value(v)}" for k, v in value.items())
        return "%{" + items + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(inspect_value(item) for item in value) + "]"
    if isinstance(value, (set, frozenset)):
        # sets have no stable order; sort rendered members for determinism
        return "[" + ", ".join(sorted(inspect_value(item) for item in value)) + "]"
    return repr(value)


def _ok_error(result: Any) -> str:
    return "OK" if isinstance(result, Ok) else "ERROR"


def _time(label: str, micros: Optional[int], force: bool) -> List[str]:
    """
    Render one timing segment.

    Milliseconds are truncated at the hundred-microsecond boundary before
    scaling, so 999us is 0.9ms and 50us is 0.0ms. Non-forced segments are
    dropped unless the truncated value is above zero.
    """
    if micros is None:
        return []
    ms = micros // 100 / 10
    if force or ms > 0:
        return [" ", label, "=", f"{ms:.1f}", "ms"]
    return []


def resolve_query(entry: LogEntry) -> str:
    """Return the query text, calling the deferred builder if one was given."""
    query = entry.query
    if callable(query):
        return query(entry)
    return query


def normalize_params(params: Tuple[Any, ...]) -> List[Any]:
    """Replace tagged parameters by their raw values, preserving order."""
    return [param.value if isinstance(param, Tagged) else param for param in params]


def to_iodata(entry: LogEntry) -> Tuple[LogEntry, List[str]]:
    """
    Convert an entry into text fragments.

    The entry is returned unchanged alongside the fragments. Errors raised by
    a deferred query builder propagate to the caller.
    """
    fragments: List[str] = [
        resolve_query(entry),
        " ",
        inspect_value(normalize_params(entry.params)),
        " ",
        _ok_error(entry.result),
    ]
    fragments.extend(_time("query", entry.query_time, True))
    fragments.extend(_time("decode", entry.decode_time, False))
    fragments.extend(_time("queue", entry.queue_time, False))
    return entry, fragments


def render(entry: LogEntry) -> str:
    """Render an entry as a single log line."""
    _, fragments = to_iodata(entry)
    return "".join(fragments)


__all__ = [
    "inspect_value",
    "normalize_params",
    "render",
    "resolve_query",
    "to_iodata",
]
