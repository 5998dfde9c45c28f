"""
Dispatching of query log entries to a sink.

`log(entry)` emits at DEBUG and can be purged wholesale at startup through
the `QUERYLOG_PURGE_LEVEL` setting; `log(entry, level)` emits at the given
level and is never purged. Either way the sink receives a producer closure
rather than rendered text, so nothing is formatted unless the sink asks.

Usage:
    from querylog.dispatch import log

    log(entry)
    log(entry, "warning")
"""

from __future__ import annotations

import logging
import threading
from functools import lru_cache
from typing import Optional, Union

from querylog.config import get_settings
from querylog.domain.models import LogEntry
from querylog.rendering import to_iodata
from querylog.sinks import LoggingSink, Producer, Sink
from querylog.utils.logging import CONN_PID_KEY

DEFAULT_LEVEL = logging.DEBUG

Level = Union[int, str]

_default_sink: Optional[Sink] = None
_sink_lock = threading.Lock()


def get_default_sink() -> Sink:
    """Return the process-wide sink, creating a `LoggingSink` on first use."""
    global _default_sink
    with _sink_lock:
        if _default_sink is None:
            _default_sink = LoggingSink()
        return _default_sink


def set_default_sink(sink: Optional[Sink]) -> None:
    """Replace the process-wide sink. Passing None restores the logging sink lazily."""
    global _default_sink
    with _sink_lock:
        _default_sink = sink


def resolve_level(level: Level) -> int:
    """
    Convert a level name or number to a logging level number.

    Raises
    ------
    ValueError
        If the name is not a registered logging level.
    """
    if isinstance(level, bool):
        raise ValueError(f"Invalid log level {level!r}")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level '{level}'")
    return resolved


@lru_cache(maxsize=1)
def default_level_purged() -> bool:
    """
    Whether default-level call sites are disabled for this process.

    Evaluated once; call `default_level_purged.cache_clear()` after changing
    the purge level at runtime.
    """
    return DEFAULT_LEVEL < resolve_level(get_settings().purge_level)


def _producer(entry: LogEntry) -> Producer:
    def produce():
        _, iodata = to_iodata(entry)
        return iodata

    return produce


def log(entry: LogEntry, level: Optional[Level] = None, *, sink: Optional[Sink] = None) -> LogEntry:
    """
    Send an entry to a sink and return it unchanged.

    Parameters
    ----------
    entry : LogEntry
        The query execution to log.
    level : int or str, optional
        Severity to log at. Defaults to DEBUG, in which case the call is
        skipped entirely when DEBUG is purged.
    sink : Sink, optional
        Destination; defaults to the process-wide sink.
    """
    if level is None:
        if default_level_purged():
            return entry
        levelno = DEFAULT_LEVEL
    else:
        levelno = resolve_level(level)

    target = sink if sink is not None else get_default_sink()
    target.emit(levelno, _producer(entry), {CONN_PID_KEY: entry.connection_pid})
    return entry


__all__ = [
    "CONN_PID_KEY",
    "DEFAULT_LEVEL",
    "default_level_purged",
    "get_default_sink",
    "log",
    "resolve_level",
    "set_default_sink",
]
