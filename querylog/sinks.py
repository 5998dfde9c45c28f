"""
Log sinks for query entries.

A sink receives a severity, a zero-argument producer returning text
fragments, and a metadata mapping. It alone decides whether the producer is
worth calling. `LoggingSink` adapts the standard library `logging` module.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional, Protocol, runtime_checkable

from querylog.config import get_settings
from querylog.utils.logging import get_logger

Producer = Callable[[], List[str]]


@runtime_checkable
class Sink(Protocol):
    """
    Destination for query log lines.

    Implementations may skip calling `producer` when `level` is below their
    threshold; when they do call it, it is called at most once.
    """

    def emit(self, level: int, producer: Producer, metadata: Mapping[str, Any]) -> None:
        ...


class LazyMessage:
    """
    Log message that runs its producer on first `str()` and caches the text.

    `logging` only formats a record once a handler accepts it, so the
    producer never runs for records that are filtered out.
    """

    __slots__ = ("_producer", "_text")

    def __init__(self, producer: Producer) -> None:
        self._producer = producer
        self._text: Optional[str] = None

    @property
    def evaluated(self) -> bool:
        return self._text is not None

    def __str__(self) -> str:
        if self._text is None:
            self._text = "".join(self._producer())
        return self._text

    def __repr__(self) -> str:
        state = "evaluated" if self.evaluated else "pending"
        return f"<LazyMessage {state}>"


class LoggingSink:
    """
    Sink backed by a standard library logger.

    Metadata is attached to the log record through `extra`, so formatters
    and filters can read e.g. `record.conn_pid`.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or get_logger(get_settings().logger_name)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def emit(self, level: int, producer: Producer, metadata: Mapping[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(level, LazyMessage(producer), extra=dict(metadata))


__all__ = ["LazyMessage", "LoggingSink", "Producer", "Sink"]
