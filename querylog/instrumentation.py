"""
Query instrumentation for psycopg connections and pools.

Measures the phases of a query execution, builds a `LogEntry` from them and
dispatches it, whether the query succeeded or raised:

- queue: time spent checking a connection out of a pool
- query: time spent in `cursor.execute`
- decode: time spent fetching and decoding the result rows

Usage:
    from querylog.instrumentation import execute_logged, pooled_execute

    with psycopg.connect(dsn) as conn:
        rows = execute_logged(conn, "SELECT * FROM users WHERE id = %s", (42,))

    rows = pooled_execute(get_sync_pool(), "SELECT 1", level="info")
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from contextlib import ExitStack, contextmanager
from typing import Any, Generator, List, Optional, Tuple, Union

from psycopg import AsyncConnection, Connection
from psycopg_pool import ConnectionPool

from querylog import dispatch
from querylog.dispatch import Level
from querylog.domain.models import Error, LogEntry, Ok, QueryResult, Tagged
from querylog.sinks import Sink

Params = Optional[Union[Sequence[Any], Mapping[str, Any]]]

_PHASES = ("query", "decode", "queue")


class QueryTimer:
    """
    Stopwatch accumulating integer microseconds per execution phase.

    Phases that were never measured stay None so the rendered line omits
    them instead of reporting a zero duration.
    """

    def __init__(self) -> None:
        self.query_time: Optional[int] = None
        self.decode_time: Optional[int] = None
        self.queue_time: Optional[int] = None

    @contextmanager
    def measure(self, phase: str) -> Generator[None, None, None]:
        """Time the enclosed block, even if it raises, and add it to `phase`."""
        if phase not in _PHASES:
            raise ValueError(f"Unknown phase '{phase}'. Available: {', '.join(_PHASES)}")
        attr = f"{phase}_time"
        start = time.perf_counter_ns()
        try:
            yield
        finally:
            elapsed = (time.perf_counter_ns() - start) // 1000
            setattr(self, attr, (getattr(self, attr) or 0) + elapsed)

    def entry(
        self,
        query: Any,
        params: Params,
        result: QueryResult,
        connection_pid: Any = None,
    ) -> LogEntry:
        """Build the log entry for the measured execution."""
        return LogEntry(
            query=query,
            params=_entry_params(params),
            query_time=self.query_time or 0,
            decode_time=self.decode_time,
            queue_time=self.queue_time,
            connection_pid=connection_pid,
            result=result,
        )


def _entry_params(params: Params) -> Tuple[Any, ...]:
    if params is None:
        return ()
    if isinstance(params, Mapping):
        return tuple(params.values())
    return tuple(params)


def _bind_params(params: Params) -> Params:
    """Unwrap tagged parameters for the driver; the entry keeps the wrappers."""
    if params is None:
        return None
    if isinstance(params, Mapping):
        return {key: _unwrap(value) for key, value in params.items()}
    return [_unwrap(value) for value in params]


def _unwrap(value: Any) -> Any:
    return value.value if isinstance(value, Tagged) else value


def _query_source(sql: Any, conn: Any) -> Any:
    """
    Return query text, or a deferred builder for composed SQL objects.

    `psycopg.sql.Composable` needs the connection to render, which only
    happens if the entry actually gets logged.
    """
    if isinstance(sql, str):
        return sql
    if isinstance(sql, bytes):
        return sql.decode("utf-8", errors="replace")
    return lambda _entry: sql.as_string(conn)


def connection_pid(conn: Any) -> Optional[int]:
    """Backend process id of a psycopg connection, or None when unavailable."""
    info = getattr(conn, "info", None)
    if info is None:
        return None
    return getattr(info, "backend_pid", None)


def _run(
    conn: Connection,
    sql: Any,
    params: Params,
    timer: QueryTimer,
    level: Optional[Level],
    sink: Optional[Sink],
) -> Optional[List[Any]]:
    pid = connection_pid(conn)
    query = _query_source(sql, conn)
    rows: Optional[List[Any]] = None
    try:
        with conn.cursor() as cur:
            with timer.measure("query"):
                cur.execute(sql, _bind_params(params))
            if cur.description is not None:
                with timer.measure("decode"):
                    rows = cur.fetchall()
    except Exception as exc:
        dispatch.log(timer.entry(query, params, Error(exc), pid), level, sink=sink)
        raise
    dispatch.log(timer.entry(query, params, Ok(rows), pid), level, sink=sink)
    return rows


def execute_logged(
    conn: Connection,
    sql: Any,
    params: Params = None,
    *,
    level: Optional[Level] = None,
    sink: Optional[Sink] = None,
) -> Optional[List[Any]]:
    """
    Execute a statement on a connection and log it.

    Parameters
    ----------
    conn : psycopg.Connection
        Connection to execute on.
    sql : str or psycopg.sql.Composable
        Statement to run.
    params : sequence or mapping, optional
        Bind parameters.
    level : int or str, optional
        Log level; defaults to the dispatcher's default (DEBUG).
    sink : Sink, optional
        Destination; defaults to the process-wide sink.

    Returns
    -------
    list or None
        Fetched rows, or None for statements that return no rows.

    Raises
    ------
    psycopg.Error
        Re-raised unchanged after the failed execution has been logged.
    """
    return _run(conn, sql, params, QueryTimer(), level, sink)


def pooled_execute(
    pool: ConnectionPool,
    sql: Any,
    params: Params = None,
    *,
    level: Optional[Level] = None,
    sink: Optional[Sink] = None,
) -> Optional[List[Any]]:
    """
    Check a connection out of `pool`, execute on it and log it.

    The checkout wait is recorded as queue time. The pool commits on success
    and rolls back on failure when the connection is returned.
    """
    timer = QueryTimer()
    with ExitStack() as stack:
        with timer.measure("queue"):
            conn = stack.enter_context(pool.connection())
        return _run(conn, sql, params, timer, level, sink)


async def aexecute_logged(
    conn: AsyncConnection,
    sql: Any,
    params: Params = None,
    *,
    level: Optional[Level] = None,
    sink: Optional[Sink] = None,
) -> Optional[List[Any]]:
    """Async variant of `execute_logged` for `psycopg.AsyncConnection`."""
    timer = QueryTimer()
    pid = connection_pid(conn)
    query = _query_source(sql, conn)
    rows: Optional[List[Any]] = None
    try:
        async with conn.cursor() as cur:
            with timer.measure("query"):
                await cur.execute(sql, _bind_params(params))
            if cur.description is not None:
                with timer.measure("decode"):
                    rows = await cur.fetchall()
    except Exception as exc:
        dispatch.log(timer.entry(query, params, Error(exc), pid), level, sink=sink)
        raise
    dispatch.log(timer.entry(query, params, Ok(rows), pid), level, sink=sink)
    return rows


__all__ = [
    "QueryTimer",
    "aexecute_logged",
    "connection_pid",
    "execute_logged",
    "pooled_execute",
]
