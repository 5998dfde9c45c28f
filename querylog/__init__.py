"""
querylog - deferred, human-readable logging of database query executions.

A data-access layer builds one `LogEntry` per query execution (timings,
parameters, outcome, connection) and hands it to `log`. The entry is only
rendered into a line such as

    SELECT * FROM users WHERE id = $1 [42] OK query=1.5ms decode=0.2ms

if the logging sink accepts the level, so disabled debug logging costs
nothing beyond building the record.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from querylog.config import Settings, get_settings
from querylog.dispatch import CONN_PID_KEY, get_default_sink, log, set_default_sink
from querylog.domain.models import Error, LogEntry, Ok, Tagged
from querylog.instrumentation import (
    QueryTimer,
    aexecute_logged,
    execute_logged,
    pooled_execute,
)
from querylog.rendering import inspect_value, render, to_iodata
from querylog.sinks import LazyMessage, LoggingSink, Sink
from querylog.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Records
    "LogEntry",
    "Tagged",
    "Ok",
    "Error",
    # Rendering
    "inspect_value",
    "render",
    "to_iodata",
    # Dispatch
    "CONN_PID_KEY",
    "log",
    "get_default_sink",
    "set_default_sink",
    "Sink",
    "LoggingSink",
    "LazyMessage",
    # Instrumentation
    "QueryTimer",
    "execute_logged",
    "pooled_execute",
    "aexecute_logged",
    # Logging
    "configure_logging",
    "get_logger",
]
