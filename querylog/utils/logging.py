"""
Logging utilities for querylog.

Centralizes logging configuration so the CLI, the dispatcher and the
instrumentation layer share one human-readable format. Query log lines carry
the executing connection under the `conn_pid` record attribute; the console
format prints it, and records that do not carry one show `-`.

Usage:
    from querylog.utils.logging import configure_logging, get_logger

    configure_logging(level="DEBUG")
    log = get_logger(__name__)
    log.info("message", extra={"conn_pid": 4242})
"""

from __future__ import annotations

import logging
import logging.config
from typing import Optional

CONN_PID_KEY = "conn_pid"

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s [conn=%(conn_pid)s]"


class ConnPidFilter(logging.Filter):
    """Default the connection attribute so the console format always resolves."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if getattr(record, CONN_PID_KEY, None) is None:
            setattr(record, CONN_PID_KEY, "-")
        return True


def configure_logging(level: str = "INFO", force: bool = True) -> None:
    """
    Configure root logging.

    Parameters
    ----------
    level : str
        Logging level name (e.g., "DEBUG", "INFO", "WARNING").
    force : bool
        Whether to override existing logging configuration (recommended in CLI apps).
        When False and the root logger already has handlers, nothing is changed.
    """
    if not force and logging.getLogger().handlers:
        return

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "conn_pid": {
                    "()": ConnPidFilter,
                },
            },
            "formatters": {
                "console": {
                    "format": CONSOLE_FORMAT,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "console",
                    "filters": ["conn_pid"],
                    "level": level.upper(),
                }
            },
            "root": {
                "handlers": ["default"],
                "level": level.upper(),
            },
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger with the given name. If name is None, returns the root logger.
    """
    return logging.getLogger(name)


__all__ = ["CONN_PID_KEY", "ConnPidFilter", "configure_logging", "get_logger"]
