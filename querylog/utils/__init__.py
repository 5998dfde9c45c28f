"""
Utilities package for querylog.

Exports shared helpers for logging configuration and other cross-cutting
concerns. Keep this package lightweight and free of domain-specific logic.
"""

from querylog.utils.logging import CONN_PID_KEY, ConnPidFilter, configure_logging, get_logger

__all__ = [
    "CONN_PID_KEY",
    "ConnPidFilter",
    "configure_logging",
    "get_logger",
]
