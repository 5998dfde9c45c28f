"""
Infrastructure package for querylog.

Centralizes database connectivity concerns (connection factory, pooling).
Keep this layer focused on I/O and resource management, decoupled from
rendering and dispatch logic.
"""

from querylog.infrastructure.db_factory import (
    apply_statement_timeout,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)

__all__ = [
    "apply_statement_timeout",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
]
