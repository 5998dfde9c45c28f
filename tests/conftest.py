"""
Pytest configuration for querylog.

Provides fixtures for:
- Resetting cached settings and the process-wide sink between tests
- A collecting sink for asserting what the dispatcher emits
- Database connection management for integration tests
"""

from __future__ import annotations

import os
from typing import Any, Callable, Generator, List, Mapping, Tuple

import psycopg
import pytest

from querylog import dispatch
from querylog.config import Settings, get_settings


class CollectingSink:
    """Sink that records every emit and renders eagerly only when asked to."""

    def __init__(self, threshold: int = 0, render: bool = True) -> None:
        self.threshold = threshold
        self.render = render
        self.calls: List[Tuple[int, Callable[[], List[str]], Mapping[str, Any]]] = []
        self.lines: List[str] = []

    def emit(self, level: int, producer: Callable[[], List[str]], metadata: Mapping[str, Any]) -> None:
        self.calls.append((level, producer, dict(metadata)))
        if level >= self.threshold and self.render:
            self.lines.append("".join(producer()))


@pytest.fixture(autouse=True)
def _reset_process_state() -> Generator[None, None, None]:
    """Clear cached settings, purge decision and default sink around each test."""
    get_settings.cache_clear()
    dispatch.default_level_purged.cache_clear()
    dispatch.set_default_sink(None)
    yield
    get_settings.cache_clear()
    dispatch.default_level_purged.cache_clear()
    dispatch.set_default_sink(None)


@pytest.fixture
def collecting_sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "postgres"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn, autocommit=True)
    try:
        yield conn
    finally:
        conn.close()
