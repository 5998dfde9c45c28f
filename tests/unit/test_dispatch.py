from __future__ import annotations

import logging

import pytest

from querylog import dispatch
from querylog.dispatch import CONN_PID_KEY, get_default_sink, log, resolve_level, set_default_sink
from querylog.domain.models import Error, LogEntry, Ok
from querylog.sinks import LoggingSink

CONN_PID = 4242


def _entry(**overrides) -> LogEntry:
    fields = {
        "query": "SELECT 1",
        "query_time": 1500,
        "connection_pid": CONN_PID,
        "result": Ok(1),
    }
    fields.update(overrides)
    return LogEntry(**fields)


class _ThresholdSink:
    """Sink that only calls the producer at or above its threshold."""

    def __init__(self, threshold: int) -> None:
        self.threshold = threshold
        self.lines: list[str] = []
        self.emitted: list[tuple[int, dict]] = []

    def emit(self, level, producer, metadata) -> None:
        self.emitted.append((level, dict(metadata)))
        if level >= self.threshold:
            self.lines.append("".join(producer()))


def test_log_defaults_to_debug_and_returns_entry(collecting_sink) -> None:
    entry = _entry()

    returned = log(entry, sink=collecting_sink)

    assert returned is entry
    level, _, metadata = collecting_sink.calls[0]
    assert level == logging.DEBUG
    assert metadata == {CONN_PID_KEY: CONN_PID}
    assert collecting_sink.lines == ["SELECT 1 [] OK query=1.5ms"]


@pytest.mark.parametrize(("level", "expected"), [("warning", logging.WARNING), (logging.ERROR, logging.ERROR)])
def test_log_with_explicit_level(collecting_sink, level, expected: int) -> None:
    entry = _entry(result=Error(RuntimeError("boom")))

    assert log(entry, level, sink=collecting_sink) is entry
    assert collecting_sink.calls[0][0] == expected
    assert collecting_sink.lines == ["SELECT 1 [] ERROR query=1.5ms"]


def test_producer_is_not_called_when_sink_skips_level() -> None:
    calls = []

    def build(entry: LogEntry) -> str:
        calls.append(entry)
        return "SELECT 1"

    sink = _ThresholdSink(threshold=logging.INFO)

    log(_entry(query=build), sink=sink)

    assert calls == []
    assert sink.lines == []
    assert sink.emitted == [(logging.DEBUG, {CONN_PID_KEY: CONN_PID})]


def test_sink_receives_a_producer_not_text(collecting_sink) -> None:
    collecting_sink.render = False

    log(_entry(), sink=collecting_sink)

    _, producer, _ = collecting_sink.calls[0]
    assert callable(producer)
    assert "".join(producer()) == "SELECT 1 [] OK query=1.5ms"


def test_purged_default_level_skips_the_sink(monkeypatch, collecting_sink) -> None:
    monkeypatch.setenv("QUERYLOG_PURGE_LEVEL", "INFO")

    entry = _entry()

    assert log(entry, sink=collecting_sink) is entry
    assert collecting_sink.calls == []


def test_explicit_level_ignores_purge(monkeypatch, collecting_sink) -> None:
    monkeypatch.setenv("QUERYLOG_PURGE_LEVEL", "INFO")

    log(_entry(), "debug", sink=collecting_sink)

    assert len(collecting_sink.calls) == 1


def test_purge_decision_is_cached(monkeypatch) -> None:
    assert dispatch.default_level_purged() is False

    monkeypatch.setenv("QUERYLOG_PURGE_LEVEL", "ERROR")

    assert dispatch.default_level_purged() is False
    dispatch.default_level_purged.cache_clear()
    dispatch.get_settings.cache_clear()
    assert dispatch.default_level_purged() is True


def test_default_sink_is_a_logging_sink_and_can_be_replaced(collecting_sink) -> None:
    assert isinstance(get_default_sink(), LoggingSink)

    set_default_sink(collecting_sink)
    log(_entry())

    assert get_default_sink() is collecting_sink
    assert collecting_sink.lines == ["SELECT 1 [] OK query=1.5ms"]


@pytest.mark.parametrize(
    ("level", "expected"),
    [("debug", logging.DEBUG), (" Info ", logging.INFO), ("WARN", logging.WARNING), (5, 5)],
)
def test_resolve_level(level, expected: int) -> None:
    assert resolve_level(level) == expected


@pytest.mark.parametrize("level", ["verbose", True])
def test_resolve_level_rejects_unknown_levels(level) -> None:
    with pytest.raises(ValueError):
        resolve_level(level)


def test_unknown_level_raises_before_reaching_the_sink(collecting_sink) -> None:
    with pytest.raises(ValueError, match="verbose"):
        log(_entry(), "verbose", sink=collecting_sink)

    assert collecting_sink.calls == []
