"""
Tests for activity log levels, the forwarding handler and the log store.
"""

import logging

import pytest

from sqlchat.logs import (
    SUCCESS,
    AgentLogHandler,
    LogLevel,
    LogSource,
    LogStore,
    capture_run_logs,
    level_from_number,
    log_event,
)


@pytest.fixture
def captured():
    """A logger wired to an AgentLogHandler that collects event dicts."""
    events = []
    test_logger = logging.getLogger("sqlchat.tests.logs")
    handler = AgentLogHandler(events.append)
    test_logger.addHandler(handler)
    test_logger.setLevel(logging.DEBUG)
    yield test_logger, events
    test_logger.removeHandler(handler)


@pytest.mark.parametrize("levelno, expected", [
    (logging.DEBUG, LogLevel.DEBUG),
    (logging.INFO, LogLevel.INFO),
    (SUCCESS, LogLevel.SUCCESS),
    (logging.WARNING, LogLevel.WARNING),
    (logging.ERROR, LogLevel.ERROR),
    (logging.CRITICAL, LogLevel.ERROR),
])
def test_level_from_number(levelno, expected):
    assert level_from_number(levelno) == expected


def test_success_level_name():
    assert logging.getLevelName(SUCCESS) == "SUCCESS"


def test_log_event_reaches_handler(captured):
    test_logger, events = captured
    log_event(test_logger, "success", "database", "Query executed successfully", {"rowCount": 3})

    assert len(events) == 1
    event = events[0]
    assert event["level"] == "success"
    assert event["source"] == "database"
    assert event["message"] == "Query executed successfully"
    assert event["data"] == {"rowCount": 3}
    assert "T" in event["timestamp"]


def test_plain_records_default_to_system_source(captured):
    test_logger, events = captured
    test_logger.warning("careful")
    assert events[0]["source"] == "system"
    assert events[0]["level"] == "warning"
    assert events[0]["data"] is None


def test_log_event_rejects_unknown_level(captured):
    test_logger, _ = captured
    with pytest.raises(ValueError):
        log_event(test_logger, "verbose", "agent", "nope")


def test_capture_run_logs_delivers_below_logger_level():
    run_logger = logging.getLogger("sqlchat.tests.capture")
    run_logger.setLevel(logging.WARNING)
    events = []

    with capture_run_logs(run_logger, events.append) as handler:
        log_event(run_logger, "debug", "agent", "Processing step 1...")
        log_event(run_logger, "error", "system", "boom")

    log_event(run_logger, "debug", "agent", "after the run")

    assert [(e["level"], e["message"]) for e in events] == [
        ("debug", "Processing step 1..."),
        ("error", "boom"),
    ]
    assert handler not in run_logger.handlers
    assert run_logger.level == logging.WARNING
    run_logger.setLevel(logging.NOTSET)


class TestLogStore:

    def test_add_entry(self):
        store = LogStore()
        entry = store.add_entry("info", "agent", "Starting")
        assert len(store) == 1
        assert entry.level == LogLevel.INFO
        assert entry.source == LogSource.AGENT
        assert entry.id

    def test_add_from_event(self):
        store = LogStore()
        entry = store.add_from_event({
            "level": "debug",
            "source": "agent",
            "message": "Processing step 1...",
            "timestamp": "2024-06-01T12:00:00.000Z",
        })
        assert entry is not None
        assert entry.timestamp.year == 2024
        assert entry.timestamp.utcoffset().total_seconds() == 0
        assert entry.data is None

    def test_add_from_event_accepts_handler_payloads(self, captured):
        test_logger, events = captured
        log_event(test_logger, "info", "api", "LLM ready")

        store = LogStore()
        assert store.add_from_event(events[0]) is not None
        assert store.entries[0].message == "LLM ready"

    def test_malformed_event_is_skipped(self):
        store = LogStore()
        assert store.add_from_event({"level": "loud", "source": "agent", "message": "x",
                                     "timestamp": "2024-06-01T12:00:00Z"}) is None
        assert store.add_from_event({"message": "no level"}) is None
        assert len(store) == 0

    def test_ids_are_unique(self):
        store = LogStore()
        first = store.add_entry("info", "agent", "a")
        second = store.add_entry("info", "agent", "a")
        assert first.id != second.id

    def test_filter_and_clear(self):
        store = LogStore()
        store.add_entry("info", "agent", "a")
        store.add_entry("error", "database", "b")
        store.add_entry("info", "database", "c")

        assert [e.message for e in store.filter(level="info")] == ["a", "c"]
        assert [e.message for e in store.filter(source="database")] == ["b", "c"]
        assert [e.message for e in store.filter(level="info", source="database")] == ["c"]

        store.clear()
        assert len(store) == 0
