"""
Activity log: levels, sources, events and an in-memory store.

Agent progress is reported through the standard `logging` module. Records
carry `source` and `data` extras; AgentLogHandler turns them into
AgentLogEvent payloads for whoever is listening (the bridge forwards them to
front ends, LogStore keeps them for display).
"""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterator, Optional

logger = logging.getLogger(__name__)

# Handler of the run in progress in this context
_run_handler: ContextVar[Optional["AgentLogHandler"]] = ContextVar("sqlchat_run_handler", default=None)


# Between INFO and WARNING
SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")


class LogLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    DEBUG = "debug"


class LogSource(str, Enum):
    AGENT = "agent"
    DATABASE = "database"
    API = "api"
    SYSTEM = "system"


LEVEL_NUMBERS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.SUCCESS: SUCCESS,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


def level_from_number(levelno: int) -> LogLevel:
    """Map a logging level number onto the closest activity log level."""
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARNING
    if levelno >= SUCCESS:
        return LogLevel.SUCCESS
    if levelno >= logging.INFO:
        return LogLevel.INFO
    return LogLevel.DEBUG


def log_event(
    log: logging.Logger,
    level: str,
    source: str,
    message: str,
    data: Optional[dict] = None,
) -> None:
    """
    Emit a record that AgentLogHandler can turn into an activity event.

    Records below the logger's effective level skip normal logging but still
    reach the handler of the run in progress, so subscribers see debug steps
    without changing the level of the package logger.
    """
    levelno = LEVEL_NUMBERS[LogLevel(level)]
    extra = {"source": LogSource(source).value, "data": data}

    if log.isEnabledFor(levelno):
        log.log(levelno, message, extra=extra)
        return

    handler = _run_handler.get()
    if handler is not None:
        record = log.makeRecord(log.name, levelno, "(unknown file)", 0, message, None, None, extra=extra)
        handler.handle(record)


# ============================================================================
# Events
# ============================================================================

@dataclass
class AgentLogEvent:
    """One activity log event as sent to front ends."""
    level: LogLevel
    source: LogSource
    message: str
    data: Optional[Any] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "source": self.source.value,
            "message": self.message,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


class AgentLogHandler(logging.Handler):
    """Logging handler that forwards records to a callback as event dicts."""

    def __init__(self, callback: Callable[[dict], None], level: int = logging.DEBUG) -> None:
        super().__init__(level)
        self.callback = callback

    def emit(self, record: logging.LogRecord) -> None:
        try:
            source = LogSource(getattr(record, "source", LogSource.SYSTEM.value))
        except ValueError:
            source = LogSource.SYSTEM

        event = AgentLogEvent(
            level=level_from_number(record.levelno),
            source=source,
            message=record.getMessage(),
            data=getattr(record, "data", None),
            timestamp=datetime.fromtimestamp(record.created, timezone.utc),
        )
        try:
            self.callback(event.to_dict())
        except Exception:
            self.handleError(record)


# ============================================================================
# Run Capture
# ============================================================================

class RunLogFilter(logging.Filter):
    """Pass only records emitted inside the run that owns `handler`."""

    def __init__(self, handler: AgentLogHandler) -> None:
        super().__init__()
        self.handler = handler

    def filter(self, record: logging.LogRecord) -> bool:
        return _run_handler.get() is self.handler


@contextmanager
def capture_run_logs(log: logging.Logger, callback: Callable[[dict], None]) -> Iterator[AgentLogHandler]:
    """
    Forward the records of one run to `callback`.

    The handler is bound to the current context, so overlapping runs in other
    threads or tasks never see each other's events.
    """
    handler = AgentLogHandler(callback)
    handler.addFilter(RunLogFilter(handler))
    token = _run_handler.set(handler)
    log.addHandler(handler)
    try:
        yield handler
    finally:
        log.removeHandler(handler)
        _run_handler.reset(token)


# ============================================================================
# Store
# ============================================================================

@dataclass
class LogEntry:
    id: str
    timestamp: datetime
    level: LogLevel
    source: LogSource
    message: str
    data: Optional[Any] = None


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    # JavaScript-style ISO strings end in "Z"
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class LogStore:
    """Ordered, in-memory list of activity log entries."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def __len__(self) -> int:
        return len(self.entries)

    def add_entry(
        self,
        level: str,
        source: str,
        message: str,
        data: Optional[Any] = None,
    ) -> LogEntry:
        entry = LogEntry(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            level=LogLevel(level),
            source=LogSource(source),
            message=message,
            data=data,
        )
        self.entries.append(entry)
        return entry

    def add_from_event(self, payload: dict) -> Optional[LogEntry]:
        """
        Store an event dict as sent by the bridge.

        Malformed payloads are logged and dropped.
        """
        try:
            entry = LogEntry(
                id=str(uuid.uuid4()),
                timestamp=_parse_timestamp(payload["timestamp"]),
                level=LogLevel(payload["level"]),
                source=LogSource(payload["source"]),
                message=payload["message"],
                data=payload.get("data"),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to parse log event: {e} ({payload!r})")
            return None

        self.entries.append(entry)
        return entry

    def clear(self) -> None:
        self.entries = []

    def filter(self, level: Optional[str] = None, source: Optional[str] = None) -> list[LogEntry]:
        entries = self.entries
        if level is not None:
            entries = [e for e in entries if e.level == LogLevel(level)]
        if source is not None:
            entries = [e for e in entries if e.source == LogSource(source)]
        return list(entries)
