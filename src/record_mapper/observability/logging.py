"""Structured logging setup with JSON-lines output and correlation fields.

Nothing here runs on import. ``setup_structured_logging`` routes the
``record_mapper`` logger tree through a bounded queue drained by a listener
thread; ``correlation_scope`` binds fields such as ``record_type`` that are
copied onto every record emitted inside the scope.
"""

from __future__ import annotations

import atexit
import contextvars
import copy
import json
import logging
import logging.handlers
import math
import queue
import sys
import threading
import time
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import IO, Final

from record_mapper.values import JSONValue

LogRedactor = Callable[[JSONValue], JSONValue]

_TRACEBACK_FORMATTER: Final[logging.Formatter] = logging.Formatter()

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRIBUTES: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "correlation"}

_CORRELATION: contextvars.ContextVar[tuple[tuple[str, str], ...]] = contextvars.ContextVar(
    "record_mapper_correlation", default=()
)

_ACTIVE_LOCK = threading.Lock()
_ACTIVE: StructuredLoggingHandle | None = None
_ATEXIT_REGISTERED = False


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Where mapper diagnostics go and how verbose they are.

    ``level`` accepts a level name or number. ``log_path`` adds a JSON-lines
    file; ``stream`` (stderr when unset) is written when ``log_to_stream``.
    """

    logger_name: str = "record_mapper"
    level: int | str = "WARNING"
    queue_size: int = 4096
    log_path: Path | str | None = None
    log_to_stream: bool = True
    stream: IO[str] | None = None
    redactor: LogRedactor | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.logger_name, str) or not self.logger_name.strip():
            raise ValueError("logger_name must be a non-empty string")
        if isinstance(self.queue_size, bool) or not isinstance(self.queue_size, int):
            raise ValueError(f"queue_size must be an integer, got {type(self.queue_size).__name__}")
        if self.queue_size <= 0:
            raise ValueError("queue_size must be > 0")
        object.__setattr__(self, "logger_name", self.logger_name.strip())
        object.__setattr__(self, "level", parse_log_level(self.level))


class _NonBlockingQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that counts and drops records once the queue is full.

    Correlation fields are read here, on the emitting thread; the listener
    thread does not see the caller's context.
    """

    def __init__(self, log_queue: queue.Queue[object]) -> None:
        super().__init__(log_queue)
        self.log_queue = log_queue
        self._dropped = 0
        self._dropped_lock = threading.Lock()

    @property
    def dropped(self) -> int:
        with self._dropped_lock:
            return self._dropped

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        # The base implementation folds the traceback into ``msg``.
        prepared = copy.copy(record)
        prepared.msg = record.getMessage()
        prepared.args = None
        if record.exc_info:
            prepared.exc_text = _TRACEBACK_FORMATTER.formatException(record.exc_info)
        prepared.exc_info = None
        correlation = _CORRELATION.get()
        if correlation:
            prepared.correlation = dict(correlation)
        return prepared

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.log_queue.put_nowait(record)
        except queue.Full:
            with self._dropped_lock:
                self._dropped += 1


class _JsonLineFormatter(logging.Formatter):
    def __init__(self, redactor: LogRedactor | None) -> None:
        super().__init__()
        self._redactor = redactor

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        event: dict[str, JSONValue] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        event.update(getattr(record, "correlation", {}))

        fields: dict[str, JSONValue] = {
            key: _to_json(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
        }
        if fields:
            event["fields"] = self._redactor(fields) if self._redactor else fields

        if record.exc_info is not None:
            event["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            event["exception"] = record.exc_text
        if record.stack_info:
            event["stack"] = record.stack_info
        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class StructuredLoggingHandle:
    """An installed logging setup; ``shutdown`` drains it and restores the logger."""

    def __init__(
        self,
        logger: logging.Logger,
        log_path: Path | None,
        queue_handler: _NonBlockingQueueHandler,
        listener: logging.handlers.QueueListener,
        sinks: tuple[logging.Handler, ...],
    ) -> None:
        self.logger = logger
        self.log_path = log_path
        self._queue_handler = queue_handler
        self._listener = listener
        self._sinks = sinks
        self._restore = (logger.level, logger.propagate)
        self._lock = threading.Lock()
        self._is_shutdown = False

    @property
    def dropped_records(self) -> int:
        return self._queue_handler.dropped

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    def flush(self, *, timeout_seconds: float = 2.0) -> None:
        """Wait for the listener to drain queued records, then flush the sinks."""
        pending = self._queue_handler.log_queue
        deadline = time.monotonic() + max(timeout_seconds, 0.0)
        while pending.unfinished_tasks > 0 and time.monotonic() < deadline:
            time.sleep(0.01)
        for sink in self._sinks:
            sink.flush()

    def shutdown(self, *, timeout_seconds: float = 2.0) -> None:
        with self._lock:
            if self._is_shutdown:
                return
            self.flush(timeout_seconds=timeout_seconds)
            self._listener.stop()
            self.logger.removeHandler(self._queue_handler)
            self._queue_handler.close()
            self.logger.setLevel(self._restore[0])
            self.logger.propagate = self._restore[1]
            for sink in self._sinks:
                sink.flush()
                # caller-provided streams stay open
                if isinstance(sink, logging.FileHandler):
                    sink.close()
            self._is_shutdown = True


def setup_structured_logging(config: LoggingConfig | None = None) -> StructuredLoggingHandle:
    """Install JSON-lines logging, replacing any setup installed earlier."""
    global _ACTIVE, _ATEXIT_REGISTERED
    config = config or LoggingConfig()
    shutdown_logging()

    formatter = _JsonLineFormatter(config.redactor)
    sinks: list[logging.Handler] = []
    log_path = Path(config.log_path) if config.log_path is not None else None
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        sinks.append(logging.FileHandler(log_path, encoding="utf-8"))
    if config.log_to_stream:
        sinks.append(logging.StreamHandler(config.stream or sys.stderr))
    for sink in sinks:
        sink.setLevel(config.level)
        sink.setFormatter(formatter)

    logger = logging.getLogger(config.logger_name)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    queue_handler = _NonBlockingQueueHandler(queue.Queue(maxsize=config.queue_size))
    listener = logging.handlers.QueueListener(
        queue_handler.log_queue, *sinks, respect_handler_level=True
    )
    handle = StructuredLoggingHandle(logger, log_path, queue_handler, listener, tuple(sinks))

    logger.setLevel(config.level)
    logger.propagate = False
    listener.start()
    logger.addHandler(queue_handler)

    with _ACTIVE_LOCK:
        _ACTIVE = handle
        if not _ATEXIT_REGISTERED:
            atexit.register(shutdown_logging)
            _ATEXIT_REGISTERED = True
    return handle


def shutdown_logging(
    handle: StructuredLoggingHandle | None = None,
    *,
    timeout_seconds: float = 2.0,
) -> None:
    """Shut down ``handle``, or the most recently installed setup."""
    global _ACTIVE
    with _ACTIVE_LOCK:
        target = handle or _ACTIVE
        if target is _ACTIVE:
            _ACTIVE = None
    if target is not None:
        target.shutdown(timeout_seconds=timeout_seconds)


def get_correlation_context() -> dict[str, str]:
    return dict(_CORRELATION.get())


@contextmanager
def correlation_scope(**fields: str | None) -> Iterator[None]:
    """Bind correlation fields for records logged in scope; ``None`` unbinds one."""
    state = get_correlation_context()
    for key, value in fields.items():
        if value is None:
            state.pop(key, None)
        elif not isinstance(value, str) or not value.strip():
            raise ValueError(f"correlation field {key!r} must be a non-empty string")
        else:
            state[key] = value.strip()
    token = _CORRELATION.set(tuple(state.items()))
    try:
        yield
    finally:
        _CORRELATION.reset(token)


def parse_log_level(value: int | str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"level must be int or str, got {type(value).__name__}")
    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"unsupported logging level {value!r}")
    return level


def _to_json(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else repr(value)
    if isinstance(value, Enum):
        return _to_json(value.value)
    if isinstance(value, datetime):
        aware = value if value.utcoffset() is not None else value.replace(tzinfo=UTC)
        return aware.astimezone(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")
    if isinstance(value, Mapping):
        return {str(key): _to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json(item) for item in value]
    return str(value)


__all__ = [
    "LogRedactor",
    "LoggingConfig",
    "StructuredLoggingHandle",
    "correlation_scope",
    "get_correlation_context",
    "parse_log_level",
    "setup_structured_logging",
    "shutdown_logging",
]
