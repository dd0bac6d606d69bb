"""
Core logging functionality.

Loggers hand records to a shared queue-backed handler so that formatting and
file I/O happen on a worker thread instead of the event loop. Structured
fields are passed as keyword arguments and land on the record as ``extra``.
"""

import atexit
import logging
import logging.handlers
import queue
import sys
import threading
from functools import lru_cache
from typing import Any, Dict, List, Optional, Union

from gtd_auth.core.config import settings
from gtd_auth.core.errors.base import BaseError, redact_context
from .formatters import ERROR_CONTEXT_ATTR, STANDARD_LOG_ATTRS, create_formatter

QUEUE_CAPACITY = 50000


def _level_number(name: Union[str, int]) -> int:
    if isinstance(name, int):
        return name
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _configured_level() -> int:
    return _level_number(settings.logging.LOG_LEVEL.value)


def build_output_handlers() -> List[logging.Handler]:
    """Console and rotating file handlers as configured under ``LOGGING__*``."""
    config = settings.logging
    formatter = create_formatter(fmt_type=config.LOG_FORMAT, use_colors=config.USE_COLORS)
    level = _configured_level()

    outputs: List[logging.Handler] = []
    if config.FILE_LOGGING:
        config.LOG_FILE_PATH.parent.mkdir(parents=True, exist_ok=True)
        outputs.append(
            logging.handlers.RotatingFileHandler(
                config.LOG_FILE_PATH,
                maxBytes=config.MAX_LOG_SIZE,
                backupCount=config.MAX_LOG_BACKUPS,
                encoding="utf-8",
            )
        )
    if config.CONSOLE_LOGGING:
        outputs.append(logging.StreamHandler(sys.stdout))

    for output in outputs:
        output.setFormatter(formatter)
        output.setLevel(level)
    return outputs


class AsyncLogHandler(logging.Handler):
    """
    Queues records for a daemon thread that writes them to the output handlers.

    When the queue is full the record is written inline rather than dropped.
    """

    def __init__(self, outputs: Optional[List[logging.Handler]] = None, capacity: int = QUEUE_CAPACITY) -> None:
        super().__init__()
        self.queue: "queue.Queue[logging.LogRecord]" = queue.Queue(capacity)
        self.outputs: List[logging.Handler] = list(outputs or [])
        self._closing = threading.Event()
        self._worker = threading.Thread(target=self._drain, name="log-writer", daemon=True)
        self._worker.start()
        atexit.register(self.close)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            self._dispatch(record)

    def _drain(self) -> None:
        while not (self._closing.is_set() and self.queue.empty()):
            try:
                record = self.queue.get(timeout=0.2)
            except queue.Empty:
                continue
            try:
                self._dispatch(record)
            except Exception:
                # A broken output must not kill the writer thread.
                self.handleError(record)
            finally:
                self.queue.task_done()

    def _dispatch(self, record: logging.LogRecord) -> None:
        for output in self.outputs:
            if record.levelno >= output.level:
                output.handle(record)

    def flush(self) -> None:
        """Block until every queued record has been written."""
        if self._worker.is_alive():
            self.queue.join()
        for output in self.outputs:
            output.flush()

    def close(self) -> None:
        """Let the writer drain the queue, then close the outputs."""
        self._closing.set()
        if self._worker.is_alive():
            self._worker.join(timeout=5.0)
        for output in self.outputs:
            output.close()
        super().close()


class AsyncLogger:
    """
    Thin wrapper over ``logging.Logger`` taking structured fields as kwargs.

    Secret-looking fields are masked before the record is created.
    """

    _loggers: Dict[str, "AsyncLogger"] = {}
    _shared_handler: Optional[AsyncLogHandler] = None
    _setup_lock = threading.Lock()

    def __init__(self, name: str) -> None:
        self.name = name
        self.logger = logging.getLogger(name)
        handler = self.shared_handler()
        if handler not in self.logger.handlers:
            self.logger.addHandler(handler)
            self.logger.setLevel(_configured_level())
            self.logger.propagate = False

    @classmethod
    def shared_handler(cls) -> AsyncLogHandler:
        with cls._setup_lock:
            if cls._shared_handler is None:
                cls._shared_handler = AsyncLogHandler(build_output_handlers())
            return cls._shared_handler

    @staticmethod
    def _extra(fields: Dict[str, Any]) -> Dict[str, Any]:
        """Mask secrets and keep field names clear of LogRecord attributes."""
        return {
            (f"field_{key}" if key in STANDARD_LOG_ATTRS else key): value
            for key, value in redact_context(fields).items()
        }

    def log_error(self, error: Exception, message: Optional[str] = None, **fields: Any) -> None:
        """
        Log ``error`` at ERROR level with its type attached.

        For ``BaseError`` the category, level, redacted context and the
        parent's traceback are attached too.
        """
        details: Dict[str, Any] = {"error_type": type(error).__name__, "message": str(error)}
        if isinstance(error, BaseError):
            details.update(
                category=error.category.value,
                level=error.level.value,
                context=redact_context(error.context),
                traceback=error.traceback,
            )
        extra = self._extra(fields)
        extra[ERROR_CONTEXT_ATTR] = details
        self.logger.error(message or str(error), extra=extra)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, extra=self._extra(kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self.logger.info(message, extra=self._extra(kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self.logger.warning(message, extra=self._extra(kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self.logger.error(message, extra=self._extra(kwargs))

    def exception(self, message: str, **kwargs: Any) -> None:
        """ERROR level with the active exception's traceback."""
        self.logger.error(message, exc_info=True, extra=self._extra(kwargs))

    def critical(self, message: str, **kwargs: Any) -> None:
        self.logger.critical(message, extra=self._extra(kwargs))


@lru_cache(maxsize=100)
def get_logger(name: str) -> AsyncLogger:
    """Cached ``AsyncLogger`` for ``name``, usually ``__name__``."""
    if name not in AsyncLogger._loggers:
        AsyncLogger._loggers[name] = AsyncLogger(name)
    return AsyncLogger._loggers[name]


def init_logging() -> None:
    """Create the shared handler and its outputs if they do not exist yet."""
    get_logger("gtd_auth")


def cleanup_logging() -> None:
    """Detach and close the shared handler after it drains. Called on shutdown."""
    get_logger.cache_clear()
    handler = AsyncLogger._shared_handler
    if handler is not None:
        for wrapper in AsyncLogger._loggers.values():
            wrapper.logger.removeHandler(handler)
        handler.close()
    AsyncLogger._loggers.clear()
    AsyncLogger._shared_handler = None


def configure_log_levels(levels: Dict[str, Union[str, int]]) -> None:
    """
    Set levels for individual loggers, e.g. ``{"pymongo": "WARNING"}``.

    Unknown level names fall back to INFO.
    """
    for logger_name, level in levels.items():
        logging.getLogger(logger_name).setLevel(_level_number(level))
