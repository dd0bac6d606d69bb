"""
Log formatters.

Three renderings of the same record:
- ``json``: one object per line, structured fields at the top level
- ``text``: a readable line plus an indented block of fields
- ``compact``: a single short line keyed on the ``event`` field
"""

import json
import logging
import os
import socket
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set
from uuid import UUID

# Attributes every LogRecord carries; anything else on the record came from ``extra``.
STANDARD_LOG_ATTRS: Set[str] = {
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName", "processName",
    "process", "message", "taskName",
}

# Set by ``AsyncLogger.log_error``; rendered separately from the other fields.
ERROR_CONTEXT_ATTR = "error_context"

MAX_TRACEBACK_LINES = 20


def shorten_traceback(text: str, limit: int = MAX_TRACEBACK_LINES) -> str:
    """Keep the head and tail of a long traceback, where the useful frames are."""
    lines = text.splitlines()
    if len(lines) <= limit:
        return text
    head = (limit - 1) // 2
    tail = limit - 1 - head
    dropped = len(lines) - head - tail
    return "\n".join(lines[:head] + [f"... {dropped} lines omitted ..."] + lines[-tail:])


class BaseLogFormatter(logging.Formatter):
    """Shared helpers for pulling error data and structured fields off a record."""

    def error_block(self, record: logging.LogRecord) -> Optional[Dict[str, Any]]:
        details = getattr(record, ERROR_CONTEXT_ATTR, None)
        if not details:
            return None
        return {
            "type": details.get("error_type"),
            "message": details.get("message"),
            "category": details.get("category"),
            "level": details.get("level"),
            "context": details.get("context"),
            "traceback": shorten_traceback(details.get("traceback") or ""),
        }

    def exception_block(self, record: logging.LogRecord) -> Optional[Dict[str, Any]]:
        if not record.exc_info or record.exc_info[0] is None:
            return None
        exc_type, exc_value, exc_tb = record.exc_info
        rendered = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
        return {
            "type": exc_type.__name__,
            "message": str(exc_value),
            "traceback": shorten_traceback(rendered),
        }

    def fields(self, record: logging.LogRecord, skip: Optional[Set[str]] = None) -> Dict[str, Any]:
        """
        Structured fields passed through ``extra``.

        Args:
            record: The log record
            skip: Keys the caller has already rendered
        """
        skip = skip or set()
        return {
            key: value
            for key, value in record.__dict__.items()
            if key not in STANDARD_LOG_ATTRS and key not in skip and key != ERROR_CONTEXT_ATTR
        }


def _to_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, Exception)):
        return str(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return repr(value)


class JSONFormatter(BaseLogFormatter):
    """
    One JSON object per line for log shippers.

    Hostname and pid are resolved once per formatter.
    """

    def __init__(self, fmt: Optional[str] = None, *args: Any, **kwargs: Any) -> None:
        super().__init__(fmt, *args, **kwargs)
        try:
            self.hostname = socket.gethostname()
        except OSError:
            self.hostname = "unknown"
        self.pid = os.getpid()

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
            "host": self.hostname,
            "pid": self.pid,
        }
        error = self.error_block(record)
        if error:
            payload["error"] = error
        exception = self.exception_block(record)
        if exception:
            payload["exception"] = exception
        payload.update(self.fields(record, skip=set(payload)))

        try:
            return json.dumps(payload, default=_to_json)
        except (TypeError, ValueError) as e:
            return json.dumps({
                "timestamp": payload["timestamp"],
                "level": "ERROR",
                "logger": record.name,
                "message": f"Unserializable log record: {e}",
                "original_message": record.getMessage(),
            })


class TextFormatter(BaseLogFormatter):
    """Readable output for terminals, colored by level unless disabled."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True, *args: Any, **kwargs: Any) -> None:
        super().__init__(fmt, *args, **kwargs)
        self.use_colors = use_colors and os.name != "nt"

    def _level(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return record.levelname
        return f"{self.COLORS.get(record.levelname, '')}{record.levelname}{self.RESET}"

    def _detail_lines(self, record: logging.LogRecord) -> List[str]:
        lines: List[str] = []
        error = self.error_block(record)
        if error:
            lines.append(f"  error: {error['type']} [{error.get('level') or '-'}] {error['message']}")
            if error.get("context"):
                lines.append("  context: " + ", ".join(f"{k}={v}" for k, v in error["context"].items()))
            if error.get("traceback"):
                lines.append(error["traceback"])
        exception = self.exception_block(record)
        if exception:
            lines.append(f"  exception: {exception['type']}: {exception['message']}")
            lines.append(exception["traceback"])
        return lines

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, datefmt="%Y-%m-%d %H:%M:%S")
        lines = [f"{timestamp} {self._level(record)} [{record.name}] {record.getMessage()}"]
        lines.extend(self._detail_lines(record))
        extras = self.fields(record)
        if extras:
            lines.append("  " + " ".join(f"{key}={value}" for key, value in extras.items()))
        return "\n".join(lines)


class CompactFormatter(BaseLogFormatter):
    """
    Single-line output for local development.
    Only the ``event`` field survives from the structured extras.
    """

    LEVEL_CHARS = {"DEBUG": "D", "INFO": "I", "WARNING": "W", "ERROR": "E", "CRITICAL": "C"}

    def format(self, record: logging.LogRecord) -> str:
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        level = self.LEVEL_CHARS.get(record.levelname, "?")
        module = record.module if len(record.module) <= 12 else record.module[:10] + ".."

        error_tag = ""
        if record.levelno >= logging.ERROR:
            details = getattr(record, ERROR_CONTEXT_ATTR, None) or {}
            if details.get("error_type"):
                error_tag = f"[{details['error_type']}] "
            elif record.exc_info and record.exc_info[0] is not None:
                error_tag = f"[{record.exc_info[0].__name__}] "

        event = getattr(record, "event", None)
        suffix = f" ({event})" if event else ""
        return f"{clock} {level} {module:12s} {error_tag}{record.getMessage()}{suffix}"


FORMATTERS = {
    "json": JSONFormatter,
    "text": TextFormatter,
    "compact": CompactFormatter,
}


def create_formatter(
    fmt_type: str = "json", use_colors: bool = True, fmt_string: Optional[str] = None
) -> logging.Formatter:
    """
    Build the formatter named by ``LOG_FORMAT``.

    Raises:
        ValueError: For an unknown formatter name.
    """
    formatter_class = FORMATTERS.get(fmt_type.lower())
    if formatter_class is None:
        raise ValueError(f"Invalid formatter type: {fmt_type}. Must be one of: {', '.join(FORMATTERS)}")
    if formatter_class is TextFormatter:
        return TextFormatter(fmt=fmt_string, use_colors=use_colors)
    return formatter_class(fmt=fmt_string)
