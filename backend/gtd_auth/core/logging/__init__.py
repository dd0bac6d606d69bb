"""
Structured logging.

``get_logger(__name__)`` returns a cached wrapper whose methods take
structured fields as keyword arguments; records are written by a worker
thread through the formatter chosen in settings.
"""

from .logger import (
    AsyncLogger,
    AsyncLogHandler,
    get_logger,
    init_logging,
    cleanup_logging,
    configure_log_levels,
)
from .formatters import (
    BaseLogFormatter,
    JSONFormatter,
    TextFormatter,
    CompactFormatter,
    create_formatter,
)

__all__ = [
    # Main logging functions
    "get_logger",
    "init_logging",
    "cleanup_logging",
    "configure_log_levels",
    "create_formatter",
    # Classes
    "AsyncLogger",
    "AsyncLogHandler",
    "BaseLogFormatter",
    "JSONFormatter",
    "TextFormatter",
    "CompactFormatter",
]
