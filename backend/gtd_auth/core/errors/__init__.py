"""
Core error handling.

Exports the typed error hierarchy and the FastAPI exception handlers that
translate it into JSON responses.
"""

from .base import (
    BaseError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ConflictError,
    DatabaseError,
    ConfigurationError,
    get_error_class,
    redact_context,
)
from ..enums import ErrorLevel, ErrorCategory

__all__ = [
    # Base Errors
    "BaseError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "DatabaseError",
    "ConfigurationError",
    "get_error_class",
    "redact_context",
    # Enums
    "ErrorLevel",
    "ErrorCategory",
]
