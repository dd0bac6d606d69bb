"""
Typed error hierarchy.

Every error carries a context dict for logs, a severity, a category and the
HTTP status the exception handlers answer with. Context never reaches a
response body.
"""

import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type

from gtd_auth.core.enums import ErrorLevel, ErrorCategory

# Context keys whose values must never reach a log line or a response body.
SENSITIVE_KEYS = ("password", "token", "secret", "hash")


def redact_context(context: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``context`` with secret-looking values masked."""
    redacted: Dict[str, Any] = {}
    for key, value in context.items():
        if any(marker in key.lower() for marker in SENSITIVE_KEYS):
            redacted[key] = "***"
        elif isinstance(value, dict):
            redacted[key] = redact_context(value)
        else:
            redacted[key] = value
    return redacted


class BaseError(Exception):
    """
    Root of the service's errors.

    Subclasses only override the class attributes; ``status_code`` is what the
    HTTP layer returns for an uncaught instance.
    """
    default_level: ErrorLevel = ErrorLevel.MEDIUM
    default_category: ErrorCategory = ErrorCategory.SYSTEM
    status_code: int = 500

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        parent: Optional[Exception] = None,
        level: Optional[ErrorLevel] = None,
        category: Optional[ErrorCategory] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context) if context else {}
        self.parent = parent
        self.level = level or self.default_level
        self.category = category or self.default_category
        self.timestamp = datetime.now(timezone.utc)
        self.traceback: Optional[str] = None
        if parent is not None:
            self.traceback = "".join(
                traceback.format_exception(type(parent), parent, parent.__traceback__)
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view for logs. Context is redacted."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "status_code": self.status_code,
            "level": self.level.value,
            "category": self.category.value,
            "context": redact_context(self.context),
            "timestamp": self.timestamp.isoformat(),
            "parent_error": str(self.parent) if self.parent else None,
            "traceback": self.traceback,
        }

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        context: Optional[Dict[str, Any]] = None,
        level: Optional[ErrorLevel] = None,
        category: Optional[ErrorCategory] = None,
    ) -> "BaseError":
        """Wrap a foreign exception, keeping it as ``parent``."""
        return cls(str(exc), context=context, parent=exc, level=level, category=category)

    def add_context(self, **kwargs: Any) -> "BaseError":
        self.context.update(kwargs)
        return self


class ValidationError(BaseError):
    """Bad input: request bodies, weak passwords, unusable reset tokens."""
    default_category = ErrorCategory.VALIDATION
    status_code = 400


class AuthenticationError(BaseError):
    """Failed login or a missing, unknown or expired session."""
    default_level = ErrorLevel.HIGH
    default_category = ErrorCategory.AUTHENTICATION
    status_code = 401


class AuthorizationError(BaseError):
    """Authenticated, but the role does not allow the route."""
    default_level = ErrorLevel.HIGH
    default_category = ErrorCategory.AUTHORIZATION
    status_code = 403


class NotFoundError(BaseError):
    default_category = ErrorCategory.NOT_FOUND
    status_code = 404


class ConflictError(BaseError):
    """Unique username, email or phone already taken."""
    default_category = ErrorCategory.CONFLICT
    status_code = 409


class DatabaseError(BaseError):
    default_level = ErrorLevel.HIGH
    default_category = ErrorCategory.DATABASE


class ConfigurationError(BaseError):
    default_level = ErrorLevel.CRITICAL


_ERRORS_BY_CATEGORY: Dict[ErrorCategory, Type[BaseError]] = {
    error_class.default_category: error_class
    for error_class in (
        ValidationError,
        AuthenticationError,
        AuthorizationError,
        NotFoundError,
        ConflictError,
        DatabaseError,
    )
}


def get_error_class(category: ErrorCategory) -> Type[BaseError]:
    """Error class for ``category``; ``BaseError`` when none is specific to it."""
    return _ERRORS_BY_CATEGORY.get(category, BaseError)
