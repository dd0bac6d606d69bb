"""
Core package: configuration, enums, errors and logging shared by every layer.
"""

from .enums import Environment, UserRole, UserStatus, ErrorLevel, ErrorCategory, LogLevel
from .errors.base import (
    BaseError, ValidationError, AuthenticationError, AuthorizationError,
    NotFoundError, ConflictError, DatabaseError, ConfigurationError,
)

__all__ = [
    # Enums
    "Environment", "UserRole", "UserStatus", "ErrorLevel", "ErrorCategory", "LogLevel",
    # Base Errors
    "BaseError", "ValidationError", "AuthenticationError", "AuthorizationError",
    "NotFoundError", "ConflictError", "DatabaseError", "ConfigurationError",
]
