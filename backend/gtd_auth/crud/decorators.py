"""
Decorator wrapping asynchronous store methods with uniform error handling.

Typed errors raised on purpose (not found, conflict, ...) pass through;
anything else is re-raised as a DatabaseError carrying the given context.
"""

from functools import wraps
from typing import Any, Awaitable, Callable, Dict, TypeVar

from gtd_auth.core.errors.base import BaseError, DatabaseError

T = TypeVar("T")


def handle_db_error(error_message: str, context_getter: Callable[..., Dict[str, Any]]):
    """
    Args:
        error_message: The message to use when wrapping the error.
        context_getter: Builds a context dict from the decorated function's arguments.
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except BaseError:
                raise
            except Exception as e:
                error = DatabaseError(error_message, context=context_getter(*args, **kwargs), parent=e)
                raise error.add_context(error=str(e)) from e
        return wrapper
    return decorator
