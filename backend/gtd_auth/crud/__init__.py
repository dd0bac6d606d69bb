"""
Persistence layer.

Store contracts live in ``base``; ``crud_*`` modules implement them on
MongoDB through Beanie and ``memory`` implements them in process.
"""

from .base import UserStore, SessionStore, PasswordResetTokenStore, UserUpdate
from .memory import InMemoryUserStore, InMemorySessionStore, InMemoryPasswordResetTokenStore

__all__ = [
    "UserStore",
    "SessionStore",
    "PasswordResetTokenStore",
    "UserUpdate",
    "InMemoryUserStore",
    "InMemorySessionStore",
    "InMemoryPasswordResetTokenStore",
]
