"""
Models package.

``entities`` holds the storage-independent domain models. The Beanie
documents in ``documents`` are imported only by the MongoDB stores and the
database bootstrap.
"""

from gtd_auth.models.entities import User, Session, PasswordResetToken

__all__ = [
    "User",
    "Session",
    "PasswordResetToken",
]
