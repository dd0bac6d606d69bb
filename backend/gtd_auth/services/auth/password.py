"""
Password hashing and policy.

Features:
- bcrypt hashing with a configurable work factor
- Verification that never raises on a malformed stored hash
- Password strength checks shared by the request validation layer
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Union

from passlib.context import CryptContext

from gtd_auth.core.config import settings


class CredentialHasher(ABC):
    """One-way, salted password hashing."""

    @abstractmethod
    async def hash(self, plaintext: str) -> str:
        ...

    @abstractmethod
    async def verify(self, plaintext: str, password_hash: str) -> bool:
        """Return True on a match; malformed hashes yield False instead of raising."""


class PasswordManager(CredentialHasher):
    """
    bcrypt-backed hasher.

    Hashing is CPU bound, so both operations run in a worker thread to keep
    the event loop responsive.
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    @classmethod
    def from_settings(cls) -> "PasswordManager":
        return cls(rounds=settings.security.BCRYPT_ROUNDS)

    async def hash(self, plaintext: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            plaintext: Plain text password

        Returns:
            str: Salted hash in modular crypt format
        """
        return await asyncio.to_thread(self._context.hash, plaintext)

    async def verify(self, plaintext: str, password_hash: str) -> bool:
        try:
            return await asyncio.to_thread(self._context.verify, plaintext, password_hash)
        except (ValueError, TypeError):
            return False


@dataclass(frozen=True)
class PasswordPolicy:
    """Rules a new password must satisfy."""

    min_length: int = 12
    max_length: int = 128
    min_classes: int = 3
    denylist: FrozenSet[str] = field(
        default_factory=lambda: frozenset({"password", "123456", "qwerty"})
    )

    @classmethod
    def from_settings(cls) -> "PasswordPolicy":
        security = settings.security
        return cls(
            min_length=security.MIN_PASSWORD_LENGTH,
            max_length=security.MAX_PASSWORD_LENGTH,
            min_classes=security.MIN_PASSWORD_CLASSES,
            denylist=frozenset(word.lower() for word in security.PASSWORD_DENYLIST),
        )

    def check_password_strength(self, password: str) -> Dict[str, Union[bool, int]]:
        """
        Score a password against the four character classes.

        Returns:
            The result of each metric, the class count as ``score`` and
            whether the password meets the policy.
        """
        metrics = {
            "lowercase": any(c.islower() for c in password),
            "uppercase": any(c.isupper() for c in password),
            "digits": any(c.isdigit() for c in password),
            "special": any(not c.isalnum() for c in password),
        }
        score = sum(metrics.values())
        return {
            **metrics,
            "length": self.min_length <= len(password) <= self.max_length,
            "score": score,
            "meets_requirements": not self.violations(password),
        }

    def violations(self, password: str) -> List[str]:
        """Human readable reasons the password is rejected; empty when it is acceptable."""
        problems = []
        if len(password) < self.min_length:
            problems.append(f"Password must be at least {self.min_length} characters")
        if len(password) > self.max_length:
            problems.append(f"Password must be at most {self.max_length} characters")
        classes = sum((
            any(c.islower() for c in password),
            any(c.isupper() for c in password),
            any(c.isdigit() for c in password),
            any(not c.isalnum() for c in password),
        ))
        if classes < self.min_classes:
            problems.append(f"Password must include {self.min_classes} of 4 character classes")
        if password.lower() in self.denylist:
            problems.append("Password is too common")
        return problems
