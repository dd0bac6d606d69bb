"""
Store contracts.

The services only ever see these abstract classes; MongoDB and in-memory
implementations live beside them.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from gtd_auth.core.enums import UserRole, UserStatus
from gtd_auth.models.entities import User, Session, PasswordResetToken


class UserUpdate(BaseModel):
    """
    Partial update for a user.

    Only fields that were explicitly set are applied, so ``lockout_until=None``
    clears the lockout while an omitted ``lockout_until`` leaves it alone.
    """
    username: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    password_hash: Optional[str] = None
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    failed_login_count: Optional[int] = None
    lockout_until: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class UserStore(ABC):

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        ...

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    async def create(self, user: User) -> User:
        """Persist a new user. Raises ConflictError on a duplicate username, email or phone."""

    @abstractmethod
    async def update(self, user_id: UUID, changes: UserUpdate) -> User:
        """Apply a partial update and return the stored user. Raises NotFoundError."""

    @abstractmethod
    async def list_all(self) -> List[User]:
        ...


class SessionStore(ABC):

    @abstractmethod
    async def create(self, session: Session) -> Session:
        ...

    @abstractmethod
    async def get_by_id(self, session_id: str) -> Optional[Session]:
        ...

    @abstractmethod
    async def delete_by_id(self, session_id: str) -> None:
        """Delete a session; unknown ids are ignored."""

    @abstractmethod
    async def delete_by_user_id(self, user_id: UUID) -> int:
        ...

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete sessions with ``expires_at < now`` and return how many went."""


class PasswordResetTokenStore(ABC):

    @abstractmethod
    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        ...

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[PasswordResetToken]:
        ...

    @abstractmethod
    async def mark_used(self, token_id: UUID, used_at: datetime) -> bool:
        """
        Set ``used_at`` only if the token is still unused.

        Returns False when the token is unknown or was already claimed, so
        exactly one of several concurrent callers gets True.
        """

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        ...
