"""
Beanie documents backing the MongoDB stores.

Each document mirrors one domain entity field for field; the stores convert
with ``from_entity`` / ``to_entity`` so nothing outside ``crud`` sees Beanie.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional
from uuid import UUID, uuid4

from beanie import Document, Indexed
from pydantic import Field
from pymongo import ASCENDING, IndexModel

from gtd_auth.core.enums import UserRole, UserStatus
from gtd_auth.models.entities import User, Session, PasswordResetToken


def _unique_when_present(field: str) -> IndexModel:
    """Unique index that ignores documents where ``field`` is null."""
    return IndexModel(
        [(field, ASCENDING)],
        name=f"{field}_unique",
        unique=True,
        partialFilterExpression={field: {"$type": "string"}},
    )


class UserDocument(Document):
    id: UUID = Field(default_factory=uuid4)
    username: Indexed(str, unique=True)
    email: Optional[str] = None
    phone: Optional[str] = None
    name: str = ""
    password_hash: str
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.ACTIVE
    failed_login_count: int = 0
    lockout_until: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        """Collection settings and indexes."""
        name = "users"
        indexes = [
            _unique_when_present("email"),
            _unique_when_present("phone"),
            "created_at",
        ]

    @classmethod
    def from_entity(cls, user: User) -> "UserDocument":
        return cls(**user.model_dump())

    def to_entity(self) -> User:
        return User.model_validate(self.model_dump(exclude={"revision_id"}))


class SessionDocument(Document):
    id: str
    user_id: Annotated[UUID, Indexed()]
    expires_at: Annotated[datetime, Indexed()]
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "sessions"

    @classmethod
    def from_entity(cls, session: Session) -> "SessionDocument":
        return cls(**session.model_dump())

    def to_entity(self) -> Session:
        return Session.model_validate(self.model_dump(exclude={"revision_id"}))


class PasswordResetTokenDocument(Document):
    id: UUID = Field(default_factory=uuid4)
    user_id: Annotated[UUID, Indexed()]
    created_by_user_id: UUID
    token_hash: Indexed(str, unique=True)
    expires_at: Annotated[datetime, Indexed()]
    used_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "password_reset_tokens"

    @classmethod
    def from_entity(cls, token: PasswordResetToken) -> "PasswordResetTokenDocument":
        return cls(**token.model_dump())

    def to_entity(self) -> PasswordResetToken:
        return PasswordResetToken.model_validate(self.model_dump(exclude={"revision_id"}))


DOCUMENT_MODELS = [UserDocument, SessionDocument, PasswordResetTokenDocument]
