"""
In-process store implementations.

Used by the test suite and when ``DATABASE__USE_IN_MEMORY_STORES`` is set.
Records are copied on the way in and out so callers cannot mutate state
behind the store's back.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from gtd_auth.core.errors.base import ConflictError, NotFoundError
from gtd_auth.crud.base import (
    PasswordResetTokenStore,
    SessionStore,
    UserStore,
    UserUpdate,
)
from gtd_auth.models.entities import PasswordResetToken, Session, User

_UNIQUE_USER_FIELDS = ("username", "email", "phone")


class InMemoryUserStore(UserStore):

    def __init__(self) -> None:
        self._users: Dict[UUID, User] = {}

    def _check_unique(self, candidate: User) -> None:
        for other in self._users.values():
            if other.id == candidate.id:
                continue
            for field in _UNIQUE_USER_FIELDS:
                value = getattr(candidate, field)
                if value is not None and value == getattr(other, field):
                    raise ConflictError(
                        f"A user with this {field} already exists",
                        context={"field": field},
                    )

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def get_by_username(self, username: str) -> Optional[User]:
        for user in self._users.values():
            if user.username == username:
                return user.model_copy()
        return None

    async def get_by_email(self, email: str) -> Optional[User]:
        for user in self._users.values():
            if user.email is not None and user.email == email:
                return user.model_copy()
        return None

    async def create(self, user: User) -> User:
        if user.id in self._users:
            raise ConflictError("User already exists", context={"user_id": str(user.id)})
        self._check_unique(user)
        self._users[user.id] = user.model_copy()
        return user.model_copy()

    async def update(self, user_id: UUID, changes: UserUpdate) -> User:
        current = self._users.get(user_id)
        if current is None:
            raise NotFoundError("User not found", context={"user_id": str(user_id)})
        values = changes.changes()
        values["updated_at"] = datetime.now(timezone.utc)
        updated = current.model_copy(update=values)
        self._check_unique(updated)
        self._users[user_id] = updated
        return updated.model_copy()

    async def list_all(self) -> List[User]:
        return sorted(
            (user.model_copy() for user in self._users.values()),
            key=lambda user: user.created_at,
        )


class InMemorySessionStore(SessionStore):

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}

    async def create(self, session: Session) -> Session:
        self._sessions[session.id] = session
        return session

    async def get_by_id(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    async def delete_by_id(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    async def delete_by_user_id(self, user_id: UUID) -> int:
        doomed = [sid for sid, session in self._sessions.items() if session.user_id == user_id]
        for sid in doomed:
            del self._sessions[sid]
        return len(doomed)

    async def delete_expired(self, now: datetime) -> int:
        doomed = [sid for sid, session in self._sessions.items() if session.expires_at < now]
        for sid in doomed:
            del self._sessions[sid]
        return len(doomed)


class InMemoryPasswordResetTokenStore(PasswordResetTokenStore):

    def __init__(self) -> None:
        self._tokens: Dict[UUID, PasswordResetToken] = {}

    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        for existing in self._tokens.values():
            if existing.token_hash == token.token_hash:
                raise ConflictError("Reset token already exists")
        self._tokens[token.id] = token.model_copy()
        return token.model_copy()

    async def get_by_token_hash(self, token_hash: str) -> Optional[PasswordResetToken]:
        for token in self._tokens.values():
            if token.token_hash == token_hash:
                return token.model_copy()
        return None

    async def mark_used(self, token_id: UUID, used_at: datetime) -> bool:
        token = self._tokens.get(token_id)
        if token is None or token.used_at is not None:
            return False
        self._tokens[token_id] = token.model_copy(update={"used_at": used_at})
        return True

    async def delete_expired(self, now: datetime) -> int:
        doomed = [tid for tid, token in self._tokens.items() if token.expires_at < now]
        for tid in doomed:
            del self._tokens[tid]
        return len(doomed)
