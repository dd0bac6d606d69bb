"""
Authentication service.

Features:
- Login with a single identifier lookup path (email when it contains '@')
- Per-account lockout driven by the stored failure counter
- Opaque server-side session issuance and logout
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from gtd_auth.core.config import settings
from gtd_auth.core.enums import UserStatus
from gtd_auth.core.errors.base import AuthenticationError
from gtd_auth.core.logging.logger import get_logger
from gtd_auth.crud.base import SessionStore, UserStore
from gtd_auth.models.entities import Session, User
from gtd_auth.services.auth.password import CredentialHasher
from gtd_auth.services.auth.tokens import fingerprint, generate_session_id
from gtd_auth.services.auth.tracking import LoginTracker

INVALID_CREDENTIALS = "Invalid credentials"


@dataclass(frozen=True)
class AuthConfig:
    session_ttl: timedelta = timedelta(minutes=240)
    lockout_threshold: int = 5
    lockout_duration: timedelta = timedelta(minutes=15)

    @classmethod
    def from_settings(cls) -> "AuthConfig":
        return cls(
            session_ttl=timedelta(minutes=settings.security.SESSION_TTL_MINUTES),
            lockout_threshold=settings.security.LOCKOUT_THRESHOLD,
            lockout_duration=timedelta(minutes=settings.security.LOCKOUT_MINUTES),
        )


@dataclass(frozen=True)
class LoginResult:
    user_id: UUID
    session_id: str
    expires_at: datetime
    user: User


class AuthenticationService:
    """
    Service for handling user authentication.
    """

    def __init__(
        self,
        users: UserStore,
        sessions: SessionStore,
        hasher: CredentialHasher,
        config: Optional[AuthConfig] = None,
    ) -> None:
        """
        Args:
            users: Store holding accounts and their lockout state
            sessions: Store for issued sessions
            hasher: Verifies submitted passwords
            config: TTL and lockout settings; defaults apply when omitted
        """
        self.users = users
        self.sessions = sessions
        self.hasher = hasher
        self.config = config or AuthConfig()
        self.tracker = LoginTracker(
            threshold=self.config.lockout_threshold,
            lockout_duration=self.config.lockout_duration,
        )
        self.logger = get_logger(__name__ + ".AuthenticationService")

    async def resolve_user(self, identifier: str) -> Optional[User]:
        """Look a user up by email when the identifier contains '@', otherwise by username."""
        identifier = identifier.strip()
        if not identifier:
            return None
        if "@" in identifier:
            return await self.users.get_by_email(identifier)
        return await self.users.get_by_username(identifier)

    async def login(self, identifier: str, password: str, now: datetime) -> LoginResult:
        """
        Authenticate a user and open a session.

        Raises:
            AuthenticationError: For unknown, inactive or locked accounts and
                wrong passwords, always with the same message.
        """
        user = await self.resolve_user(identifier)
        if user is None:
            self.logger.warning("Login failed", event="auth.login.failed", reason="unknown_user")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if user.status != UserStatus.ACTIVE:
            self.logger.warning(
                "Login failed",
                event="auth.login.failed",
                reason="inactive",
                user_id=str(user.id),
                status=user.status.value,
            )
            raise AuthenticationError(INVALID_CREDENTIALS, context={"user_id": str(user.id)})

        if self.tracker.is_locked(user, now):
            self.logger.warning(
                "Login rejected for locked account",
                event="auth.login.failed",
                reason="locked",
                user_id=str(user.id),
                lockout_until=user.lockout_until.isoformat(),
            )
            raise AuthenticationError(INVALID_CREDENTIALS, context={"user_id": str(user.id)})

        if not await self.hasher.verify(password, user.password_hash):
            update = self.tracker.failure_update(user, now)
            await self.users.update(user.id, update)
            self.logger.warning(
                "Login failed",
                event="auth.login.failed",
                reason="bad_password",
                user_id=str(user.id),
                failed_login_count=update.failed_login_count,
            )
            if update.lockout_until is not None:
                self.logger.warning(
                    "Account locked after repeated failures",
                    event="auth.lockout.triggered",
                    user_id=str(user.id),
                    lockout_until=update.lockout_until.isoformat(),
                )
            raise AuthenticationError(INVALID_CREDENTIALS, context={"user_id": str(user.id)})

        user = await self.users.update(user.id, self.tracker.success_update(now))
        session = await self.sessions.create(
            Session(
                id=generate_session_id(),
                user_id=user.id,
                expires_at=now + self.config.session_ttl,
                created_at=now,
            )
        )
        self.logger.info(
            "User logged in",
            event="auth.login.succeeded",
            user_id=str(user.id),
            session=fingerprint(session.id),
            expires_at=session.expires_at.isoformat(),
        )
        return LoginResult(
            user_id=user.id,
            session_id=session.id,
            expires_at=session.expires_at,
            user=user,
        )

    async def logout(self, session_id: str) -> None:
        """Delete the session. Unknown or already deleted ids are ignored."""
        await self.sessions.delete_by_id(session_id)
        self.logger.info("User logged out", event="auth.logout", session=fingerprint(session_id))
