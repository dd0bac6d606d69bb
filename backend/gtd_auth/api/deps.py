"""
Request dependencies: service access and session authentication.

Errors are raised as typed exceptions so the global handlers produce the
response body.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import Depends, Request

from gtd_auth.container import Container
from gtd_auth.core.config import settings
from gtd_auth.core.enums import UserRole
from gtd_auth.core.errors.base import AuthenticationError, AuthorizationError
from gtd_auth.core.logging.logger import get_logger
from gtd_auth.crud.base import UserStore
from gtd_auth.services.auth.password import CredentialHasher, PasswordPolicy
from gtd_auth.services.auth.reset import PasswordResetService
from gtd_auth.services.auth.service import AuthenticationService
from gtd_auth.services.auth.tokens import fingerprint

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity attached to an authenticated request."""
    id: UUID
    role: UserRole
    session_id: str = field(repr=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


# ---------------------------
# Service Dependencies
# ---------------------------
def get_container(request: Request) -> Container:
    return request.app.state.container


def get_now() -> datetime:
    """Current UTC time; overridden in tests to pin the clock."""
    return datetime.now(timezone.utc)


def get_auth_service(container: Container = Depends(get_container)) -> AuthenticationService:
    return container.auth_service


def get_reset_service(container: Container = Depends(get_container)) -> PasswordResetService:
    return container.reset_service


def get_user_store(container: Container = Depends(get_container)) -> UserStore:
    return container.users


def get_hasher(container: Container = Depends(get_container)) -> CredentialHasher:
    return container.hasher


def get_password_policy(container: Container = Depends(get_container)) -> PasswordPolicy:
    return container.password_policy


# ---------------------------
# Authentication
# ---------------------------
def get_session_id(request: Request) -> Optional[str]:
    """Session id from the session header, falling back to the session cookie."""
    header_value = request.headers.get(settings.security.SESSION_HEADER_NAME)
    if header_value and header_value.strip():
        return header_value.strip()
    return request.cookies.get(settings.security.SESSION_COOKIE_NAME) or None


async def get_current_user(
    request: Request,
    container: Container = Depends(get_container),
    now: datetime = Depends(get_now),
) -> AuthenticatedUser:
    """
    Resolve the request's session to a user.

    Raises:
        AuthenticationError: No session id, an unknown or expired session, or
            a session whose user no longer exists.
    """
    session_id = get_session_id(request)
    if not session_id:
        raise AuthenticationError("Authentication required", context={"path": request.url.path})

    session = await container.sessions.get_by_id(session_id)
    if session is None or session.is_expired(now):
        raise AuthenticationError(
            "Invalid or expired session",
            context={"path": request.url.path, "session": fingerprint(session_id)},
        )

    user = await container.users.get_by_id(session.user_id)
    if user is None:
        raise AuthenticationError(
            "Invalid or expired session",
            context={"path": request.url.path, "user_id": str(session.user_id)},
        )

    current = AuthenticatedUser(id=user.id, role=user.role, session_id=session_id)
    request.state.user = current
    logger.debug("Resolved session", user_id=str(user.id), path=request.url.path)
    return current


async def require_admin(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Ensure the current user has admin privileges."""
    if current_user.is_admin:
        return current_user
    if current_user.role == UserRole.USER:
        raise AuthorizationError("Admin privileges required", context={"user_id": str(current_user.id)})
    raise AuthorizationError("Unknown role", context={"role": str(current_user.role)})
