"""
Authentication endpoints.

- Login issues a server-side session and sets it as an HttpOnly cookie
- Logout deletes the session and clears the cookie
- Password reset request and confirmation
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Response

from gtd_auth.api.deps import (
    AuthenticatedUser,
    get_auth_service,
    get_current_user,
    get_now,
    get_reset_service,
)
from gtd_auth.api.schemas import (
    LoginRequest,
    LoginResponse,
    ResetConfirmRequest,
    ResetRequest,
    StatusResponse,
)
from gtd_auth.core.config import settings
from gtd_auth.core.logging.logger import get_logger
from gtd_auth.services.auth.reset import PasswordResetService
from gtd_auth.services.auth.service import AuthenticationService

router = APIRouter()
logger = get_logger(__name__)


def set_session_cookie(response: Response, session_id: str, expires_at: datetime, now: datetime) -> None:
    response.set_cookie(
        key=settings.security.SESSION_COOKIE_NAME,
        value=session_id,
        max_age=max(int((expires_at - now).total_seconds()), 0),
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    response: Response,
    auth_service: AuthenticationService = Depends(get_auth_service),
    now: datetime = Depends(get_now),
) -> LoginResponse:
    result = await auth_service.login(body.identifier, body.password, now)
    set_session_cookie(response, result.session_id, result.expires_at, now)
    return LoginResponse(
        user_id=str(result.user_id),
        username=result.user.username,
        role=result.user.role,
    )


@router.post("/logout", response_model=StatusResponse)
async def logout(
    response: Response,
    current_user: AuthenticatedUser = Depends(get_current_user),
    auth_service: AuthenticationService = Depends(get_auth_service),
) -> StatusResponse:
    await auth_service.logout(current_user.session_id)
    response.delete_cookie(
        key=settings.security.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return StatusResponse()


@router.post("/reset/request", response_model=StatusResponse)
async def request_reset(
    body: ResetRequest,
    auth_service: AuthenticationService = Depends(get_auth_service),
) -> StatusResponse:
    """
    Record a reset request. The answer is the same whether or not the
    account exists; an administrator issues the actual token.
    """
    user = await auth_service.resolve_user(body.identifier)
    logger.info(
        "Password reset requested",
        event="auth.reset.requested",
        user_found=user is not None,
        user_id=str(user.id) if user else None,
    )
    return StatusResponse()


@router.post("/reset/confirm", response_model=StatusResponse)
async def confirm_reset(
    body: ResetConfirmRequest,
    reset_service: PasswordResetService = Depends(get_reset_service),
    now: datetime = Depends(get_now),
) -> StatusResponse:
    await reset_service.reset_password(body.token, body.new_password, now)
    return StatusResponse()
