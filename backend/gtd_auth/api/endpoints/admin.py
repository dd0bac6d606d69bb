"""
Administrator endpoints. Every route requires an ADMIN session.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, status

from gtd_auth.api.deps import (
    AuthenticatedUser,
    get_hasher,
    get_now,
    get_reset_service,
    get_user_store,
    require_admin,
)
from gtd_auth.api.schemas import (
    CreateUserRequest,
    CreateUserResponse,
    ResetTokenResponse,
    UserListResponse,
    UserSummary,
)
from gtd_auth.core.enums import UserStatus
from gtd_auth.core.errors.base import NotFoundError
from gtd_auth.core.logging.logger import get_logger
from gtd_auth.crud.base import UserStore
from gtd_auth.models.entities import User
from gtd_auth.services.auth.password import CredentialHasher
from gtd_auth.services.auth.reset import PasswordResetService
from gtd_auth.services.auth.tokens import generate_initial_password

router = APIRouter()
logger = get_logger(__name__)


@router.get("/users", response_model=UserListResponse)
async def list_users(
    admin: AuthenticatedUser = Depends(require_admin),
    users: UserStore = Depends(get_user_store),
) -> UserListResponse:
    return UserListResponse(users=[UserSummary.from_user(user) for user in await users.list_all()])


@router.post("/users", response_model=CreateUserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: CreateUserRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    users: UserStore = Depends(get_user_store),
    hasher: CredentialHasher = Depends(get_hasher),
    reset_service: PasswordResetService = Depends(get_reset_service),
    now: datetime = Depends(get_now),
) -> CreateUserResponse:
    """
    Create an ACTIVE account with a random password nobody knows and return a
    reset token the new user redeems to choose their own.
    """
    created = await users.create(
        User(
            username=body.username,
            name=body.name,
            email=body.email,
            role=body.role,
            status=UserStatus.ACTIVE,
            password_hash=await hasher.hash(generate_initial_password()),
            created_at=now,
            updated_at=now,
        )
    )
    token = await reset_service.issue_token(admin.id, created.id, now)
    logger.info(
        "User created by admin",
        event="admin.user.created",
        admin_user_id=str(admin.id),
        user_id=str(created.id),
        role=created.role.value,
    )
    return CreateUserResponse(user_id=str(created.id), reset_token=token.raw_token)


@router.post("/users/{user_id}/reset", response_model=ResetTokenResponse)
async def issue_reset_token(
    user_id: str,
    admin: AuthenticatedUser = Depends(require_admin),
    reset_service: PasswordResetService = Depends(get_reset_service),
    now: datetime = Depends(get_now),
) -> ResetTokenResponse:
    try:
        target_id = UUID(user_id)
    except ValueError:
        raise NotFoundError("User not found", context={"user_id": user_id})
    token = await reset_service.issue_token(admin.id, target_id, now)
    return ResetTokenResponse(reset_token=token.raw_token)
