"""
Self-service account endpoints for the logged-in user.
"""

from fastapi import APIRouter, Depends

from gtd_auth.api.deps import AuthenticatedUser, get_current_user, get_hasher, get_user_store
from gtd_auth.api.schemas import ProfileResponse, UpdateProfileRequest
from gtd_auth.core.errors.base import AuthenticationError, NotFoundError
from gtd_auth.core.logging.logger import get_logger
from gtd_auth.crud.base import UserStore, UserUpdate
from gtd_auth.models.entities import User
from gtd_auth.services.auth.password import CredentialHasher

router = APIRouter()
logger = get_logger(__name__)


async def _load_user(users: UserStore, current_user: AuthenticatedUser) -> User:
    user = await users.get_by_id(current_user.id)
    if user is None:
        raise NotFoundError("User not found", context={"user_id": str(current_user.id)})
    return user


@router.get("", response_model=ProfileResponse)
async def get_profile(
    current_user: AuthenticatedUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
) -> ProfileResponse:
    return ProfileResponse.from_user(await _load_user(users, current_user))


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    body: UpdateProfileRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
    hasher: CredentialHasher = Depends(get_hasher),
) -> ProfileResponse:
    user = await _load_user(users, current_user)

    # Identity fields are re-authenticated with the current password.
    if body.requires_password:
        if not await hasher.verify(body.current_password or "", user.password_hash):
            raise AuthenticationError("Invalid credentials", context={"user_id": str(user.id)})

    changes = UserUpdate(
        **body.model_dump(include={"username", "name", "email", "phone"}, exclude_unset=True)
    )
    updated = await users.update(user.id, changes)
    logger.info(
        "Profile updated",
        event="account.updated",
        user_id=str(user.id),
        fields=sorted(changes.changes()),
    )
    return ProfileResponse.from_user(updated)
