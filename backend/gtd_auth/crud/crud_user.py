"""
MongoDB-backed user store.
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from pymongo.errors import DuplicateKeyError

from gtd_auth.core.errors.base import ConflictError, NotFoundError
from gtd_auth.core.logging.logger import get_logger
from gtd_auth.crud.base import UserStore, UserUpdate
from gtd_auth.crud.decorators import handle_db_error
from gtd_auth.models.documents import UserDocument
from gtd_auth.models.entities import User

logger = get_logger(__name__)


def _conflict(error: DuplicateKeyError) -> ConflictError:
    key_pattern = (error.details or {}).get("keyPattern") or {}
    field = next(iter(key_pattern), "username")
    return ConflictError(f"A user with this {field} already exists", context={"field": field})


class CRUDUser(UserStore):

    @handle_db_error("Failed to get user by id", lambda self, user_id: {"user_id": str(user_id)})
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        document = await UserDocument.get(user_id)
        return document.to_entity() if document else None

    @handle_db_error("Failed to get user by username", lambda self, username: {"username": username})
    async def get_by_username(self, username: str) -> Optional[User]:
        document = await UserDocument.find_one(UserDocument.username == username)
        return document.to_entity() if document else None

    @handle_db_error("Failed to get user by email", lambda self, email: {"email": email})
    async def get_by_email(self, email: str) -> Optional[User]:
        document = await UserDocument.find_one(UserDocument.email == email)
        return document.to_entity() if document else None

    @handle_db_error("Failed to create user", lambda self, user: {"username": user.username})
    async def create(self, user: User) -> User:
        try:
            document = await UserDocument.from_entity(user).insert()
        except DuplicateKeyError as e:
            raise _conflict(e) from e
        logger.info("Created user", user_id=str(user.id), role=user.role.value)
        return document.to_entity()

    @handle_db_error(
        "Failed to update user",
        lambda self, user_id, changes: {"user_id": str(user_id), "fields": sorted(changes.changes())},
    )
    async def update(self, user_id: UUID, changes: UserUpdate) -> User:
        document = await UserDocument.get(user_id)
        if document is None:
            raise NotFoundError("User not found", context={"user_id": str(user_id)})
        for field, value in changes.changes().items():
            setattr(document, field, value)
        document.updated_at = datetime.now(timezone.utc)
        try:
            await document.save()
        except DuplicateKeyError as e:
            raise _conflict(e) from e
        return document.to_entity()

    @handle_db_error("Failed to list users", lambda self: {})
    async def list_all(self) -> List[User]:
        documents = await UserDocument.find_all().sort("+created_at").to_list()
        return [document.to_entity() for document in documents]
