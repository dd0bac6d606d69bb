"""
MongoDB-backed password reset token store.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from beanie.operators import Set
from pymongo.errors import DuplicateKeyError

from gtd_auth.core.errors.base import ConflictError
from gtd_auth.crud.base import PasswordResetTokenStore
from gtd_auth.crud.decorators import handle_db_error
from gtd_auth.models.documents import PasswordResetTokenDocument
from gtd_auth.models.entities import PasswordResetToken


class CRUDPasswordResetToken(PasswordResetTokenStore):

    @handle_db_error(
        "Failed to create reset token",
        lambda self, token: {"user_id": str(token.user_id), "issued_by": str(token.created_by_user_id)},
    )
    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        try:
            document = await PasswordResetTokenDocument.from_entity(token).insert()
        except DuplicateKeyError as e:
            raise ConflictError("Reset token already exists") from e
        return document.to_entity()

    @handle_db_error("Failed to look up reset token", lambda self, token_hash: {})
    async def get_by_token_hash(self, token_hash: str) -> Optional[PasswordResetToken]:
        document = await PasswordResetTokenDocument.find_one(
            PasswordResetTokenDocument.token_hash == token_hash
        )
        return document.to_entity() if document else None

    @handle_db_error("Failed to mark reset token used", lambda self, token_id, used_at: {"token_id": str(token_id)})
    async def mark_used(self, token_id: UUID, used_at: datetime) -> bool:
        # Matches only while used_at is still null.
        result = await PasswordResetTokenDocument.find_one(
            {"_id": token_id, "used_at": None}
        ).update(Set({PasswordResetTokenDocument.used_at: used_at}))
        return bool(result and result.modified_count)

    @handle_db_error("Failed to delete expired reset tokens", lambda self, now: {"now": now.isoformat()})
    async def delete_expired(self, now: datetime) -> int:
        result = await PasswordResetTokenDocument.find(
            PasswordResetTokenDocument.expires_at < now
        ).delete()
        return result.deleted_count if result else 0
