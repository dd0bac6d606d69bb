"""
MongoDB-backed session store.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from gtd_auth.crud.base import SessionStore
from gtd_auth.crud.decorators import handle_db_error
from gtd_auth.models.documents import SessionDocument
from gtd_auth.models.entities import Session
from gtd_auth.services.auth.tokens import fingerprint


class CRUDSession(SessionStore):

    @handle_db_error("Failed to create session", lambda self, session: {"user_id": str(session.user_id)})
    async def create(self, session: Session) -> Session:
        document = await SessionDocument.from_entity(session).insert()
        return document.to_entity()

    @handle_db_error("Failed to get session", lambda self, session_id: {"session": fingerprint(session_id)})
    async def get_by_id(self, session_id: str) -> Optional[Session]:
        document = await SessionDocument.get(session_id)
        return document.to_entity() if document else None

    @handle_db_error("Failed to delete session", lambda self, session_id: {"session": fingerprint(session_id)})
    async def delete_by_id(self, session_id: str) -> None:
        await SessionDocument.find(SessionDocument.id == session_id).delete()

    @handle_db_error("Failed to delete user sessions", lambda self, user_id: {"user_id": str(user_id)})
    async def delete_by_user_id(self, user_id: UUID) -> int:
        result = await SessionDocument.find(SessionDocument.user_id == user_id).delete()
        return result.deleted_count if result else 0

    @handle_db_error("Failed to delete expired sessions", lambda self, now: {"now": now.isoformat()})
    async def delete_expired(self, now: datetime) -> int:
        result = await SessionDocument.find(SessionDocument.expires_at < now).delete()
        return result.deleted_count if result else 0
