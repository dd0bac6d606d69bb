from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Session(BaseModel):
    """A server-side login session. Created on login, deleted on logout or expiry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, repr=False)
    user_id: UUID
    expires_at: datetime
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now
