from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class PasswordResetToken(BaseModel):
    """
    Single-use reset token issued by an administrator.

    Only the SHA-256 digest of the raw token is stored; the raw value is
    handed to the caller once at issue time.
    """

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    created_by_user_id: UUID
    token_hash: str = Field(..., min_length=1, repr=False)
    expires_at: datetime
    used_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def is_redeemable(self, now: datetime) -> bool:
        """True while the token is unused and ``now`` is before ``expires_at``."""
        return self.used_at is None and now < self.expires_at
