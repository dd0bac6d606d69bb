"""
User entity.

Pure data structure shared by the stores and services; it knows nothing
about how it is persisted.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from gtd_auth.core.enums import UserRole, UserStatus


class User(BaseModel):
    """
    An account that can log in.

    ``password_hash`` is opaque and only ever handed to the credential hasher.
    ``failed_login_count`` and ``lockout_until`` carry the lockout state.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    username: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    name: str = ""
    password_hash: str = Field(..., repr=False)
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.ACTIVE

    # Lockout tracking
    failed_login_count: int = Field(0, ge=0)
    lockout_until: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
