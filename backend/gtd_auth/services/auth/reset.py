"""
Administrator-issued password reset tokens.

Only the SHA-256 digest of a token is persisted. Redemption claims the token
before the password changes, so it is spent whether or not the update succeeds.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import NoReturn, Optional
from uuid import UUID

from gtd_auth.core.config import settings
from gtd_auth.core.errors.base import NotFoundError, ValidationError
from gtd_auth.core.logging.logger import get_logger
from gtd_auth.crud.base import PasswordResetTokenStore, UserStore, UserUpdate
from gtd_auth.models.entities import PasswordResetToken
from gtd_auth.services.auth.password import CredentialHasher
from gtd_auth.services.auth.tokens import generate_reset_token, hash_reset_token

logger = get_logger(__name__)

INVALID_RESET_TOKEN = "Invalid or expired reset token"


@dataclass(frozen=True)
class ResetConfig:
    token_ttl: timedelta = timedelta(minutes=30)

    @classmethod
    def from_settings(cls) -> "ResetConfig":
        return cls(token_ttl=timedelta(minutes=settings.security.RESET_TOKEN_TTL_MINUTES))


@dataclass(frozen=True)
class ResetTokenResult:
    raw_token: str
    expires_at: datetime


class PasswordResetService:

    def __init__(
        self,
        users: UserStore,
        tokens: PasswordResetTokenStore,
        hasher: CredentialHasher,
        config: Optional[ResetConfig] = None,
    ) -> None:
        self.users = users
        self.tokens = tokens
        self.hasher = hasher
        self.config = config or ResetConfig()

    async def issue_token(
        self, admin_user_id: UUID, target_user_id: UUID, now: datetime
    ) -> ResetTokenResult:
        """
        Create a reset token for ``target_user_id``.

        The raw token is returned exactly once; only its digest is stored.

        Raises:
            NotFoundError: If the target user does not exist.
        """
        if await self.users.get_by_id(target_user_id) is None:
            raise NotFoundError("User not found", context={"user_id": str(target_user_id)})

        raw_token = generate_reset_token()
        record = await self.tokens.create(
            PasswordResetToken(
                user_id=target_user_id,
                created_by_user_id=admin_user_id,
                token_hash=hash_reset_token(raw_token),
                expires_at=now + self.config.token_ttl,
                used_at=None,
                created_at=now,
            )
        )
        logger.info(
            "Password reset token issued",
            event="auth.reset.issued",
            admin_user_id=str(admin_user_id),
            user_id=str(target_user_id),
            reset_id=str(record.id),
            expires_at=record.expires_at.isoformat(),
        )
        return ResetTokenResult(raw_token=raw_token, expires_at=record.expires_at)

    async def reset_password(self, raw_token: str, new_password: str, now: datetime) -> None:
        """
        Redeem a reset token and set a new password.

        Password strength is enforced by request validation before this runs.

        Raises:
            ValidationError: If the token is unknown, already used or expired.
        """
        record = await self.tokens.get_by_token_hash(hash_reset_token(raw_token))
        if record is None:
            self._reject("unknown")
        if not record.is_redeemable(now):
            self._reject("used" if record.used_at is not None else "expired")

        # Claim before touching the password; a concurrent redemption loses here.
        if not await self.tokens.mark_used(record.id, now):
            self._reject("used")

        password_hash = await self.hasher.hash(new_password)
        await self.users.update(record.user_id, UserUpdate(password_hash=password_hash))

        logger.info(
            "Password reset completed",
            event="auth.reset.completed",
            user_id=str(record.user_id),
            reset_id=str(record.id),
        )

    @staticmethod
    def _reject(reason: str) -> NoReturn:
        logger.warning("Rejected password reset", event="auth.reset.rejected", reason=reason)
        raise ValidationError(INVALID_RESET_TOKEN, context={"reason": reason})
