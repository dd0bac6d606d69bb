"""
Wiring of stores and services.

The application builds one ``Container`` at startup and keeps it on
``app.state``; tests build their own with in-memory stores.
"""

from dataclasses import dataclass
from typing import Optional

from gtd_auth.core.config import settings
from gtd_auth.crud.base import PasswordResetTokenStore, SessionStore, UserStore
from gtd_auth.crud.memory import (
    InMemoryPasswordResetTokenStore,
    InMemorySessionStore,
    InMemoryUserStore,
)
from gtd_auth.services.auth.password import CredentialHasher, PasswordManager, PasswordPolicy
from gtd_auth.services.auth.reset import PasswordResetService, ResetConfig
from gtd_auth.services.auth.service import AuthConfig, AuthenticationService
from gtd_auth.services.cron_jobs import SessionMaintenance


@dataclass(frozen=True)
class Container:
    users: UserStore
    sessions: SessionStore
    reset_tokens: PasswordResetTokenStore

    hasher: CredentialHasher
    password_policy: PasswordPolicy

    auth_service: AuthenticationService
    reset_service: PasswordResetService
    maintenance: SessionMaintenance

    uses_database: bool = False


def build_container(
    *,
    in_memory: Optional[bool] = None,
    hasher: Optional[CredentialHasher] = None,
    auth_config: Optional[AuthConfig] = None,
    reset_config: Optional[ResetConfig] = None,
    password_policy: Optional[PasswordPolicy] = None,
) -> Container:
    """
    Build the object graph.

    Args:
        in_memory: Use in-process stores; defaults to ``DATABASE__USE_IN_MEMORY_STORES``
        hasher: Credential hasher; defaults to bcrypt with the configured rounds
    """
    if in_memory is None:
        in_memory = settings.database.USE_IN_MEMORY_STORES

    if in_memory:
        users: UserStore = InMemoryUserStore()
        sessions: SessionStore = InMemorySessionStore()
        reset_tokens: PasswordResetTokenStore = InMemoryPasswordResetTokenStore()
    else:
        from gtd_auth.crud.crud_reset_token import CRUDPasswordResetToken
        from gtd_auth.crud.crud_session import CRUDSession
        from gtd_auth.crud.crud_user import CRUDUser

        users = CRUDUser()
        sessions = CRUDSession()
        reset_tokens = CRUDPasswordResetToken()

    hasher = hasher or PasswordManager.from_settings()

    return Container(
        users=users,
        sessions=sessions,
        reset_tokens=reset_tokens,
        hasher=hasher,
        password_policy=password_policy or PasswordPolicy.from_settings(),
        auth_service=AuthenticationService(
            users, sessions, hasher, auth_config or AuthConfig.from_settings()
        ),
        reset_service=PasswordResetService(
            users, reset_tokens, hasher, reset_config or ResetConfig.from_settings()
        ),
        maintenance=SessionMaintenance(sessions, reset_tokens),
        uses_database=not in_memory,
    )
