"""Shared fixtures: in-memory stores, a counting fake hasher and a pinned clock."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict

import pytest
from fastapi.testclient import TestClient

from gtd_auth.api.deps import get_now
from gtd_auth.container import Container, build_container
from gtd_auth.core.enums import UserRole, UserStatus
from gtd_auth.crud.memory import (
    InMemoryPasswordResetTokenStore,
    InMemorySessionStore,
    InMemoryUserStore,
)
from gtd_auth.main import create_app
from gtd_auth.models.entities import User
from gtd_auth.services.auth.password import CredentialHasher
from gtd_auth.services.auth.reset import PasswordResetService
from gtd_auth.services.auth.service import AuthenticationService

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
PASSWORD = "Correct-Horse-9"


class FakeHasher(CredentialHasher):
    """Deterministic stand-in for bcrypt that records how often it is called."""

    def __init__(self) -> None:
        self.hash_calls = 0
        self.verify_calls = 0

    async def hash(self, plaintext: str) -> str:
        self.hash_calls += 1
        return "fake$" + plaintext[::-1]

    async def verify(self, plaintext: str, password_hash: str) -> bool:
        self.verify_calls += 1
        return password_hash == "fake$" + plaintext[::-1]


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def hasher() -> FakeHasher:
    return FakeHasher()


@pytest.fixture
def users() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def sessions() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def reset_tokens() -> InMemoryPasswordResetTokenStore:
    return InMemoryPasswordResetTokenStore()


@pytest.fixture
def auth_service(users, sessions, hasher) -> AuthenticationService:
    return AuthenticationService(users, sessions, hasher)


@pytest.fixture
def reset_service(users, reset_tokens, hasher) -> PasswordResetService:
    return PasswordResetService(users, reset_tokens, hasher)


@pytest.fixture
def make_user(users, hasher) -> Callable[..., Any]:
    """Async factory storing a user whose password is ``PASSWORD`` unless overridden."""

    async def _make_user(username: str = "alice", password: str = PASSWORD, **fields: Any) -> User:
        values: Dict[str, Any] = {
            "username": username,
            "name": username.title(),
            "role": UserRole.USER,
            "status": UserStatus.ACTIVE,
            "created_at": NOW,
            "updated_at": NOW,
        }
        values.update(fields)
        return await users.create(User(password_hash=await hasher.hash(password), **values))

    return _make_user


# ---------------------------
# HTTP fixtures
# ---------------------------
@pytest.fixture
def container(hasher) -> Container:
    return build_container(in_memory=True, hasher=hasher)


@pytest.fixture
def app(container):
    app = create_app(container)
    app.dependency_overrides[get_now] = lambda: NOW
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def seed_user(container) -> Callable[..., User]:
    """Synchronously store a user for HTTP tests."""

    def _seed(username: str, role: UserRole = UserRole.USER, password: str = PASSWORD, **fields: Any) -> User:
        async def _create() -> User:
            user = User(
                username=username,
                name=username.title(),
                role=role,
                password_hash=await container.hasher.hash(password),
                created_at=NOW,
                updated_at=NOW,
                **fields,
            )
            return await container.users.create(user)

        return asyncio.run(_create())

    return _seed


@pytest.fixture
def login(client) -> Callable[..., Any]:
    def _login(identifier: str, password: str = PASSWORD):
        return client.post("/api/auth/login", json={"identifier": identifier, "password": password})

    return _login
