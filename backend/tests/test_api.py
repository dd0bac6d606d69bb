"""HTTP-level tests against the FastAPI application with in-memory stores."""

import asyncio
from datetime import timedelta

import pytest

from gtd_auth.core.enums import UserRole, UserStatus
from gtd_auth.models.entities import Session

from conftest import NOW, PASSWORD

NEW_PASSWORD = "Fresh-Start-2025"


def session_headers(session_id: str) -> dict:
    return {"x-session-id": session_id}


@pytest.fixture
def admin_session(seed_user, login) -> str:
    seed_user("root", role=UserRole.ADMIN)
    return login("root").cookies["session_id"]


@pytest.fixture
def user_session(seed_user, login) -> str:
    seed_user("alice")
    return login("alice").cookies["session_id"]


class TestLogin:

    def test_login_sets_cookie(self, client, seed_user, login):
        user = seed_user("alice")

        response = login("alice")

        assert response.status_code == 200
        assert response.json() == {"userId": str(user.id), "username": "alice", "role": "USER"}
        cookie = response.headers["set-cookie"]
        assert "session_id=" in cookie
        assert "HttpOnly" in cookie
        assert "samesite=lax" in cookie.lower()
        assert "Max-Age=14400" in cookie

    def test_login_by_email(self, seed_user, login):
        seed_user("alice", email="alice@example.com")

        assert login("alice@example.com").status_code == 200

    def test_login_by_email_normalizes_domain(self, seed_user, login):
        seed_user("bob", email="bob@example.com")

        assert login("bob@Example.COM").status_code == 200

    def test_wrong_password(self, client, seed_user, login):
        seed_user("alice")

        response = login("alice", "wrong-password")

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "Invalid credentials"
        assert body["requestId"] == response.headers["X-Request-ID"]
        assert "set-cookie" not in response.headers

    def test_disabled_user_looks_like_unknown(self, seed_user, login):
        seed_user("alice", status=UserStatus.DISABLED)

        disabled = login("alice")
        unknown = login("nobody")

        assert disabled.status_code == unknown.status_code == 401
        assert disabled.json()["error"] == unknown.json()["error"] == "Invalid credentials"

    def test_lockout_after_five_failures(self, container, seed_user, login):
        user = seed_user("alice")
        for _ in range(5):
            assert login("alice", "wrong-password").status_code == 401

        response = login("alice")

        assert response.status_code == 401
        stored = asyncio.run(container.users.get_by_id(user.id))
        assert stored.failed_login_count == 5
        assert stored.lockout_until == NOW + timedelta(minutes=15)

    def test_request_id_is_echoed(self, client, seed_user):
        response = client.post(
            "/api/auth/login",
            json={"identifier": "ghost", "password": "x"},
            headers={"X-Request-ID": "req-123"},
        )

        assert response.headers["X-Request-ID"] == "req-123"
        assert response.json()["requestId"] == "req-123"

    @pytest.mark.parametrize(
        "payload",
        [
            {"identifier": "   ", "password": "x"},
            {"identifier": "not@an-email", "password": "x"},
            {"identifier": "alice", "password": ""},
            {"identifier": "alice"},
        ],
    )
    def test_invalid_login_body(self, client, payload):
        response = client.post("/api/auth/login", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        assert body["details"]
        assert "requestId" in body


class TestSessions:

    def test_header_and_cookie_both_authenticate(self, client, user_session):
        assert client.get("/api/account", headers=session_headers(user_session)).status_code == 200
        assert client.get("/api/account").status_code == 200

    def test_header_takes_precedence_over_cookie(self, client, user_session):
        response = client.get("/api/account", headers=session_headers("bogus"))

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired session"

    def test_missing_session(self, client):
        response = client.get("/api/account")

        assert response.status_code == 401
        assert response.json()["error"] == "Authentication required"

    def test_expired_session_is_rejected(self, client, container, seed_user):
        user = seed_user("alice")
        asyncio.run(container.sessions.create(Session(id="expired", user_id=user.id, expires_at=NOW)))

        response = client.get("/api/account", headers=session_headers("expired"))

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired session"

    def test_session_of_deleted_user(self, client, container):
        asyncio.run(
            container.sessions.create(
                Session(id="orphan", user_id="00000000-0000-0000-0000-000000000000", expires_at=NOW + timedelta(hours=1))
            )
        )

        response = client.get("/api/account", headers=session_headers("orphan"))

        assert response.status_code == 401


class TestLogout:

    def test_logout_deletes_session(self, client, container, user_session):
        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert 'session_id=""' in response.headers["set-cookie"]
        assert asyncio.run(container.sessions.get_by_id(user_session)) is None
        assert client.get("/api/account", headers=session_headers(user_session)).status_code == 401

    def test_logout_without_session(self, client):
        assert client.post("/api/auth/logout").status_code == 401


class TestPasswordReset:

    def test_reset_request_always_ok(self, client, seed_user):
        seed_user("alice")

        known = client.post("/api/auth/reset/request", json={"identifier": "alice"})
        unknown = client.post("/api/auth/reset/request", json={"identifier": "nobody"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json() == {"status": "ok"}

    def test_confirm_with_unknown_token(self, client):
        response = client.post(
            "/api/auth/reset/confirm", json={"token": "nope", "newPassword": NEW_PASSWORD}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid or expired reset token"

    def test_confirm_with_weak_password(self, client):
        response = client.post("/api/auth/reset/confirm", json={"token": "t", "newPassword": "short"})

        assert response.status_code == 400
        details = response.json()["details"]
        assert details[0]["field"] == "newPassword"
        assert "at least 12 characters" in details[0]["message"]


class TestAdmin:

    def test_non_admin_gets_403(self, client, user_session):
        response = client.get("/api/admin/users")

        assert response.status_code == 403
        assert response.json()["error"] == "Admin privileges required"

    def test_anonymous_gets_401(self, client):
        assert client.get("/api/admin/users").status_code == 401

    def test_list_users_hides_secrets(self, client, admin_session):
        response = client.get("/api/admin/users")

        assert response.status_code == 200
        users = response.json()["users"]
        assert [user["username"] for user in users] == ["root"]
        assert "password_hash" not in users[0]
        assert "passwordHash" not in users[0]

    def test_create_user_and_redeem_token(self, client, login, admin_session):
        response = client.post(
            "/api/admin/users",
            json={"username": "bob", "name": "Bob", "email": "bob@example.com", "role": "USER"},
        )

        assert response.status_code == 201
        body = response.json()
        assert set(body) == {"userId", "resetToken"}

        client.cookies.clear()
        confirm = client.post(
            "/api/auth/reset/confirm",
            json={"token": body["resetToken"], "newPassword": NEW_PASSWORD},
        )
        assert confirm.status_code == 200

        login_response = login("bob", NEW_PASSWORD)
        assert login_response.status_code == 200
        assert login_response.json()["userId"] == body["userId"]

        again = client.post(
            "/api/auth/reset/confirm",
            json={"token": body["resetToken"], "newPassword": NEW_PASSWORD},
        )
        assert again.status_code == 400

    def test_create_duplicate_user(self, client, admin_session):
        payload = {"username": "root", "name": "Root Again", "role": "ADMIN"}

        response = client.post("/api/admin/users", json=payload)

        assert response.status_code == 409

    def test_create_user_rejects_unknown_role(self, client, admin_session):
        response = client.post(
            "/api/admin/users", json={"username": "eve", "name": "Eve", "role": "ROOT"}
        )

        assert response.status_code == 400

    def test_create_user_rejects_at_in_username(self, client, admin_session):
        response = client.post(
            "/api/admin/users", json={"username": "eve@home", "name": "Eve", "role": "USER"}
        )

        assert response.status_code == 400

    def test_issue_reset_token(self, client, seed_user, admin_session):
        target = seed_user("alice")

        response = client.post(f"/api/admin/users/{target.id}/reset")

        assert response.status_code == 200
        assert response.json()["resetToken"]

    @pytest.mark.parametrize("user_id", ["00000000-0000-0000-0000-000000000000", "not-a-uuid"])
    def test_issue_reset_token_unknown_user(self, client, admin_session, user_id):
        response = client.post(f"/api/admin/users/{user_id}/reset")

        assert response.status_code == 404
        assert response.json()["error"] == "User not found"


class TestAccount:

    def test_get_profile(self, client, user_session):
        response = client.get("/api/account")

        assert response.status_code == 200
        body = response.json()
        assert body["username"] == "alice"
        assert body["role"] == "USER"
        assert "password_hash" not in body

    def test_update_name_without_password(self, client, user_session):
        response = client.patch("/api/account", json={"name": "Alice Liddell"})

        assert response.status_code == 200
        assert response.json()["name"] == "Alice Liddell"

    def test_update_email_requires_password(self, client, user_session):
        response = client.patch("/api/account", json={"email": "new@example.com"})

        assert response.status_code == 400
        assert "Current password is required" in response.json()["details"][0]["message"]

    def test_update_email_with_wrong_password(self, client, user_session):
        response = client.patch(
            "/api/account", json={"email": "new@example.com", "currentPassword": "wrong-password"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    def test_update_email_with_password(self, client, user_session):
        response = client.patch(
            "/api/account", json={"email": "new@example.com", "currentPassword": PASSWORD}
        )

        assert response.status_code == 200
        assert response.json()["email"] == "new@example.com"

    def test_update_to_taken_username(self, client, seed_user, user_session):
        seed_user("bob")

        response = client.patch("/api/account", json={"username": "bob", "currentPassword": PASSWORD})

        assert response.status_code == 409

    def test_update_username_rejects_at(self, client, user_session):
        response = client.patch("/api/account", json={"username": "x@y", "currentPassword": PASSWORD})

        assert response.status_code == 400

    def test_empty_update(self, client, user_session):
        assert client.patch("/api/account", json={}).status_code == 400


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == {"healthy": True, "backend": "memory"}
