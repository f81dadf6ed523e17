"""Integration tests for the session endpoints and auth resolution."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from inkpost.api.auth_utils import create_access_token
from tests.integration.api.conftest import auth_headers


class TestSession:
    def test_new_user_gets_generated_username(self, client) -> None:
        resp = client.post(
            "/api/auth/session",
            json={"email": "John.Doe@Example.com", "name": "John", "providerAccountId": "g-1"},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["tokenType"] == "bearer"
        assert data["user"]["email"] == "john.doe@example.com"
        assert data["user"]["username"].startswith("johndoe")
        assert data["user"]["role"] == "user"
        assert "access_token" in resp.cookies

    def test_returning_user_keeps_id_and_username(self, client) -> None:
        first = client.post(
            "/api/auth/session", json={"email": "ada@example.com", "name": "Ada"}
        ).json()
        second = client.post(
            "/api/auth/session",
            json={"email": "ada@example.com", "name": "Ada L.", "image": "https://x/a.png"},
        ).json()

        assert second["user"]["id"] == first["user"]["id"]
        assert second["user"]["username"] == first["user"]["username"]
        assert second["user"]["name"] == "Ada L."
        assert second["user"]["image"] == "https://x/a.png"

    def test_invalid_email_rejected(self, client) -> None:
        resp = client.post("/api/auth/session", json={"email": "nobody", "name": "X"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "A valid email is required"

    def test_session_cookie_authenticates_me(self, client) -> None:
        client.post("/api/auth/session", json={"email": "ada@example.com", "name": "Ada"})

        resp = client.get("/api/auth/me")

        assert resp.status_code == 200
        assert resp.json()["email"] == "ada@example.com"

    def test_logout_clears_cookie(self, client) -> None:
        client.post("/api/auth/session", json={"email": "ada@example.com", "name": "Ada"})

        assert client.post("/api/auth/logout").json() == {"success": True}
        assert client.get("/api/auth/me").status_code == 401


class TestAuthResolution:
    def test_bearer_header(self, client, ada) -> None:
        resp = client.get("/api/auth/me", headers=auth_headers(ada))
        assert resp.status_code == 200
        assert resp.json()["username"] == "ada1234"

    def test_missing_token(self, client) -> None:
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Unauthorized"

    def test_garbage_token(self, client) -> None:
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_expired_token(self, client, ada) -> None:
        token = create_access_token(
            {"sub": str(ada.id)},
            expires_delta=timedelta(minutes=1),
            now_utc=datetime.now(UTC) - timedelta(hours=1),
        )
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_token_for_unknown_user(self, client) -> None:
        token = create_access_token({"sub": "00000000-0000-0000-0000-000000000000"})
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401


class TestAppShell:
    def test_health(self, client) -> None:
        assert client.get("/health").json() == {"status": "ok", "service": "inkpost"}
