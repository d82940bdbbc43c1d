"""Tests for login, logout and session resolution."""

from datetime import timedelta
from uuid import uuid4

from app.core.config import settings
from app.core.security import create_access_token

from conftest import TEST_PASSWORD


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_sets_session_cookie(self, client, user):
        """Valid credentials return the user and set the httpOnly cookie."""
        response = client.post(
            "/api/auth/login", json={"username": "consultant", "password": TEST_PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["user"] == {"id": str(user.id), "username": "consultant"}

        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{settings.SESSION_COOKIE_NAME}=")
        assert "httponly" in set_cookie.lower()
        assert "samesite=lax" in set_cookie.lower()

    def test_cookie_authenticates_later_requests(self, client, user):
        """The cookie from login is enough to call protected routes."""
        client.post("/api/auth/login", json={"username": "consultant", "password": TEST_PASSWORD})

        response = client.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json()["username"] == "consultant"

    def test_wrong_password_is_rejected(self, client, user):
        response = client.post(
            "/api/auth/login", json={"username": "consultant", "password": "nope"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    def test_unknown_user_is_rejected(self, client, user):
        response = client.post(
            "/api/auth/login", json={"username": "someone-else", "password": TEST_PASSWORD}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    def test_missing_fields_are_invalid_input(self, client, user):
        """Validation failures use the 400 envelope."""
        response = client.post("/api/auth/login", json={"username": "consultant"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid input"
        assert isinstance(body["details"], list)


class TestSession:
    """Tests for resolving the current user."""

    def test_me_requires_session(self, client, user):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_bearer_token_is_accepted(self, auth_client, user):
        response = auth_client.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json() == {"id": str(user.id), "username": "consultant"}

    def test_expired_token_is_rejected(self, client, user):
        token = create_access_token({"sub": str(user.id)}, expires_delta=timedelta(seconds=-5))

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_token_for_missing_user_is_rejected(self, client, user):
        token = create_access_token({"sub": str(uuid4())})

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_protected_routes_require_session(self, client, user):
        """Case data is not readable without logging in."""
        assert client.get("/api/cases").status_code == 401
        assert client.get("/api/tasks").status_code == 401
        assert client.get("/api/dashboard/stats").status_code == 401


class TestLogout:
    """Tests for POST /api/auth/logout."""

    def test_logout_clears_cookie(self, client, user):
        client.post("/api/auth/login", json={"username": "consultant", "password": TEST_PASSWORD})

        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert settings.SESSION_COOKIE_NAME in response.headers["set-cookie"]
        assert client.get("/api/auth/me").status_code == 401
