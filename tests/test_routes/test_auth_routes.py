"""
Tests for login, bearer-token authentication and the profile endpoints.
"""

import pytest
from werkzeug.security import check_password_hash

DEFAULT_PASSWORD = "secret123"


class TestLogin:
    """POST /auth/login."""

    @pytest.fixture(autouse=True)
    def _setup(self, org):
        self.user = org.staff(org.department(org.office()))

    def test_login_returns_token(self, client):
        """Valid credentials yield a bearer token and the user."""
        response = client.post(
            "/auth/login",
            json={"employeeCode": self.user.employee_code, "password": DEFAULT_PASSWORD},
        )
        assert response.status_code == 200
        body = response.get_json()
        assert body["tokenType"] == "bearer"
        assert body["accessToken"]
        assert body["user"]["id"] == self.user.id

    def test_wrong_password(self, client):
        """Bad credentials are a JSON 401."""
        response = client.post(
            "/auth/login",
            json={"employeeCode": self.user.employee_code, "password": "wrong"},
        )
        assert response.status_code == 401
        assert response.get_json()["error"] == "UNAUTHORIZED"

    def test_missing_fields(self, client):
        """Missing body fields are a validation error."""
        response = client.post("/auth/login", json={"employeeCode": "X"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "VALIDATION_ERROR"


class TestMe:
    """GET /auth/me with and without a token."""

    def test_me_with_token(self, client, org, auth_headers):
        """A valid token resolves the current user."""
        user = org.staff(org.department(org.office()))
        response = client.get("/auth/me", headers=auth_headers(user))
        assert response.status_code == 200
        assert response.get_json()["employeeCode"] == user.employee_code

    def test_me_without_token(self, client):
        """No token is a JSON 401."""
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert response.get_json()["error"] == "UNAUTHORIZED"

    def test_me_with_garbage_token(self, client):
        """An unverifiable token is treated as anonymous."""
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_inactive_user_rejected(self, client, org, auth_headers):
        """Deactivated users cannot use an issued token."""
        user = org.staff(org.department(org.office()))
        headers = auth_headers(user)
        user.is_active = False
        org.session.commit()
        response = client.get("/auth/me", headers=headers)
        assert response.status_code == 401


class TestChangePassword:
    """POST /auth/change-password."""

    def test_change_password(self, client, org, auth_headers):
        """The new password works for the next login check."""
        user = org.staff(org.department(org.office()))
        response = client.post(
            "/auth/change-password",
            json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "newsecret123"},
            headers=auth_headers(user),
        )
        assert response.status_code == 200
        assert check_password_hash(user.password_hash, "newsecret123")
