# tests/test_auth.py

"""
Tests for authentication endpoints.
"""

from fastapi.testclient import TestClient
from unittest.mock import patch, Mock


def _sign_in_response(user_id="staff-1", role="staff", token="test-token"):
    mock_session = Mock()
    mock_session.access_token = token
    mock_user = Mock()
    mock_user.id = user_id
    mock_user.user_metadata = {"role": role}
    mock_response = Mock()
    mock_response.session = mock_session
    mock_response.user = mock_user
    return mock_response


def test_login_success_starts_a_session(client: TestClient, service):
    """Login returns the token plus the resolved permission set."""
    with patch("routers.auth.get_supabase_client") as mock_supabase:
        mock_client = Mock()
        mock_client.auth.sign_in_with_password.return_value = _sign_in_response()
        mock_supabase.return_value = mock_client

        response = client.post(
            "/auth/login",
            json={"email": "Staff@Example.com ", "password": "password123"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"] == "test-token"
        assert data["permissions"]["role"] == "staff"
        assert data["permissions"]["effective"]["modules"]["employers"] is True
        mock_client.auth.sign_in_with_password.assert_called_once_with(
            {"email": "staff@example.com", "password": "password123"}
        )

    assert [s.user_id for s in service.active_sessions()] == ["staff-1"]


def test_login_invalid_credentials(client: TestClient):
    """Test login with invalid credentials."""
    with patch("routers.auth.get_supabase_client") as mock_supabase:
        mock_client = Mock()
        mock_client.auth.sign_in_with_password.side_effect = Exception("Invalid credentials")
        mock_supabase.return_value = mock_client

        response = client.post(
            "/auth/login",
            json={"email": "test@example.com", "password": "wrongpassword"}
        )

        assert response.status_code == 401
        assert "Invalid email or password" in response.json()["detail"]


def test_login_is_not_blocked_by_fetch_failures(client: TestClient, fake_store):
    """Unavailable permission data degrades to reduced access, not an error."""
    fake_store.fail.add("fetch_global_flags")

    with patch("routers.auth.get_supabase_client") as mock_supabase:
        mock_client = Mock()
        mock_client.auth.sign_in_with_password.return_value = _sign_in_response()
        mock_supabase.return_value = mock_client

        response = client.post(
            "/auth/login",
            json={"email": "staff@example.com", "password": "password123"}
        )

    assert response.status_code == 200
    permissions = response.json()["permissions"]
    assert "Global feature flags unavailable" in permissions["warnings"]
    assert not any(permissions["effective"]["modules"].values())


def test_login_without_supabase(client: TestClient):
    with patch("routers.auth.get_supabase_client", return_value=None):
        response = client.post(
            "/auth/login",
            json={"email": "test@example.com", "password": "password123"}
        )

    assert response.status_code == 500


def test_logout_discards_the_session(client: TestClient, act_as, service):
    act_as("staff-1")
    assert client.get("/permissions/me").status_code == 200
    assert len(service.active_sessions()) == 1

    response = client.post("/auth/logout")

    assert response.status_code == 200
    assert service.active_sessions() == []


def test_me_returns_the_current_user(client: TestClient, act_as):
    act_as("admin-1")

    response = client.get("/auth/me")

    assert response.status_code == 200
    assert response.json()["role"] == "admin"


def test_invalid_token_is_rejected(client: TestClient):
    with patch("dependencies.auth.get_supabase_client") as mock_supabase:
        mock_client = Mock()
        mock_client.auth.get_user.side_effect = Exception("JWT expired")
        mock_supabase.return_value = mock_client

        response = client.get(
            "/auth/me", headers={"Authorization": "Bearer expired-token"}
        )

    assert response.status_code == 401
