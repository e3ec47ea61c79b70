"""Integration tests for session API endpoints."""

from fastapi.testclient import TestClient


class TestCreateSession:
    """Tests for POST /api/v1/sessions."""

    def test_creates_session_with_token(self, client: TestClient) -> None:
        """Test that a session is created and its token returned three ways."""
        response = client.post("/api/v1/sessions")

        assert response.status_code == 201
        data = response.json()
        assert len(data["session_token"]) == 64
        assert data["actor_id"] == f"guest:{data['id']}"
        assert data["is_authenticated"] is False
        assert response.headers["x-session-token"] == data["session_token"]
        assert client.cookies.get("storefront_session") == data["session_token"]


class TestGetMySession:
    """Tests for GET /api/v1/sessions/me."""

    def test_auto_creates_session(self, client: TestClient) -> None:
        """Test that a request without a token gets a new session."""
        response = client.get("/api/v1/sessions/me")

        assert response.status_code == 200
        assert "x-session-token" in response.headers
        assert response.json()["actor_id"].startswith("guest:")

    def test_header_token_is_honored(self, client: TestClient) -> None:
        """Test that X-Session-Token identifies the session without cookies."""
        created = client.post("/api/v1/sessions").json()
        client.cookies.clear()

        response = client.get("/api/v1/sessions/me", headers={"X-Session-Token": created["session_token"]})

        assert response.json()["id"] == created["id"]
        assert "x-session-token" not in response.headers

    def test_unknown_token_gets_fresh_session(self, client: TestClient) -> None:
        response = client.get("/api/v1/sessions/me", headers={"X-Session-Token": "f" * 64})

        assert response.status_code == 200
        assert response.headers["x-session-token"] != "f" * 64

    def test_separate_clients_have_separate_guests(self, client: TestClient) -> None:
        first = client.post("/api/v1/sessions").json()
        second = client.post("/api/v1/sessions").json()
        assert first["actor_id"] != second["actor_id"]
