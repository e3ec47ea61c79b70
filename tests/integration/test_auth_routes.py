"""Integration tests for registration, login, logout and profile endpoints."""

from fastapi.testclient import TestClient

REGISTRATION = {"email": "hanako@example.com", "password": "password123", "name": "Hanako"}


def register(client: TestClient, **overrides: str) -> dict:
    response = client.post("/api/v1/auth/register", json={**REGISTRATION, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


class TestRegister:
    """Tests for POST /api/v1/auth/register."""

    def test_register_logs_in(self, client: TestClient) -> None:
        """Test that registration returns the member and binds the session."""
        data = register(client)

        assert data["success"] is True
        assert data["user"]["points"] == 500
        assert "password_hash" not in data["user"]

        session = client.get("/api/v1/sessions/me").json()
        assert session["actor_id"] == data["user"]["id"]
        assert session["is_authenticated"] is True

    def test_duplicate_email(self, client: TestClient) -> None:
        register(client)
        response = client.post("/api/v1/auth/register", json={**REGISTRATION, "email": "HANAKO@example.com"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "duplicate_email"

    def test_invalid_email_rejected(self, client: TestClient) -> None:
        response = client.post("/api/v1/auth/register", json={**REGISTRATION, "email": "not-an-email"})
        assert response.status_code == 422

    def test_guest_cart_migrates_on_register(self, client: TestClient) -> None:
        """Test that items added as a guest move into the new member's cart."""
        client.post("/api/v1/cart/items", json={"product_id": 5, "quantity": 2})

        data = register(client)

        assert data["migrated_cart_items"] == 1
        cart = client.get("/api/v1/cart").json()
        assert cart["actor_id"] == data["user"]["id"]
        assert cart["item_count"] == 2
        assert cart["items"][0]["applied_price"] == 700


class TestLoginLogout:
    """Tests for login and logout."""

    def test_login_after_logout(self, client: TestClient) -> None:
        user = register(client)["user"]

        logout = client.post("/api/v1/auth/logout")
        assert logout.status_code == 200
        assert client.get("/api/v1/sessions/me").json()["is_authenticated"] is False

        login = client.post(
            "/api/v1/auth/login", json={"email": "hanako@example.com", "password": "password123"}
        )
        assert login.status_code == 200
        assert login.json()["user"]["id"] == user["id"]

    def test_wrong_password(self, client: TestClient) -> None:
        register(client)
        client.post("/api/v1/auth/logout")

        response = client.post("/api/v1/auth/login", json={"email": "hanako@example.com", "password": "nope"})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_credentials"

    def test_logout_keeps_guest_cart_separate(self, client: TestClient) -> None:
        """Test that a member's cart is not visible after logout."""
        register(client)
        client.post("/api/v1/cart/items", json={"product_id": 5, "quantity": 1})
        client.post("/api/v1/auth/logout")

        assert client.get("/api/v1/cart").json()["item_count"] == 0


class TestPasswordReset:
    """Tests for POST /api/v1/auth/password-reset."""

    def test_reset_then_login_with_new_password(self, client: TestClient) -> None:
        register(client)
        client.post("/api/v1/auth/logout")

        response = client.post(
            "/api/v1/auth/password-reset",
            json={"email": "hanako@example.com", "new_password": "brand-new-pass"},
        )

        assert response.status_code == 200
        assert response.json()["new_password"] is None
        old = client.post("/api/v1/auth/login", json={"email": "hanako@example.com", "password": "password123"})
        assert old.status_code == 400
        new = client.post("/api/v1/auth/login", json={"email": "hanako@example.com", "password": "brand-new-pass"})
        assert new.status_code == 200

    def test_generated_password_is_returned(self, client: TestClient) -> None:
        register(client)
        client.post("/api/v1/auth/logout")

        generated = client.post("/api/v1/auth/password-reset", json={"email": "hanako@example.com"}).json()[
            "new_password"
        ]

        login = client.post("/api/v1/auth/login", json={"email": "hanako@example.com", "password": generated})
        assert login.status_code == 200

    def test_unknown_email(self, client: TestClient) -> None:
        response = client.post("/api/v1/auth/password-reset", json={"email": "nobody@example.com"})
        assert response.status_code == 404
        assert response.json()["error"] == "user_not_found"

    def test_short_password_rejected(self, client: TestClient) -> None:
        register(client)
        response = client.post(
            "/api/v1/auth/password-reset", json={"email": "hanako@example.com", "new_password": "short"}
        )
        assert response.status_code == 422


class TestProfile:
    """Tests for /api/v1/users/me."""

    def test_requires_login(self, client: TestClient) -> None:
        response = client.get("/api/v1/users/me")
        assert response.status_code == 401
        assert response.json()["error"] == "authentication_error"

    def test_get_and_update_profile(self, client: TestClient) -> None:
        register(client)

        response = client.patch("/api/v1/users/me", json={"name": "Hanako Y", "phone": "090-0000-0000"})

        assert response.status_code == 200
        assert response.json()["name"] == "Hanako Y"
        assert client.get("/api/v1/users/me").json()["phone"] == "090-0000-0000"

    def test_points_balance(self, client: TestClient) -> None:
        user = register(client)["user"]
        data = client.get("/api/v1/users/me/points").json()
        assert data == {"actor_id": user["id"], "points": 500}

    def test_delete_account_logs_out(self, client: TestClient) -> None:
        register(client)

        response = client.delete("/api/v1/users/me")

        assert response.status_code == 200
        assert client.get("/api/v1/users/me").status_code == 401
        relogin = client.post(
            "/api/v1/auth/login", json={"email": "hanako@example.com", "password": "password123"}
        )
        assert relogin.status_code == 400
