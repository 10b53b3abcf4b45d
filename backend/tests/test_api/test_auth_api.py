"""
API tests for /api/auth
"""
from storefront_admin.core.auth import create_access_token

from fakes import ADMIN_EMAIL, ADMIN_PASSWORD


class TestLogin:

    def test_login_returns_token(self, client, admin_user):
        response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["token"]
        assert body["user"]["email"] == ADMIN_EMAIL
        assert "password_hash" not in body["user"]

    def test_wrong_password_gets_no_token(self, client, admin_user):
        response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong-password"})

        assert response.status_code == 401
        body = response.json()
        assert body["message"] == "Invalid credentials"
        assert "token" not in body

    def test_unknown_email_gets_same_answer(self, client, admin_user):
        response = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": ADMIN_PASSWORD})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_token_from_login_opens_protected_routes(self, client, admin_user):
        token = client.post(
            "/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
        ).json()["token"]

        response = client.get("/api/products", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200


class TestRegister:

    def test_register_creates_user_and_token(self, client, user_repo):
        response = client.post("/api/auth/register", json={
            "name": "Sara", "email": "sara@example.com", "password": "secret1"
        })

        assert response.status_code == 201
        body = response.json()
        assert body["token"]
        assert body["user"]["role"] == "admin"
        assert user_repo.find_by_email("sara@example.com") is not None

    def test_duplicate_email_is_400(self, client, admin_user):
        response = client.post("/api/auth/register", json={
            "name": "Again", "email": ADMIN_EMAIL, "password": "secret1"
        })

        assert response.status_code == 400
        assert response.json()["message"] == "User already exists"

    def test_short_password_is_400(self, client, user_repo):
        response = client.post("/api/auth/register", json={
            "name": "Sara", "email": "sara@example.com", "password": "123"
        })

        assert response.status_code == 400
        assert user_repo.rows == {}


class TestMe:

    def test_me_returns_token_holder(self, client, auth_headers, admin_user):
        response = client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["user"]["id"] == admin_user.id

    def test_me_without_token_is_401(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_expired_token_is_403(self, client, admin_user):
        token = create_access_token(admin_user.id, admin_user.email, admin_user.role, expires_minutes=-1)

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["message"] == "Token has expired"
