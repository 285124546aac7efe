"""
API Tests for authentication endpoints
The Auth Service is replaced with an httpx.MockTransport-backed client.
"""
import json
from datetime import timedelta

import httpx
import pytest
from faker import Faker
from httpx import AsyncClient

from depmatrix.api.v1.endpoints.auth import get_auth_client
from depmatrix.core.security import create_access_token, decode_token
from depmatrix.main import app
from depmatrix.services.persistence_client import AuthServiceClient

fake = Faker()


def auth_service(handler):
    """Dependency override returning a client bound to ``handler``"""
    async def _override():
        async with AuthServiceClient(base_url="http://auth.test", transport=httpx.MockTransport(handler)) as client:
            yield client
    return _override


@pytest.fixture
def user_data() -> dict:
    return {"username": fake.user_name(), "email": fake.email(), "password": "password123"}


class TestLogin:
    """Test login against the Auth Service"""

    async def test_login_issues_session_token(self, client: AsyncClient, user_data):
        def handler(request):
            body = json.loads(request.content)
            return httpx.Response(200, json={
                "token": "upstream-abc",
                "user": {"id": 42, "role": "admin", "username": body["username"]},
            })

        app.dependency_overrides[get_auth_client] = auth_service(handler)
        response = await client.post(
            "/api/v1/auth/login",
            json={"username": user_data["username"], "password": user_data["password"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"] == {"id": "42", "role": "admin", "username": user_data["username"]}

        payload = decode_token(data["access_token"])
        assert payload["sub"] == "42"
        assert payload["upstream_token"] == "upstream-abc"

    async def test_login_invalid_credentials(self, client: AsyncClient):
        app.dependency_overrides[get_auth_client] = auth_service(
            lambda request: httpx.Response(401, json={"message": "Invalid credentials"})
        )
        response = await client.post("/api/v1/auth/login", json={"username": "x", "password": "y"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_FAILED"
        assert response.json()["error"]["message"] == "Invalid credentials"

    async def test_login_unknown_role(self, client: AsyncClient):
        app.dependency_overrides[get_auth_client] = auth_service(
            lambda request: httpx.Response(200, json={"token": "t", "user": {"id": 1, "role": "owner"}})
        )
        response = await client.post("/api/v1/auth/login", json={"username": "x", "password": "y"})

        assert response.status_code == 401

    async def test_auth_service_down(self, client: AsyncClient):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        app.dependency_overrides[get_auth_client] = auth_service(handler)
        response = await client.post("/api/v1/auth/login", json={"username": "x", "password": "y"})

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "PERSISTENCE_ERROR"


class TestRegister:

    async def test_register(self, client: AsyncClient, user_data):
        def handler(request):
            body = json.loads(request.content)
            return httpx.Response(201, json={"id": "7", "username": body["username"], "email": body["email"]})

        app.dependency_overrides[get_auth_client] = auth_service(handler)
        response = await client.post("/api/v1/auth/register", json=user_data)

        assert response.status_code == 201
        assert response.json()["username"] == user_data["username"]

    async def test_register_invalid_email(self, client: AsyncClient, user_data):
        user_data["email"] = "nope"
        response = await client.post("/api/v1/auth/register", json=user_data)
        assert response.status_code == 422

    async def test_register_rejected_upstream(self, client: AsyncClient, user_data):
        app.dependency_overrides[get_auth_client] = auth_service(
            lambda request: httpx.Response(400, json={"message": "Username already taken"})
        )
        response = await client.post("/api/v1/auth/register", json=user_data)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Username already taken"


class TestSession:
    """Test session-token protected routes"""

    async def test_me(self, client: AsyncClient, auth_headers, test_user):
        response = await client.get("/api/v1/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"id": test_user.id, "role": "user", "username": test_user.username}

    async def test_me_without_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code in (401, 403)

    async def test_me_with_bad_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    async def test_me_with_expired_token(self, client: AsyncClient, test_user):
        token = create_access_token({"sub": test_user.id, "role": "user"}, expires_delta=timedelta(minutes=-5))
        response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"] == {"code": "TOKEN_EXPIRED", "message": "Token has expired", "details": {}}

    async def test_logout(self, client: AsyncClient, auth_headers):
        app.dependency_overrides[get_auth_client] = auth_service(lambda request: httpx.Response(500))
        response = await client.post("/api/v1/auth/logout", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True}
