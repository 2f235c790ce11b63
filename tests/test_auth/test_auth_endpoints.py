"""Tests for authentication endpoints — register, login, me, refresh."""

import uuid

import pytest
from httpx import AsyncClient

from epicspots.models.user import User

pytestmark = pytest.mark.asyncio

URL = "/api/v1/auth"


def _credentials(**overrides) -> dict:
    unique = uuid.uuid4().hex[:8]
    body = {"email": f"new-{unique}@test.com", "password": "securepass123", "name": "New User"}
    body.update(overrides)
    return body


class TestRegister:
    async def test_register_guest_by_default(self, client: AsyncClient) -> None:
        body = _credentials()
        response = await client.post(f"{URL}/register", json=body)

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == body["email"]
        assert data["user"]["role"] == "USER"
        assert data["user"]["is_active"] is True
        assert data["tokens"]["access_token"]
        assert data["tokens"]["token_type"] == "bearer"

    async def test_register_owner(self, client: AsyncClient) -> None:
        response = await client.post(f"{URL}/register", json=_credentials(role="OWNER"))
        assert response.status_code == 201
        assert response.json()["user"]["role"] == "OWNER"

    async def test_duplicate_email(self, client: AsyncClient) -> None:
        body = _credentials()
        assert (await client.post(f"{URL}/register", json=body)).status_code == 201

        response = await client.post(f"{URL}/register", json=body)
        assert response.status_code == 409
        assert "already registered" in response.json()["detail"].lower()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"password": "short"},
            {"password": "x" * 73},
            {"email": "not-an-email"},
            {"name": ""},
            {"role": "ADMIN"},
        ],
    )
    async def test_validation(self, client: AsyncClient, overrides: dict) -> None:
        response = await client.post(f"{URL}/register", json=_credentials(**overrides))
        assert response.status_code == 422


class TestLogin:
    async def test_login_success(self, client: AsyncClient) -> None:
        body = _credentials()
        await client.post(f"{URL}/register", json=body)

        response = await client.post(f"{URL}/login", json={"email": body["email"], "password": body["password"]})

        assert response.status_code == 200
        assert response.json()["user"]["email"] == body["email"]
        assert response.json()["tokens"]["refresh_token"]

    async def test_wrong_password(self, client: AsyncClient) -> None:
        body = _credentials()
        await client.post(f"{URL}/register", json=body)

        response = await client.post(f"{URL}/login", json={"email": body["email"], "password": "wrongpass999"})
        assert response.status_code == 401
        assert "invalid" in response.json()["detail"].lower()

    async def test_unknown_user(self, client: AsyncClient) -> None:
        response = await client.post(f"{URL}/login", json={"email": "nobody@test.com", "password": "whatever123"})
        assert response.status_code == 401

    async def test_inactive_account(self, client: AsyncClient, make_user) -> None:
        inactive = await make_user(is_active=False)
        response = await client.post(f"{URL}/login", json={"email": inactive.email, "password": "testpass123"})
        assert response.status_code == 403


class TestMe:
    async def test_me(self, client: AsyncClient, guest_headers: dict, guest: User) -> None:
        response = await client.get(f"{URL}/me", headers=guest_headers)
        assert response.status_code == 200
        assert response.json()["email"] == guest.email

    async def test_unauthenticated(self, client: AsyncClient) -> None:
        response = await client.get(f"{URL}/me")
        assert response.status_code in (401, 403)

    async def test_garbage_token(self, client: AsyncClient) -> None:
        response = await client.get(f"{URL}/me", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401

    async def test_refresh_token_is_not_an_access_token(self, client: AsyncClient) -> None:
        tokens = (await client.post(f"{URL}/register", json=_credentials())).json()["tokens"]
        response = await client.get(f"{URL}/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
        assert response.status_code == 401


class TestRefresh:
    async def test_refresh_success(self, client: AsyncClient) -> None:
        tokens = (await client.post(f"{URL}/register", json=_credentials())).json()["tokens"]

        response = await client.post(f"{URL}/refresh", json={"refresh_token": tokens["refresh_token"]})

        assert response.status_code == 200
        assert response.json()["access_token"]
        assert response.json()["token_type"] == "bearer"

    async def test_invalid_token(self, client: AsyncClient) -> None:
        response = await client.post(f"{URL}/refresh", json={"refresh_token": "invalid.token.here"})
        assert response.status_code == 401

    async def test_access_token_rejected(self, client: AsyncClient) -> None:
        tokens = (await client.post(f"{URL}/register", json=_credentials())).json()["tokens"]
        response = await client.post(f"{URL}/refresh", json={"refresh_token": tokens["access_token"]})
        assert response.status_code == 401
