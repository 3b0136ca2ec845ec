import pytest
from httpx import AsyncClient

from boardmgmt.core.models.domain.permissions import AppModule, Permission

pytestmark = pytest.mark.asyncio


async def test_register_always_grants_board_member(client: AsyncClient):
    payload = {
        "email": "new.member@board.local",
        "password": "hunter22",
        "first_name": "New",
        "last_name": "Member",
        "role": "Admin",
    }
    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new.member@board.local"
    assert data["name"] == "New Member"
    assert "password_hash" not in data

    login = await client.post("/api/v1/auth/login", json={"email": payload["email"], "password": "hunter22"})
    assert login.status_code == 200
    assert login.json()["roles"] == ["BoardMember"]
    assert str(int(AppModule.users)) not in login.json()["permissions"]


async def test_self_registered_user_cannot_list_users(client: AsyncClient):
    credentials = {"email": "eager@board.local", "password": "hunter22", "role": "Admin"}
    assert (await client.post("/api/v1/auth/register", json=credentials)).status_code == 201
    login = await client.post("/api/v1/auth/login", json=credentials)
    token = login.json()["token"]

    response = await client.get("/api/v1/users", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


async def test_register_duplicate_email_is_validation_error(client: AsyncClient, member):
    response = await client.post("/api/v1/auth/register", json={"email": member.email, "password": "hunter22"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "validation_error"
    assert "email" in body["error"]["details"]


async def test_register_rejects_short_password(client: AsyncClient):
    response = await client.post("/api/v1/auth/register", json={"email": "x@board.local", "password": "123"})
    assert response.status_code == 400
    assert "password" in response.json()["error"]["details"]


async def test_login_returns_token_and_permission_matrix(client: AsyncClient, admin):
    response = await client.post("/api/v1/auth/login", json={"email": admin.email, "password": "secret123"})
    assert response.status_code == 200
    data = response.json()
    assert data["token"]
    assert data["user"]["id"] == admin.id
    assert "Admin" in data["roles"]
    assert data["permissions"][str(int(AppModule.users))] == int(Permission.all())


async def test_login_with_wrong_password(client: AsyncClient, member):
    response = await client.post("/api/v1/auth/login", json={"email": member.email, "password": "wrong"})
    assert response.status_code == 401
    body = response.json()
    assert body["error"]["code"] == "unauthorized"
    assert body["trace_id"]


async def test_login_inactive_user_rejected(client: AsyncClient, make_user):
    user = await make_user("sleepy@board.local", is_active=False)
    response = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "secret123"})
    assert response.status_code == 401


async def test_me_requires_token(client: AsyncClient):
    response = await client.get("/api/v1/me")
    assert response.status_code == 401


async def test_me_with_invalid_token(client: AsyncClient):
    response = await client.get("/api/v1/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


async def test_me_profile_and_permissions(client: AsyncClient, member, auth_headers):
    response = await client.get("/api/v1/me", headers=auth_headers(member))
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == member.email
    assert data["roles"] == ["BoardMember"]

    response = await client.get("/api/v1/me/permissions", headers=auth_headers(member))
    assert response.status_code == 200
    matrix = response.json()
    assert matrix[str(int(AppModule.meetings))] & int(Permission.view)
    assert str(int(AppModule.users)) not in matrix
