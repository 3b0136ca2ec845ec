import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/departments"


async def test_list_seeded_departments(client: AsyncClient, admin, auth_headers):
    response = await client.get(BASE, headers=auth_headers(admin))
    assert response.status_code == 200
    names = {d["name"] for d in response.json()}
    assert {"Executive", "Finance", "Legal"} <= names

    response = await client.get(BASE, params={"q": "fin"}, headers=auth_headers(admin))
    assert [d["name"] for d in response.json()] == ["Finance"]


async def test_member_cannot_view_departments(client: AsyncClient, member, auth_headers):
    response = await client.get(BASE, headers=auth_headers(member))
    assert response.status_code == 401


async def test_create_update_department(client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    response = await client.post(BASE, json={"name": "  Research  ", "description": "R&D"}, headers=headers)
    assert response.status_code == 201
    department = response.json()
    assert department["name"] == "Research"
    assert department["user_count"] == 0

    response = await client.put(f"{BASE}/{department['id']}", json={"is_active": False}, headers=headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    assert response.json()["name"] == "Research"

    response = await client.get(BASE, params={"active_only": True}, headers=headers)
    assert "Research" not in {d["name"] for d in response.json()}


async def test_duplicate_department_name_rejected(client: AsyncClient, admin, auth_headers):
    response = await client.post(BASE, json={"name": "Finance"}, headers=auth_headers(admin))
    assert response.status_code == 400
    assert "name" in response.json()["error"]["details"]


async def test_blank_department_name_rejected(client: AsyncClient, admin, auth_headers):
    response = await client.post(BASE, json={"name": "   "}, headers=auth_headers(admin))
    assert response.status_code == 400


async def test_delete_department_with_users_conflicts(client: AsyncClient, admin, member, auth_headers):
    headers = auth_headers(admin)
    department_id = (await client.post(BASE, json={"name": "Audit"}, headers=headers)).json()["id"]
    await client.patch(f"/api/v1/users/{member.id}", json={"department_id": department_id}, headers=headers)

    response = await client.delete(f"{BASE}/{department_id}", headers=headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "invalid_operation"

    await client.patch(f"/api/v1/users/{member.id}", json={"department_id": ""}, headers=headers)
    response = await client.delete(f"{BASE}/{department_id}", headers=headers)
    assert response.status_code == 204


async def test_delete_unknown_department(client: AsyncClient, admin, auth_headers):
    response = await client.delete(f"{BASE}/missing", headers=auth_headers(admin))
    assert response.status_code == 404
