import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/chat"


async def _channel(client: AsyncClient, headers: dict, name: str = "general", **extra) -> dict:
    payload = {"name": name}
    payload.update(extra)
    response = await client.post(f"{BASE}/channels", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _post(client: AsyncClient, headers: dict, conversation_id: str, body: str, **extra) -> dict:
    payload = {"body_html": body}
    payload.update(extra)
    response = await client.post(f"{BASE}/conversations/{conversation_id}/messages", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_channel_makes_creator_admin(client: AsyncClient, admin, member, auth_headers):
    channel = await _channel(client, auth_headers(admin), member_ids=[member.id, "ghost", admin.id])
    assert channel["type"] == "channel"
    assert channel["member_count"] == 2
    roles = {m["user_id"]: m["role"] for m in channel["members"]}
    assert roles == {admin.id: "admin", member.id: "member"}


async def test_blank_channel_name_rejected(client: AsyncClient, admin, auth_headers):
    response = await client.post(f"{BASE}/channels", json={"name": "  "}, headers=auth_headers(admin))
    assert response.status_code == 400


async def test_direct_conversation_is_reused(client: AsyncClient, admin, member, auth_headers):
    first = await client.post(f"{BASE}/direct", json={"user_id": member.id}, headers=auth_headers(admin))
    assert first.status_code == 200
    assert first.json()["name"] == "Bob Member"

    second = await client.post(f"{BASE}/direct", json={"user_id": admin.id}, headers=auth_headers(member))
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["name"] == "Ada Admin"

    response = await client.post(f"{BASE}/direct", json={"user_id": admin.id}, headers=auth_headers(admin))
    assert response.status_code == 400


async def test_join_public_but_not_private_channels(client: AsyncClient, admin, member, auth_headers):
    public = await _channel(client, auth_headers(admin), "town-hall")
    private = await _channel(client, auth_headers(admin), "exec", is_private=True)

    response = await client.post(f"{BASE}/conversations/{public['id']}/join", headers=auth_headers(member))
    assert response.status_code == 204
    response = await client.post(f"{BASE}/conversations/{private['id']}/join", headers=auth_headers(member))
    assert response.status_code == 401

    conversations = (await client.get(f"{BASE}/conversations", headers=auth_headers(member))).json()
    assert [c["name"] for c in conversations] == ["town-hall"]

    response = await client.post(f"{BASE}/conversations/{public['id']}/leave", headers=auth_headers(member))
    assert response.status_code == 204
    assert (await client.get(f"{BASE}/conversations", headers=auth_headers(member))).json() == []


async def test_messages_unread_counts_and_read_marker(client: AsyncClient, admin, member, auth_headers):
    channel = await _channel(client, auth_headers(admin), member_ids=[member.id])
    await _post(client, auth_headers(admin), channel["id"], "<p>Hello</p>")
    await _post(client, auth_headers(admin), channel["id"], "<p>Agenda is up</p>")

    summary = (await client.get(f"{BASE}/conversations", headers=auth_headers(member))).json()[0]
    assert summary["unread_count"] == 2
    assert summary["last_message_at"] is not None

    response = await client.post(f"{BASE}/conversations/{channel['id']}/read", headers=auth_headers(member))
    assert response.status_code == 204
    summary = (await client.get(f"{BASE}/conversations", headers=auth_headers(member))).json()[0]
    assert summary["unread_count"] == 0

    history = (await client.get(f"{BASE}/conversations/{channel['id']}/messages", headers=auth_headers(member))).json()
    assert [m["body_html"] for m in history] == ["<p>Hello</p>", "<p>Agenda is up</p>"]


async def test_non_member_cannot_read_or_post(client: AsyncClient, admin, member, auth_headers):
    channel = await _channel(client, auth_headers(admin))
    response = await client.get(f"{BASE}/conversations/{channel['id']}/messages", headers=auth_headers(member))
    assert response.status_code == 401
    response = await client.post(
        f"{BASE}/conversations/{channel['id']}/messages", json={"body_html": "hi"}, headers=auth_headers(member)
    )
    assert response.status_code == 401


async def test_threads_edit_and_delete(client: AsyncClient, admin, member, auth_headers):
    channel = await _channel(client, auth_headers(admin), member_ids=[member.id])
    root = await _post(client, auth_headers(admin), channel["id"], "Root")
    reply = await _post(client, auth_headers(member), channel["id"], "Reply", thread_root_id=root["id"])

    history = (await client.get(f"{BASE}/conversations/{channel['id']}/messages", headers=auth_headers(admin))).json()
    assert [m["id"] for m in history] == [root["id"]]
    assert history[0]["thread_reply_count"] == 1

    replies = (
        await client.get(
            f"{BASE}/conversations/{channel['id']}/messages",
            params={"thread_root_id": root["id"]},
            headers=auth_headers(admin),
        )
    ).json()
    assert [m["id"] for m in replies] == [reply["id"]]

    response = await client.put(f"{BASE}/messages/{reply['id']}", json={"body_html": "Edited"}, headers=auth_headers(admin))
    assert response.status_code == 401
    response = await client.put(
        f"{BASE}/messages/{reply['id']}", json={"body_html": "Edited"}, headers=auth_headers(member)
    )
    assert response.json()["body_html"] == "Edited"
    assert response.json()["edited_at"] is not None

    response = await client.delete(f"{BASE}/messages/{reply['id']}", headers=auth_headers(member))
    assert response.status_code == 204
    response = await client.put(
        f"{BASE}/messages/{reply['id']}", json={"body_html": "Again"}, headers=auth_headers(member)
    )
    assert response.status_code == 404


async def test_reply_to_root_in_other_conversation_rejected(client: AsyncClient, admin, auth_headers):
    first = await _channel(client, auth_headers(admin), "one")
    second = await _channel(client, auth_headers(admin), "two")
    root = await _post(client, auth_headers(admin), first["id"], "Root")
    response = await client.post(
        f"{BASE}/conversations/{second['id']}/messages",
        json={"body_html": "Reply", "thread_root_id": root["id"]},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400


async def test_reactions(client: AsyncClient, admin, member, auth_headers):
    channel = await _channel(client, auth_headers(admin), member_ids=[member.id])
    message = await _post(client, auth_headers(admin), channel["id"], "Vote tomorrow")
    url = f"{BASE}/messages/{message['id']}/reactions"

    await client.post(url, json={"emoji": "👍"}, headers=auth_headers(admin))
    await client.post(url, json={"emoji": "👍"}, headers=auth_headers(admin))
    response = await client.post(url, json={"emoji": "👍"}, headers=auth_headers(member))
    assert response.json() == [{"emoji": "👍", "count": 2, "reacted_by_me": True}]

    response = await client.delete(url, params={"emoji": "👍"}, headers=auth_headers(member))
    assert response.json() == [{"emoji": "👍", "count": 1, "reacted_by_me": False}]


async def test_upload_message_with_attachment(client: AsyncClient, admin, auth_headers):
    channel = await _channel(client, auth_headers(admin))
    response = await client.post(
        f"{BASE}/conversations/{channel['id']}/messages/upload",
        data={"body_html": "See attached"},
        files=[("files", ("notes.txt", b"notes", "text/plain"))],
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    message = response.json()
    assert message["attachments"][0]["file_name"] == "notes.txt"
    assert message["attachments"][0]["file_size"] == 5


async def test_search_only_covers_my_conversations(client: AsyncClient, admin, member, auth_headers):
    mine = await _channel(client, auth_headers(member), "mine")
    theirs = await _channel(client, auth_headers(admin), "theirs")
    await _post(client, auth_headers(member), mine["id"], "quarterly numbers")
    await _post(client, auth_headers(admin), theirs["id"], "quarterly secrets")

    results = (await client.get(f"{BASE}/search", params={"q": "quarterly"}, headers=auth_headers(member))).json()
    assert [m["body_html"] for m in results] == ["quarterly numbers"]

    response = await client.get(f"{BASE}/search", params={"q": "q"}, headers=auth_headers(member))
    assert response.status_code == 400


async def test_typing_requires_membership(client: AsyncClient, admin, member, auth_headers):
    channel = await _channel(client, auth_headers(admin))
    response = await client.post(
        f"{BASE}/conversations/{channel['id']}/typing", json={"is_typing": True}, headers=auth_headers(admin)
    )
    assert response.status_code == 204
    response = await client.post(
        f"{BASE}/conversations/{channel['id']}/typing", json={"is_typing": True}, headers=auth_headers(member)
    )
    assert response.status_code == 401
