import pytest
from httpx import AsyncClient

from boardmgmt.core.models.domain.enums import MessagePriority, MessageStatus

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/messages"


async def _send(client: AsyncClient, headers: dict, recipients: list, subject: str = "Budget", **extra) -> dict:
    payload = {"subject": subject, "body": "<p>Please review.</p>", "recipient_ids": recipients}
    payload.update(extra)
    response = await client.post(BASE, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_send_message_to_recipients(client: AsyncClient, admin, member, auth_headers):
    message = await _send(client, auth_headers(admin), [member.id, member.id], priority=int(MessagePriority.high))
    assert message["status"] == int(MessageStatus.sent)
    assert message["sent_at"] is not None
    assert message["sender_name"] == "Ada Admin"
    assert [r["user_id"] for r in message["recipients"]] == [member.id]
    assert message["recipients"][0]["is_read"] is False


async def test_sending_without_recipients_is_rejected(client: AsyncClient, admin, auth_headers):
    response = await client.post(BASE, json={"subject": "Hi", "recipient_ids": []}, headers=auth_headers(admin))
    assert response.status_code == 400
    assert "recipient_ids" in response.json()["error"]["details"]


async def test_inbox_and_sent_boxes(client: AsyncClient, admin, member, auth_headers):
    await _send(client, auth_headers(admin), [member.id], subject="Sent one")
    await _send(client, auth_headers(admin), [member.id], subject="Draft one", as_draft=True)

    inbox = (await client.get(BASE, params={"box": "inbox"}, headers=auth_headers(member))).json()
    assert [m["subject"] for m in inbox["items"]] == ["Sent one"]
    assert inbox["items"][0]["is_read"] is False

    sent = (await client.get(BASE, params={"box": "sent"}, headers=auth_headers(admin))).json()
    assert {m["subject"] for m in sent["items"]} == {"Sent one", "Draft one"}
    assert sent["total"] == 2

    drafts = (
        await client.get(BASE, params={"box": "sent", "status": int(MessageStatus.draft)}, headers=auth_headers(admin))
    ).json()
    assert [m["subject"] for m in drafts["items"]] == ["Draft one"]


async def test_draft_edit_then_send(client: AsyncClient, admin, member, auth_headers):
    headers = auth_headers(admin)
    draft = await _send(client, headers, [], subject="Draft", as_draft=True)
    assert draft["status"] == int(MessageStatus.draft)

    response = await client.post(f"{BASE}/{draft['id']}/send", headers=headers)
    assert response.status_code == 400

    response = await client.put(
        f"{BASE}/{draft['id']}", json={"subject": "Final", "recipient_ids": [member.id]}, headers=headers
    )
    assert response.json()["subject"] == "Final"

    response = await client.post(f"{BASE}/{draft['id']}/send", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == int(MessageStatus.sent)

    response = await client.put(f"{BASE}/{draft['id']}", json={"subject": "Too late"}, headers=headers)
    assert response.status_code == 409
    response = await client.post(f"{BASE}/{draft['id']}/send", headers=headers)
    assert response.status_code == 409


async def test_mark_read(client: AsyncClient, admin, member, outsider, auth_headers):
    message = await _send(client, auth_headers(admin), [member.id])

    response = await client.post(f"{BASE}/{message['id']}/read", headers=auth_headers(member))
    assert response.status_code == 204
    detail = (await client.get(f"{BASE}/{message['id']}", headers=auth_headers(member))).json()
    assert detail["recipients"][0]["is_read"] is True
    assert detail["recipients"][0]["read_at"] is not None

    response = await client.post(f"{BASE}/{message['id']}/read", headers=auth_headers(admin))
    assert response.status_code == 404


async def test_thread_groups_replies_by_subject(client: AsyncClient, admin, member, auth_headers):
    anchor = await _send(client, auth_headers(admin), [member.id], subject="Budget")
    await _send(client, auth_headers(member), [admin.id], subject="RE: Budget")
    await _send(client, auth_headers(member), [admin.id], subject="Something else")

    response = await client.get(f"{BASE}/{anchor['id']}/thread", headers=auth_headers(member))
    assert response.status_code == 200
    thread = response.json()
    assert thread["anchor_message_id"] == anchor["id"]
    assert [item["sender"]["name"] for item in thread["items"]] == ["Ada Admin", "Bob Member"]
    assert {p["id"] for p in thread["participants"]} == {admin.id, member.id}


async def test_attachments_and_delete(client: AsyncClient, admin, member, auth_headers):
    headers = auth_headers(admin)
    message = await _send(client, headers, [member.id])

    response = await client.post(
        f"{BASE}/{message['id']}/attachments",
        files=[("files", ("agenda.txt", b"1. Opening", "text/plain"))],
        headers=headers,
    )
    assert response.status_code == 201
    attachment = response.json()[0]
    assert attachment["file_name"] == "agenda.txt"
    assert attachment["file_size"] == 10
    assert attachment["url"].startswith("/uploads/")

    listed = (await client.get(BASE, params={"box": "sent"}, headers=headers)).json()
    assert listed["items"][0]["has_attachments"] is True

    response = await client.delete(f"{BASE}/{message['id']}", headers=headers)
    assert response.status_code == 204
    response = await client.get(f"{BASE}/{message['id']}", headers=headers)
    assert response.status_code == 404


async def test_outsider_cannot_use_messages(client: AsyncClient, outsider, auth_headers):
    response = await client.get(BASE, headers=auth_headers(outsider))
    assert response.status_code == 401
