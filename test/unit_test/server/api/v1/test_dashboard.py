from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from boardmgmt.core.models.domain.enums import VoteEligibility

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/dashboard"


async def test_stats_for_member(client: AsyncClient, admin, member, auth_headers):
    headers = auth_headers(admin)
    soon = datetime.now(timezone.utc) + timedelta(days=3)
    await client.post("/api/v1/meetings", json={"title": "Board", "scheduled_at": soon.isoformat()}, headers=headers)
    await client.post(
        "/api/v1/documents", files=[("files", ("a.pdf", b"%PDF", "application/pdf"))], headers=headers
    )
    await client.post("/api/v1/votes", json={"title": "Poll", "eligibility": int(VoteEligibility.public)}, headers=headers)
    await client.post(
        "/api/v1/messages", json={"subject": "Hello", "recipient_ids": [member.id]}, headers=headers
    )

    response = await client.get(f"{BASE}/stats", headers=auth_headers(member))
    assert response.status_code == 200
    assert response.json() == {
        "upcoming_meetings": 1,
        "active_documents": 1,
        "pending_votes": 1,
        "unread_messages": 1,
    }


async def test_recent_widgets(client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    soon = datetime.now(timezone.utc) + timedelta(days=3)
    meeting = (
        await client.post(
            "/api/v1/meetings",
            json={"title": "Board", "scheduled_at": soon.isoformat(), "attendees": ["Jane", "John"]},
            headers=headers,
        )
    ).json()
    await client.post(
        "/api/v1/documents", files=[("files", ("a.pdf", b"%PDF", "application/pdf"))], headers=headers
    )

    meetings = (await client.get(f"{BASE}/recent-meetings", headers=headers)).json()
    assert meetings[0]["id"] == meeting["id"]
    assert meetings[0]["attendee_count"] == 2

    documents = (await client.get(f"{BASE}/recent-documents", headers=headers)).json()
    assert [d["original_name"] for d in documents] == ["a.pdf"]

    activity = (await client.get(f"{BASE}/recent-activity", headers=headers)).json()
    assert [item["type"] for item in activity] == ["document", "meeting"]


async def test_dashboard_requires_permission(client: AsyncClient, outsider, auth_headers):
    response = await client.get(f"{BASE}/stats", headers=auth_headers(outsider))
    assert response.status_code == 401


async def test_meeting_drill_down_pages_upcoming_meetings(client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    now = datetime.now(timezone.utc)
    for days, title in [(1, "First"), (2, "Second"), (3, "Third"), (-2, "Past")]:
        when = (now + timedelta(days=days)).isoformat()
        await client.post("/api/v1/meetings", json={"title": title, "scheduled_at": when}, headers=headers)

    first = (await client.get(f"{BASE}/stats/detail?kind=meetings&page_size=2", headers=headers)).json()
    second = (await client.get(f"{BASE}/stats/detail?kind=meetings&page=2&page_size=2", headers=headers)).json()

    assert first["total"] == 3
    assert [item["title"] for item in first["items"]] == ["First", "Second"]
    assert [item["title"] for item in second["items"]] == ["Third"]
    assert first["items"][0]["status"] == "Upcoming"


async def test_document_drill_down_reports_file_kind(client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    await client.post(
        "/api/v1/documents", files=[("files", ("minutes.pdf", b"%PDF", "application/pdf"))], headers=headers
    )

    page = (await client.get(f"{BASE}/stats/detail?kind=documents", headers=headers)).json()

    assert page["total"] == 1
    [item] = page["items"]
    assert (item["title"], item["status"]) == ("minutes.pdf", "pdf")


async def test_vote_and_message_drill_down_follow_the_counters(client: AsyncClient, admin, member, auth_headers):
    headers = auth_headers(admin)
    await client.post("/api/v1/votes", json={"title": "Budget", "eligibility": int(VoteEligibility.public)}, headers=headers)
    await client.post(
        "/api/v1/messages", json={"subject": "Agenda", "recipient_ids": [member.id]}, headers=headers
    )

    votes = (await client.get(f"{BASE}/stats/detail?kind=votes", headers=auth_headers(member))).json()
    messages = (await client.get(f"{BASE}/stats/detail?kind=messages", headers=auth_headers(member))).json()

    assert [item["title"] for item in votes["items"]] == ["Budget"]
    assert messages["total"] == 1
    assert messages["items"][0]["title"] == "Agenda"
    assert messages["items"][0]["subtitle"] == "Ada Admin"


async def test_unknown_drill_down_kind_is_rejected(client: AsyncClient, admin, auth_headers):
    response = await client.get(f"{BASE}/stats/detail?kind=reports", headers=auth_headers(admin))
    assert response.status_code == 400
    assert "kind" in response.json()["error"]["details"]
