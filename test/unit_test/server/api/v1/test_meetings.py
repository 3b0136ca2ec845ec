from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from boardmgmt.core.models.domain.enums import MeetingStatus

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/meetings"

VTT = """WEBVTT

00:00:01.000 --> 00:00:04.500
<v Bob Member>Good morning everyone.

00:00:05.000 --> 00:00:07.000
[Guest] Thanks for having me.
"""


def _meeting(title: str = "Q3 Board Meeting", days: int = 7, **extra) -> dict:
    start = datetime.now(timezone.utc) + timedelta(days=days)
    payload = {
        "title": title,
        "scheduled_at": start.isoformat(),
        "end_at": (start + timedelta(hours=2)).isoformat(),
        "location": "Boardroom",
    }
    payload.update(extra)
    return payload


async def test_create_meeting_with_linked_attendees(client: AsyncClient, admin, member, auth_headers):
    response = await client.post(
        BASE, json=_meeting(attendee_user_ids=[member.id, member.id, "ghost"]), headers=auth_headers(admin)
    )
    assert response.status_code == 201
    meeting = response.json()
    assert meeting["title"] == "Q3 Board Meeting"
    assert meeting["attendee_count"] == 1
    assert meeting["attendees"][0]["user_id"] == member.id
    assert meeting["attendees"][0]["name"] == "Bob Member"
    assert meeting["attendees"][0]["is_confirmed"] is False


async def test_create_meeting_parses_free_text_attendees(client: AsyncClient, admin, auth_headers):
    response = await client.post(
        BASE, json=_meeting(attendees=["Jane Doe (Chair)", "John Roe", "  "], location=None), headers=auth_headers(admin)
    )
    meeting = response.json()
    assert meeting["location"] == "TBD"
    assert [(a["name"], a["role"]) for a in meeting["attendees"]] == [("Jane Doe", "Chair"), ("John Roe", None)]


async def test_create_meeting_validation(client: AsyncClient, admin, auth_headers):
    start = datetime.now(timezone.utc)
    payload = {
        "title": "  ",
        "scheduled_at": start.isoformat(),
        "end_at": (start - timedelta(hours=1)).isoformat(),
        "external_calendar": "Outlook",
    }
    response = await client.post(BASE, json=payload, headers=auth_headers(admin))
    assert response.status_code == 400
    details = response.json()["error"]["details"]
    assert {"title", "end_at", "external_calendar"} <= set(details)


async def test_member_can_view_but_not_create(client: AsyncClient, admin, member, auth_headers):
    await client.post(BASE, json=_meeting(), headers=auth_headers(admin))

    response = await client.get(BASE, headers=auth_headers(member))
    assert response.status_code == 200
    assert len(response.json()) == 1

    response = await client.post(BASE, json=_meeting(), headers=auth_headers(member))
    assert response.status_code == 401


async def test_list_filters_and_select_list(client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    await client.post(BASE, json=_meeting("Later", days=10), headers=headers)
    await client.post(BASE, json=_meeting("Sooner", days=2, status=int(MeetingStatus.completed)), headers=headers)

    response = await client.get(BASE, headers=headers)
    assert [m["title"] for m in response.json()] == ["Sooner", "Later"]

    response = await client.get(BASE, params={"status": int(MeetingStatus.completed)}, headers=headers)
    assert [m["title"] for m in response.json()] == ["Sooner"]

    response = await client.get(f"{BASE}/select-list", headers=headers)
    assert [m["title"] for m in response.json()] == ["Later", "Sooner"]


async def test_update_and_delete_meeting(client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    meeting_id = (await client.post(BASE, json=_meeting(attendees=["Jane"]), headers=headers)).json()["id"]

    response = await client.put(f"{BASE}/{meeting_id}", json=_meeting("Renamed", attendees=[]), headers=headers)
    assert response.status_code == 200
    assert response.json()["title"] == "Renamed"
    assert response.json()["attendees"] == []

    response = await client.delete(f"{BASE}/{meeting_id}", headers=headers)
    assert response.status_code == 204
    response = await client.get(f"{BASE}/{meeting_id}", headers=headers)
    assert response.status_code == 404


async def test_attendee_update_detects_stale_row_version(client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    meeting = (await client.post(BASE, json=_meeting(attendees=["Jane Doe"]), headers=headers)).json()
    attendee = meeting["attendees"][0]
    url = f"{BASE}/{meeting['id']}/attendees/{attendee['id']}"

    response = await client.patch(url, json={"row_version": attendee["row_version"], "is_confirmed": True}, headers=headers)
    assert response.status_code == 200
    updated = response.json()
    assert updated["is_confirmed"] is True
    assert updated["row_version"] == attendee["row_version"] + 1

    response = await client.patch(url, json={"row_version": attendee["row_version"], "is_required": False}, headers=headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "concurrency_conflict"


async def test_agenda_items(client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    meeting_id = (await client.post(BASE, json=_meeting(), headers=headers)).json()["id"]
    url = f"{BASE}/{meeting_id}/agenda-items"

    first = await client.post(url, json={"title": "Opening"}, headers=headers)
    second = await client.post(url, json={"title": "Budget", "description": "FY26"}, headers=headers)
    assert first.status_code == 201
    assert second.json()["order"] == first.json()["order"] + 1

    response = await client.get(url, headers=headers)
    assert [item["title"] for item in response.json()] == ["Opening", "Budget"]

    response = await client.delete(f"{url}/{first.json()['id']}", headers=headers)
    assert response.status_code == 204
    assert [item["title"] for item in (await client.get(url, headers=headers)).json()] == ["Budget"]

    response = await client.post(url, json={"title": " "}, headers=headers)
    assert response.status_code == 400


async def test_transcript_ingest_maps_speakers(client: AsyncClient, admin, member, auth_headers):
    headers = auth_headers(admin)
    member_id = member.id
    meeting_id = (await client.post(BASE, json=_meeting(attendee_user_ids=[member_id]), headers=headers)).json()["id"]
    url = f"{BASE}/{meeting_id}/transcripts"
    payload = {"provider": "Zoom", "provider_transcript_id": "rec-1", "vtt": VTT}

    response = await client.post(url, json=payload, headers=headers)
    assert response.status_code == 201
    utterances = response.json()["utterances"]
    assert [(u["speaker_name"], u["user_id"]) for u in utterances] == [("Bob Member", member_id), ("Guest", None)]
    assert utterances[0]["start_seconds"] == 1.0
    assert utterances[0]["end_seconds"] == 4.5

    # Re-ingesting the same recording replaces its utterances
    await client.post(url, json=payload, headers=headers)
    transcripts = (await client.get(url, headers=headers)).json()
    assert len(transcripts) == 1
    assert len(transcripts[0]["utterances"]) == 2


async def test_transcript_rejects_unknown_provider(client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    meeting_id = (await client.post(BASE, json=_meeting(), headers=headers)).json()["id"]
    response = await client.post(
        f"{BASE}/{meeting_id}/transcripts",
        json={"provider": "Skype", "provider_transcript_id": "x", "vtt": VTT},
        headers=headers,
    )
    assert response.status_code == 400
    assert "provider" in response.json()["error"]["details"]
