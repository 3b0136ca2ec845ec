from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from boardmgmt.core.models.domain.enums import VoteChoice, VoteEligibility, VoteType

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/votes"


def _poll(title: str = "Approve budget", **extra) -> dict:
    payload = {"title": title, "eligibility": int(VoteEligibility.public)}
    payload.update(extra)
    return payload


async def _create(client: AsyncClient, headers: dict, **payload) -> dict:
    response = await client.post(BASE, json=_poll(**payload), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_poll_defaults(client: AsyncClient, admin, auth_headers):
    poll = await _create(client, auth_headers(admin))
    assert poll["type"] == int(VoteType.yes_no)
    assert poll["is_open"] is True
    assert poll["can_vote"] is True
    assert poll["results"]["total"] == 0
    deadline = datetime.fromisoformat(poll["deadline"].replace("Z", "+00:00"))
    assert timedelta(days=2) < deadline - datetime.now(timezone.utc) <= timedelta(days=3)


async def test_multiple_choice_needs_two_distinct_options(client: AsyncClient, admin, auth_headers):
    response = await client.post(
        BASE,
        json=_poll(type=int(VoteType.multiple_choice), options=["Blue", " blue ", ""]),
        headers=auth_headers(admin),
    )
    assert response.status_code == 400
    assert "options" in response.json()["error"]["details"]


async def test_attendee_poll_requires_meeting(client: AsyncClient, admin, auth_headers):
    response = await client.post(
        BASE, json=_poll(eligibility=int(VoteEligibility.meeting_attendees)), headers=auth_headers(admin)
    )
    assert response.status_code == 400
    assert "meeting_id" in response.json()["error"]["details"]


async def test_observer_cannot_create_poll(client: AsyncClient, make_user, auth_headers):
    observer = await make_user("observer@board.local", roles=["Observer"])
    response = await client.post(BASE, json=_poll(), headers=auth_headers(observer))
    assert response.status_code == 401


async def test_ballot_is_replaced_on_revote(client: AsyncClient, admin, member, auth_headers):
    poll = await _create(client, auth_headers(admin))
    url = f"{BASE}/{poll['id']}/ballots"

    response = await client.post(url, json={"choice": int(VoteChoice.yes)}, headers=auth_headers(member))
    assert response.status_code == 200
    assert response.json()["results"]["yes"] == 1

    response = await client.post(url, json={"choice": int(VoteChoice.no)}, headers=auth_headers(member))
    summary = response.json()
    assert summary["results"] == {"total": 1, "yes": 0, "no": 1, "abstain": 0, "options": []}
    assert summary["already_voted"] is True
    assert summary["my_choice"] == int(VoteChoice.no)

    detail = (await client.get(f"{BASE}/{poll['id']}", headers=auth_headers(member))).json()
    assert detail["can_vote"] is False
    assert detail["individual_votes"][0]["user_name"] == "Bob Member"
    assert detail["individual_votes"][0]["label"] == "No"


async def test_abstain_rejected_when_not_allowed(client: AsyncClient, admin, auth_headers):
    poll = await _create(client, auth_headers(admin), allow_abstain=False)
    response = await client.post(
        f"{BASE}/{poll['id']}/ballots", json={"choice": int(VoteChoice.abstain)}, headers=auth_headers(admin)
    )
    assert response.status_code == 400


async def test_multiple_choice_tally(client: AsyncClient, admin, member, auth_headers):
    poll = await _create(
        client, auth_headers(admin), type=int(VoteType.multiple_choice), options=["Blue", "Green"], anonymous=True
    )
    blue, green = poll["options"]
    url = f"{BASE}/{poll['id']}/ballots"
    await client.post(url, json={"option_id": green["id"]}, headers=auth_headers(admin))
    response = await client.post(url, json={"option_id": green["id"]}, headers=auth_headers(member))

    options = {o["text"]: o["count"] for o in response.json()["results"]["options"]}
    assert options == {"Blue": 0, "Green": 2}

    detail = (await client.get(f"{BASE}/{poll['id']}", headers=auth_headers(admin))).json()
    assert detail["individual_votes"] == []

    response = await client.post(url, json={"option_id": "bogus"}, headers=auth_headers(member))
    assert response.status_code == 400


async def test_closed_poll_rejects_ballots(client: AsyncClient, admin, member, auth_headers):
    past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
    poll = await _create(client, auth_headers(admin), deadline=past)

    response = await client.post(
        f"{BASE}/{poll['id']}/ballots", json={"choice": int(VoteChoice.yes)}, headers=auth_headers(member)
    )
    assert response.status_code == 409
    assert response.json()["error"]["message"] == "Voting closed"

    recent = (await client.get(f"{BASE}/recent", headers=auth_headers(member))).json()
    assert [p["id"] for p in recent] == [poll["id"]]
    assert (await client.get(f"{BASE}/active", headers=auth_headers(member))).json() == []


async def test_specific_user_poll_eligibility(client: AsyncClient, admin, member, outsider, auth_headers):
    poll = await _create(
        client,
        auth_headers(admin),
        eligibility=int(VoteEligibility.specific_users),
        specific_user_ids=[member.id],
    )
    url = f"{BASE}/{poll['id']}/ballots"

    response = await client.post(url, json={"choice": int(VoteChoice.yes)}, headers=auth_headers(outsider))
    assert response.status_code == 401
    response = await client.post(url, json={"choice": int(VoteChoice.yes)}, headers=auth_headers(member))
    assert response.status_code == 200

    active = (await client.get(f"{BASE}/active", headers=auth_headers(outsider))).json()
    assert active == []
    active = (await client.get(f"{BASE}/active", headers=auth_headers(member))).json()
    assert [p["id"] for p in active] == [poll["id"]]


async def test_anonymous_caller_sees_public_polls_only(client: AsyncClient, admin, auth_headers):
    public = await _create(client, auth_headers(admin), title="Public")
    private = await _create(
        client, auth_headers(admin), title="Private", eligibility=int(VoteEligibility.specific_users)
    )

    active = (await client.get(f"{BASE}/active")).json()
    assert [p["title"] for p in active] == ["Public"]

    response = await client.get(f"{BASE}/{public['id']}")
    assert response.status_code == 200
    assert response.json()["can_vote"] is False
    response = await client.get(f"{BASE}/{private['id']}")
    assert response.status_code == 404

    response = await client.post(f"{BASE}/{public['id']}/ballots", json={"choice": int(VoteChoice.yes)})
    assert response.status_code == 401


async def test_delete_poll(client: AsyncClient, admin, member, auth_headers):
    poll = await _create(client, auth_headers(admin))
    await client.post(f"{BASE}/{poll['id']}/ballots", json={"choice": 1}, headers=auth_headers(member))

    response = await client.delete(f"{BASE}/{poll['id']}", headers=auth_headers(member))
    assert response.status_code == 401
    response = await client.delete(f"{BASE}/{poll['id']}", headers=auth_headers(admin))
    assert response.status_code == 204
    response = await client.get(f"{BASE}/{poll['id']}", headers=auth_headers(admin))
    assert response.status_code == 404
