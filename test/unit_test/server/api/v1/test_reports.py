from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/reports"


async def test_generate_custom_report(client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    payload = {
        "type": "attendance",
        "period": "custom",
        "start": datetime(2026, 1, 1, tzinfo=timezone.utc).isoformat(),
        "end": datetime(2026, 1, 31, tzinfo=timezone.utc).isoformat(),
    }
    response = await client.post(f"{BASE}/generate", json=payload, headers=headers)
    assert response.status_code == 201
    report_id = response.json()["id"]

    recent = (await client.get(f"{BASE}/recent", headers=headers)).json()
    assert recent[0]["id"] == report_id
    assert recent[0]["name"] == "Attendance Report - 2026-01-01 to 2026-01-31"
    assert recent[0]["period_label"] == "2026-01-01 to 2026-01-31"
    assert recent[0]["file_url"] == f"http://localhost/uploads/reports/{report_id}.html"

    response = await client.get(f"/uploads/reports/{report_id}.html")
    assert response.status_code == 200
    assert "ATTENDANCE Report" in response.text


async def test_member_can_view_but_not_generate(client: AsyncClient, member, auth_headers):
    response = await client.get(f"{BASE}/recent", headers=auth_headers(member))
    assert response.status_code == 200
    response = await client.post(f"{BASE}/generate", json={}, headers=auth_headers(member))
    assert response.status_code == 401


async def test_reports_dashboard_month_buckets(client: AsyncClient, admin, auth_headers):
    response = await client.get(f"{BASE}/dashboard", params={"months": 3}, headers=auth_headers(admin))
    assert response.status_code == 200
    dashboard = response.json()
    assert len(dashboard["months"]) == 3
    assert dashboard["months"][-1] == f"{datetime.now(timezone.utc):%Y-%m}"
    assert [row["month"] for row in dashboard["attendance"]] == dashboard["months"]
    assert dashboard["performance"]["meetings_scheduled"] == 0
    assert dashboard["voting"][0]["participation_rate"] == 0.0


async def test_reports_dashboard_rejects_out_of_range_months(client: AsyncClient, admin, auth_headers):
    response = await client.get(f"{BASE}/dashboard", params={"months": 0}, headers=auth_headers(admin))
    assert response.status_code == 400
