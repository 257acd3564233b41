# tests/api/v1/test_api.py

import pytest
from datetime import date, timedelta
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from fastapi import status

from gymledger.main import app
from gymledger.db.session import get_db
from tests.conftest import GYM_ID

pytestmark = pytest.mark.asyncio

@pytest.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

@pytest.fixture
def headers():
    return {"X-Gym-Id": GYM_ID}

def _member_payload(phone: str, joining_date: date) -> dict:
    return {
        "full_name": "Asha Rao",
        "phone": phone,
        "joining_date": joining_date.isoformat(),
        "plan_type": "monthly",
        "plan_amount": "1000",
    }

async def test_member_payment_lifecycle(client: AsyncClient, headers):
    joining = date.today() - timedelta(days=3)
    response = await client.post("/api/v1/members", json=_member_payload("9111100001", joining), headers=headers)
    assert response.status_code == status.HTTP_201_CREATED
    member = response.json()["data"]
    assert member["status"] == "active"

    response = await client.get(f"/api/v1/members/{member['id']}", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    payments = response.json()["data"]["payments"]
    assert len(payments) == 1

    # deleting the only payment deactivates, never deletes
    response = await client.delete(f"/api/v1/payments/{payments[0]['id']}", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"] == {
        "member_deleted": False,
        "member_deactivated": True,
        "member_id": member["id"],
        "reverted_due_date": None,
    }

    response = await client.get("/api/v1/members/by-phone/9111100001", headers=headers)
    assert response.json()["data"]["member"]["status"] == "inactive"

    response = await client.post(f"/api/v1/members/{member['id']}/rejoin", headers=headers, json={
        "plan_type": "monthly", "start_date": date.today().isoformat(), "paid_amount": "1000"
    })
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["period"]["period_number"] == 2

    # a second rejoin on an active member conflicts
    response = await client.post(f"/api/v1/members/{member['id']}/rejoin", headers=headers, json={
        "plan_type": "monthly", "start_date": date.today().isoformat(), "paid_amount": "1000"
    })
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["status"] == status.HTTP_409_CONFLICT

async def test_error_mapping(client: AsyncClient, headers):
    response = await client.delete("/api/v1/payments/999999", headers=headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"data": None, "msg": "Payment 999999 not found.", "status": 404}

    joining = date.today()
    await client.post("/api/v1/members", json=_member_payload("9111100002", joining), headers=headers)
    response = await client.post("/api/v1/members", json=_member_payload("9111100002", joining), headers=headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

async def test_missing_gym_header_is_rejected(client: AsyncClient):
    response = await client.get("/api/v1/plans")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

async def test_plans_calendar_and_dashboard(client: AsyncClient, headers):
    response = await client.post("/api/v1/plans", headers=headers, json={
        "name": "Quarterly", "base_duration_months": 3, "base_price": "2700"
    })
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["data"]["total_duration_months"] == 3

    response = await client.get("/api/v1/plans", headers=headers)
    assert [p["name"] for p in response.json()["data"]] == ["Quarterly"]

    today = date.today()
    await client.post("/api/v1/members", json=_member_payload("9111100003", today), headers=headers)

    response = await client.get(f"/api/v1/calendar?year={today.year}&month={today.month}", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    events = response.json()["data"]
    assert len(events) == 1
    assert events[0]["event_date"] == today.isoformat()

    response = await client.get("/api/v1/dashboard/due-today", headers=headers)
    assert response.json()["data"]["count"] == 0
    response = await client.get("/api/v1/dashboard/pending", headers=headers)
    assert response.json()["data"] == []
