# tests/test_preferences_api.py
from __future__ import annotations

import pytest

from scaleflow.core.roles import Role


def _payload(**overrides) -> dict:
    data = {
        "start_date": "2026-11-02",
        "end_date": "2026-11-06",
        "preference_type": "unavailable",
        "notes": "Holiday",
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_employee_submits_and_edits_pending_preference(client, db, make_company, make_user, headers):
    company = await make_company()
    employee = await make_user(role=Role.EMPLOYEE, company=company)
    await db.commit()

    r = await client.post("/api/v1/preferences", json=_payload(), headers=headers(employee))
    assert r.status_code == 201
    pref = r.json()
    assert pref["status"] == "pending"
    assert pref["employee_id"] == str(employee.id)

    r = await client.patch(
        f"/api/v1/preferences/{pref['id']}",
        json={"preference_type": "prefers_morning"},
        headers=headers(employee),
    )
    assert r.status_code == 200
    assert r.json()["preference_type"] == "prefers_morning"

    r = await client.patch(
        f"/api/v1/preferences/{pref['id']}",
        json={"end_date": "2026-11-01"},
        headers=headers(employee),
    )
    assert r.status_code == 422

    r = await client.get("/api/v1/preferences/mine", headers=headers(employee))
    assert [p["id"] for p in r.json()] == [pref["id"]]


@pytest.mark.asyncio
async def test_invalid_dates_and_types_are_rejected(client, db, make_company, make_user, headers):
    company = await make_company()
    employee = await make_user(role=Role.EMPLOYEE, company=company)
    await db.commit()

    r = await client.post("/api/v1/preferences", json=_payload(end_date="2026-11-01"), headers=headers(employee))
    assert r.status_code == 422

    r = await client.post("/api/v1/preferences", json=_payload(preference_type="sleep"), headers=headers(employee))
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_schedule_manager_approves_and_locks(client, db, make_company, make_user, headers):
    company = await make_company()
    employee = await make_user(role=Role.EMPLOYEE, company=company)
    scheduler = await make_user(role=Role.SCHEDULE_MANAGER, company=company)
    await db.commit()

    r = await client.post("/api/v1/preferences", json=_payload(), headers=headers(employee))
    pref_id = r.json()["id"]

    r = await client.get("/api/v1/preferences", params={"status": "pending"}, headers=headers(scheduler))
    assert [p["id"] for p in r.json()] == [pref_id]

    r = await client.post(f"/api/v1/preferences/{pref_id}/approve", headers=headers(scheduler))
    assert r.status_code == 200
    assert r.json()["status"] == "approved"
    assert r.json()["reviewed_by"] == str(scheduler.id)

    r = await client.post(f"/api/v1/preferences/{pref_id}/reject", headers=headers(scheduler))
    assert r.status_code == 409

    r = await client.delete(f"/api/v1/preferences/{pref_id}", headers=headers(employee))
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_review_is_company_scoped(client, db, make_company, make_user, headers):
    company = await make_company()
    other = await make_company()
    employee = await make_user(role=Role.EMPLOYEE, company=company)
    foreign_manager = await make_user(role=Role.MANAGER, company=other)
    operator = await make_user(role=Role.OPERATOR, company=company)
    await db.commit()

    r = await client.post("/api/v1/preferences", json=_payload(), headers=headers(employee))
    pref_id = r.json()["id"]

    r = await client.post(f"/api/v1/preferences/{pref_id}/approve", headers=headers(foreign_manager))
    assert r.status_code == 404

    r = await client.post(f"/api/v1/preferences/{pref_id}/approve", headers=headers(operator))
    assert r.status_code == 403

    r = await client.get("/api/v1/preferences", headers=headers(operator))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_colleague_cannot_touch_preference(client, db, make_company, make_user, headers):
    company = await make_company()
    owner = await make_user(role=Role.EMPLOYEE, company=company)
    colleague = await make_user(role=Role.EMPLOYEE, company=company)
    await db.commit()

    r = await client.post("/api/v1/preferences", json=_payload(), headers=headers(owner))
    pref_id = r.json()["id"]

    r = await client.delete(f"/api/v1/preferences/{pref_id}", headers=headers(colleague))
    assert r.status_code == 404

    r = await client.delete(f"/api/v1/preferences/{pref_id}", headers=headers(owner))
    assert r.status_code == 204


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["start_date", "end_date", "preference_type"])
async def test_update_rejects_clearing_required_fields(client, db, make_company, make_user, headers, field):
    company = await make_company()
    employee = await make_user(role=Role.EMPLOYEE, company=company)
    await db.commit()

    r = await client.post("/api/v1/preferences", json=_payload(), headers=headers(employee))
    pref_id = r.json()["id"]

    r = await client.patch(f"/api/v1/preferences/{pref_id}", json={field: None}, headers=headers(employee))
    assert r.status_code == 422
