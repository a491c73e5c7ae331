# tests/test_shift_templates_api.py
from __future__ import annotations

import pytest

from scaleflow.core.roles import Role


@pytest.mark.asyncio
async def test_template_crud(client, db, make_company, make_user, headers):
    company = await make_company()
    scheduler = await make_user(role=Role.SCHEDULE_MANAGER, company=company)
    await db.commit()

    r = await client.post(
        "/api/v1/shift-templates",
        json={"name": " Early ", "duration_hours": 8, "default_start_time": "06:00", "role": "staff"},
        headers=headers(scheduler),
    )
    assert r.status_code == 201
    template = r.json()
    assert template["name"] == "Early"
    assert template["role"] == "staff"

    r = await client.patch(
        f"/api/v1/shift-templates/{template['id']}",
        json={"default_start_time": "07:30"},
        headers=headers(scheduler),
    )
    assert r.json()["default_start_time"] == "07:30"

    r = await client.get("/api/v1/shift-templates", headers=headers(scheduler))
    assert [t["id"] for t in r.json()] == [template["id"]]

    r = await client.delete(f"/api/v1/shift-templates/{template['id']}", headers=headers(scheduler))
    assert r.status_code == 204


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"name": "", "duration_hours": 8},
        {"name": "Late", "duration_hours": 0.25},
        {"name": "Late", "duration_hours": 8, "default_start_time": "25:00"},
    ],
)
async def test_template_validation(client, db, make_company, make_user, headers, payload):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    await db.commit()

    r = await client.post("/api/v1/shift-templates", json=payload, headers=headers(manager))
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_templates_need_manage_schedules(client, db, make_company, make_user, headers):
    company = await make_company()
    operator = await make_user(role=Role.OPERATOR, company=company)
    await db.commit()

    r = await client.get("/api/v1/shift-templates", headers=headers(operator))
    assert r.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["name", "duration_hours"])
async def test_template_update_rejects_clearing_required_fields(client, db, make_company, make_user, headers, field):
    company = await make_company()
    scheduler = await make_user(role=Role.SCHEDULE_MANAGER, company=company)
    await db.commit()

    r = await client.post("/api/v1/shift-templates", json={"name": "Late", "duration_hours": 8}, headers=headers(scheduler))
    template_id = r.json()["id"]

    r = await client.patch(f"/api/v1/shift-templates/{template_id}", json={field: None}, headers=headers(scheduler))
    assert r.status_code == 422
