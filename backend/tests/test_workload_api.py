# tests/test_workload_api.py
from __future__ import annotations

import pytest

from scaleflow.core.roles import Role

DAY = "2030-03-04"
NEXT_DAY = "2030-03-05"


async def _put(client, user, headers, **fields):
    payload = {"date": DAY, "planned_capacity_hours": 80, **fields}
    return await client.put("/api/v1/workload/metrics", json=payload, headers=headers(user))


@pytest.mark.asyncio
async def test_upsert_keeps_one_row_per_day_and_department(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    await db.commit()

    r = await _put(client, manager, headers, scheduled_hours=60, required_staff_count=10, scheduled_staff_count=8)
    assert r.status_code == 200
    first = r.json()
    assert first["department"] == "General"
    assert first["utilization_rate"] == 75.0
    assert first["staffing_gap"] == -2

    r = await _put(client, manager, headers, scheduled_hours=88, required_staff_count=10, scheduled_staff_count=11)
    second = r.json()
    assert second["id"] == first["id"]
    assert second["utilization_rate"] == 110.0
    assert second["staffing_gap"] == 1

    r = await _put(client, manager, headers, department="  Kitchen ", planned_capacity_hours=40, scheduled_hours=20)
    assert r.json()["department"] == "Kitchen"
    assert r.json()["id"] != first["id"]

    r = await client.get(
        "/api/v1/workload/metrics",
        params={"start": DAY, "end": DAY},
        headers=headers(manager),
    )
    assert [m["department"] for m in r.json()] == ["General", "Kitchen"]

    r = await client.get(
        "/api/v1/workload/metrics",
        params={"start": DAY, "end": DAY, "department": "Kitchen"},
        headers=headers(manager),
    )
    assert len(r.json()) == 1

    r = await client.get(f"/api/v1/workload/metrics/{DAY}", headers=headers(manager))
    assert r.json()["id"] == first["id"]

    r = await client.get(f"/api/v1/workload/metrics/{NEXT_DAY}", headers=headers(manager))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_zero_capacity_reads_as_zero_utilization(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    await db.commit()

    r = await _put(client, manager, headers, planned_capacity_hours=0, scheduled_hours=12)
    assert r.json()["utilization_rate"] == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields",
    [
        {"planned_capacity_hours": -1},
        {"scheduled_staff_count": -3},
        {"date": "not-a-date"},
    ],
)
async def test_upsert_validation(client, db, make_company, make_user, headers, fields):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    await db.commit()

    r = await _put(client, manager, headers, **fields)
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_summary(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    await db.commit()

    await _put(client, manager, headers, scheduled_hours=88, required_staff_count=10, scheduled_staff_count=11)
    await _put(
        client,
        manager,
        headers,
        date=NEXT_DAY,
        planned_capacity_hours=40,
        scheduled_hours=20,
        required_staff_count=4,
        scheduled_staff_count=4,
    )

    r = await client.get(
        "/api/v1/workload/summary",
        params={"start": DAY, "end": NEXT_DAY},
        headers=headers(manager),
    )
    assert r.status_code == 200
    assert r.json() == {
        "days": 2,
        "avg_utilization": 80.0,
        "total_scheduled_hours": 108.0,
        "total_planned_hours": 120.0,
        "avg_staffing_gap": 0.5,
        "days_under_staffed": 0,
        "days_over_staffed": 1,
    }

    r = await client.get(
        "/api/v1/workload/summary",
        params={"start": "2031-01-01", "end": "2031-01-31"},
        headers=headers(manager),
    )
    assert r.json()["days"] == 0
    assert r.json()["avg_utilization"] == 0

    r = await client.get(
        "/api/v1/workload/summary",
        params={"start": NEXT_DAY, "end": DAY},
        headers=headers(manager),
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_reports_need_view_reports(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    operator = await make_user(role=Role.OPERATOR, company=company)
    employee = await make_user(role=Role.EMPLOYEE, company=company)
    await db.commit()

    await _put(client, manager, headers)
    params = {"start": DAY, "end": DAY}

    r = await client.get("/api/v1/workload/metrics", params=params, headers=headers(operator))
    assert r.status_code == 200
    assert len(r.json()) == 1

    r = await client.get("/api/v1/workload/summary", params=params, headers=headers(operator))
    assert r.status_code == 200

    # Operators read reports but do not plan capacity
    r = await _put(client, operator, headers)
    assert r.status_code == 403

    r = await client.get("/api/v1/workload/metrics", params=params, headers=headers(employee))
    assert r.status_code == 403
    assert r.json()["detail"]["code"] == "rbac_forbidden"

    r = await client.get("/api/v1/workload/templates", headers=headers(employee))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_workload_is_company_scoped(client, db, make_company, make_user, headers):
    company_a = await make_company()
    company_b = await make_company()
    manager_a = await make_user(role=Role.MANAGER, company=company_a)
    manager_b = await make_user(role=Role.MANAGER, company=company_b)
    await db.commit()

    metric = (await _put(client, manager_a, headers)).json()
    r = await client.post(
        "/api/v1/workload/templates",
        json={"name": "Weekday", "template_capacity_hours": 64, "template_staff_count": 8},
        headers=headers(manager_a),
    )
    template = r.json()

    r = await client.get(f"/api/v1/workload/metrics/{DAY}", headers=headers(manager_b))
    assert r.status_code == 404

    r = await client.get("/api/v1/workload/metrics", params={"start": DAY, "end": DAY}, headers=headers(manager_b))
    assert r.json() == []

    r = await client.delete(f"/api/v1/workload/metrics/{metric['id']}", headers=headers(manager_b))
    assert r.status_code == 404

    r = await client.get(f"/api/v1/workload/templates/{template['id']}", headers=headers(manager_b))
    assert r.status_code == 404

    r = await client.post(
        f"/api/v1/workload/templates/{template['id']}/apply",
        json={"dates": [DAY]},
        headers=headers(manager_b),
    )
    assert r.status_code == 404

    r = await client.delete(f"/api/v1/workload/metrics/{metric['id']}", headers=headers(manager_a))
    assert r.status_code == 204


@pytest.mark.asyncio
async def test_workload_needs_a_company(client, db, make_user, headers):
    admin = await make_user(role=Role.SYSTEM_ADMIN)
    await db.commit()

    r = await client.get("/api/v1/workload/templates", headers=headers(admin))
    assert r.status_code == 403
    assert r.json()["detail"]["code"] == "company_required"


@pytest.mark.asyncio
async def test_template_crud(client, db, make_company, make_user, headers):
    company = await make_company()
    scheduler = await make_user(role=Role.SCHEDULE_MANAGER, company=company)
    await db.commit()

    r = await client.post(
        "/api/v1/workload/templates",
        json={
            "name": " Weekday ",
            "template_capacity_hours": 64,
            "template_staff_count": 8,
            "applies_to_days": ["Monday", "friday"],
            "applies_to_months": [3, 1, 3],
        },
        headers=headers(scheduler),
    )
    assert r.status_code == 201
    template = r.json()
    assert template["name"] == "Weekday"
    assert template["department"] == "General"
    assert template["applies_to_days"] == ["monday", "friday"]
    assert template["applies_to_months"] == [1, 3]
    assert template["created_by"] == str(scheduler.id)
    assert template["is_active"] is True

    r = await client.patch(
        f"/api/v1/workload/templates/{template['id']}",
        json={"is_active": False, "template_staff_count": 6},
        headers=headers(scheduler),
    )
    assert r.status_code == 200
    assert r.json()["template_staff_count"] == 6

    r = await client.get("/api/v1/workload/templates", headers=headers(scheduler))
    assert [t["id"] for t in r.json()] == [template["id"]]

    r = await client.get("/api/v1/workload/templates", params={"active_only": "true"}, headers=headers(scheduler))
    assert r.json() == []

    r = await client.patch(f"/api/v1/workload/templates/{template['id']}", json={}, headers=headers(scheduler))
    assert r.status_code == 400

    r = await client.delete(f"/api/v1/workload/templates/{template['id']}", headers=headers(scheduler))
    assert r.status_code == 204

    r = await client.get(f"/api/v1/workload/templates/{template['id']}", headers=headers(scheduler))
    assert r.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"name": "  ", "template_capacity_hours": 64, "template_staff_count": 8},
        {"name": "Weekday", "template_capacity_hours": -1, "template_staff_count": 8},
        {"name": "Weekday", "template_capacity_hours": 64, "template_staff_count": 8, "applies_to_days": ["funday"]},
        {"name": "Weekday", "template_capacity_hours": 64, "template_staff_count": 8, "applies_to_months": [13]},
    ],
)
async def test_template_validation(client, db, make_company, make_user, headers, payload):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    await db.commit()

    r = await client.post("/api/v1/workload/templates", json=payload, headers=headers(manager))
    assert r.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field",
    ["name", "department", "template_capacity_hours", "template_staff_count", "applies_to_days", "is_active"],
)
async def test_template_update_rejects_clearing_required_fields(client, db, make_company, make_user, headers, field):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    await db.commit()

    r = await client.post(
        "/api/v1/workload/templates",
        json={"name": "Weekday", "template_capacity_hours": 64, "template_staff_count": 8},
        headers=headers(manager),
    )
    template_id = r.json()["id"]

    r = await client.patch(f"/api/v1/workload/templates/{template_id}", json={field: None}, headers=headers(manager))
    assert r.status_code == 422
    assert r.json()["detail"][0]["loc"][-1] == field


@pytest.mark.asyncio
async def test_apply_template_sets_capacity_and_keeps_schedule(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    operator = await make_user(role=Role.OPERATOR, company=company)
    await db.commit()

    existing = (await _put(client, manager, headers, scheduled_hours=88, scheduled_staff_count=11)).json()
    r = await client.post(
        "/api/v1/workload/templates",
        json={"name": "Weekday", "template_capacity_hours": 64, "template_staff_count": 8},
        headers=headers(manager),
    )
    template_id = r.json()["id"]

    r = await client.post(
        f"/api/v1/workload/templates/{template_id}/apply",
        json={"dates": [NEXT_DAY, DAY, NEXT_DAY]},
        headers=headers(manager),
    )
    assert r.status_code == 200
    applied = r.json()
    assert [m["date"] for m in applied] == [DAY, NEXT_DAY]

    assert applied[0]["id"] == existing["id"]
    assert applied[0]["planned_capacity_hours"] == 64
    assert applied[0]["required_staff_count"] == 8
    assert applied[0]["scheduled_hours"] == 88
    assert applied[0]["scheduled_staff_count"] == 11
    assert applied[0]["notes"] == "Applied from template: Weekday"

    assert applied[1]["scheduled_hours"] == 0
    assert applied[1]["staffing_gap"] == -8

    r = await client.post(
        f"/api/v1/workload/templates/{template_id}/apply",
        json={"dates": []},
        headers=headers(manager),
    )
    assert r.status_code == 422

    r = await client.post(
        f"/api/v1/workload/templates/{template_id}/apply",
        json={"dates": [DAY]},
        headers=headers(operator),
    )
    assert r.status_code == 403
