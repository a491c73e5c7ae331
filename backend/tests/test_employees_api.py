# tests/test_employees_api.py
from __future__ import annotations

import pytest

from scaleflow.core.roles import Role
from scaleflow.models.user import User


@pytest.mark.asyncio
async def test_list_and_stats(client, db, make_company, make_user, headers):
    company = await make_company()
    other = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company, last_name="Adams")
    await make_user(role=Role.EMPLOYEE, company=company, last_name="Baker")
    await make_user(role=Role.EMPLOYEE, company=company, last_name="Clark")
    await make_user(role=Role.EMPLOYEE, company=other)
    await db.commit()

    r = await client.get("/api/v1/employees", headers=headers(manager))
    assert r.status_code == 200
    assert [e["last_name"] for e in r.json()] == ["Adams", "Baker", "Clark"]

    r = await client.get("/api/v1/employees", params={"role": "employee"}, headers=headers(manager))
    assert len(r.json()) == 2

    r = await client.get("/api/v1/employees/stats", headers=headers(manager))
    assert r.json() == {"total": 3, "by_role": {"manager": 1, "employee": 2}}


@pytest.mark.asyncio
async def test_employee_cannot_list_colleagues(client, db, make_company, make_user, headers):
    company = await make_company()
    employee = await make_user(role=Role.EMPLOYEE, company=company)
    await db.commit()

    r = await client.get("/api/v1/employees", headers=headers(employee))
    assert r.status_code == 403
    assert r.json()["detail"]["missing"] == ["view_employees"]


@pytest.mark.asyncio
async def test_manager_promotes_employee(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    employee = await make_user(role=Role.EMPLOYEE, company=company)
    await db.commit()

    r = await client.patch(
        f"/api/v1/employees/{employee.id}",
        json={"role": "schedule_manager", "first_name": " Grace "},
        headers=headers(manager),
    )
    assert r.status_code == 200
    assert r.json()["role"] == "schedule_manager"
    assert r.json()["first_name"] == "Grace"


@pytest.mark.asyncio
async def test_manager_cannot_grant_system_admin(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    employee = await make_user(role=Role.EMPLOYEE, company=company)
    await db.commit()

    r = await client.patch(
        f"/api/v1/employees/{employee.id}",
        json={"role": "system_admin"},
        headers=headers(manager),
    )
    assert r.status_code == 403
    assert r.json()["detail"]["check"] == "can_assign_role"


@pytest.mark.asyncio
async def test_cannot_change_own_role(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    await db.commit()

    r = await client.patch(f"/api/v1/employees/{manager.id}", json={"role": "employee"}, headers=headers(manager))
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_members_of_other_companies_are_invisible(client, db, make_company, make_user, headers):
    company = await make_company()
    other = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    outsider = await make_user(role=Role.EMPLOYEE, company=other)
    await db.commit()

    r = await client.get(f"/api/v1/employees/{outsider.id}", headers=headers(manager))
    assert r.status_code == 404

    r = await client.patch(f"/api/v1/employees/{outsider.id}", json={"first_name": "X"}, headers=headers(manager))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_system_admin_manages_across_companies(client, db, make_company, make_user, headers):
    company = await make_company()
    admin = await make_user(role=Role.SYSTEM_ADMIN)
    employee = await make_user(role=Role.EMPLOYEE, company=company)
    await db.commit()

    r = await client.patch(f"/api/v1/employees/{employee.id}", json={"role": "manager"}, headers=headers(admin))
    assert r.status_code == 200
    assert r.json()["role"] == "manager"


@pytest.mark.asyncio
async def test_remove_detaches_from_company(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    employee = await make_user(role=Role.STAFF, company=company)
    await db.commit()

    r = await client.delete(f"/api/v1/employees/{manager.id}", headers=headers(manager))
    assert r.status_code == 409

    r = await client.delete(f"/api/v1/employees/{employee.id}", headers=headers(manager))
    assert r.status_code == 204

    await db.refresh(employee)
    assert employee.company_id is None
    assert await db.get(User, employee.id) is not None
