# tests/test_auth_api.py
from __future__ import annotations

import pytest

from scaleflow.core.roles import Role


@pytest.mark.asyncio
async def test_magic_code_login_registers_and_issues_token(client):
    r = await client.post("/api/v1/auth/request-code", json={"email": "New.Person@Example.com"})
    assert r.status_code == 200
    code = r.json()["code"]

    r = await client.post("/api/v1/auth/verify-code", json={"email": "new.person@example.com", "code": code})
    assert r.status_code == 200
    token = r.json()["access_token"]

    r = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    body = r.json()
    assert body["email"] == "new.person@example.com"
    assert body["role"] == "employee"
    assert body["company_id"] is None


@pytest.mark.asyncio
async def test_magic_code_is_single_use(client):
    r = await client.post("/api/v1/auth/request-code", json={"email": "once@example.com"})
    code = r.json()["code"]

    first = await client.post("/api/v1/auth/verify-code", json={"email": "once@example.com", "code": code})
    second = await client.post("/api/v1/auth/verify-code", json={"email": "once@example.com", "code": code})

    assert first.status_code == 200
    assert second.status_code == 401


@pytest.mark.asyncio
async def test_wrong_code_is_rejected(client):
    await client.post("/api/v1/auth/request-code", json={"email": "wrong@example.com"})
    r = await client.post("/api/v1/auth/verify-code", json={"email": "wrong@example.com", "code": "000000"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_token(client):
    r = await client.get("/api/v1/auth/me")
    assert r.status_code in (401, 403)

    r = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_profile_update(client, db, make_user, headers):
    user = await make_user()
    await db.commit()

    r = await client.patch(
        "/api/v1/auth/me",
        json={"first_name": "  Ada  ", "last_name": "Lovelace", "avatar_url": "https://cdn.example.com/a.png"},
        headers=headers(user),
    )
    assert r.status_code == 200
    body = r.json()
    assert body["first_name"] == "Ada"
    assert body["full_name"] == "Ada Lovelace"
    assert body["avatar_url"] == "https://cdn.example.com/a.png"

    r = await client.patch("/api/v1/auth/me", json={"avatar_url": ""}, headers=headers(user))
    assert r.status_code == 200
    assert r.json()["avatar_url"] is None


@pytest.mark.asyncio
async def test_profile_update_rejects_bad_url_and_role_changes(client, db, make_user, headers):
    user = await make_user()
    await db.commit()

    r = await client.patch("/api/v1/auth/me", json={"avatar_url": "not a url"}, headers=headers(user))
    assert r.status_code == 422

    r = await client.patch("/api/v1/auth/me", json={"role": "manager"}, headers=headers(user))
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_my_permissions_for_manager(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    await db.commit()

    r = await client.get("/api/v1/auth/me/permissions", headers=headers(manager))
    assert r.status_code == 200
    body = r.json()
    assert body["role"] == "manager"
    assert body["company_id"] == str(company.id)
    assert body["permissions"]["can_manage_employees"] is True
    assert body["permissions"]["can_access_admin"] is False
    assert "system_admin" not in body["assignable_roles"]
    assert "/employees" in body["accessible_paths"]
    assert "/admin/users" not in body["accessible_paths"]


@pytest.mark.asyncio
async def test_my_permissions_for_unknown_stored_role(client, db, make_company, make_user, headers):
    company = await make_company()
    user = await make_user(role="legacy_owner", company=company)
    await db.commit()

    r = await client.get("/api/v1/auth/me/permissions", headers=headers(user))
    assert r.status_code == 200
    body = r.json()
    assert body["role"] is None
    assert body["granted"] == []
    assert body["capabilities"] == []
