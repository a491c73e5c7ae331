# tests/test_invitations_api.py
from __future__ import annotations

from datetime import timedelta

import pytest

from scaleflow.core.clock import utcnow
from scaleflow.core.roles import Role
from scaleflow.models.invitation import Invitation


@pytest.mark.asyncio
async def test_invite_and_accept(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    invitee = await make_user(email="new.hire@example.com")
    await db.commit()

    r = await client.post(
        "/api/v1/invitations",
        json={"email": "New.Hire@example.com", "role": "operator", "first_name": "Nia"},
        headers=headers(manager),
    )
    assert r.status_code == 201
    invitation = r.json()
    assert invitation["email"] == "new.hire@example.com"
    assert invitation["company_id"] == str(company.id)

    r = await client.post("/api/v1/invitations/accept", json={"token": invitation["token"]}, headers=headers(invitee))
    assert r.status_code == 200
    body = r.json()
    assert body["company_id"] == str(company.id)
    assert body["role"] == "operator"
    assert body["first_name"] == "Nia"

    r = await client.post("/api/v1/invitations/accept", json={"token": invitation["token"]}, headers=headers(invitee))
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_duplicate_pending_invite_is_rejected(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    await db.commit()

    first = await client.post("/api/v1/invitations", json={"email": "dup@example.com"}, headers=headers(manager))
    second = await client.post("/api/v1/invitations", json={"email": "dup@example.com"}, headers=headers(manager))
    assert first.status_code == 201
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_cannot_invite_existing_member(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    await make_user(company=company, email="member@example.com")
    await db.commit()

    r = await client.post("/api/v1/invitations", json={"email": "member@example.com"}, headers=headers(manager))
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_role_must_be_assignable(client, db, make_company, make_user, headers):
    company = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    scheduler = await make_user(role=Role.SCHEDULE_MANAGER, company=company)
    await db.commit()

    r = await client.post(
        "/api/v1/invitations",
        json={"email": "boss@example.com", "role": "system_admin"},
        headers=headers(manager),
    )
    assert r.status_code == 403

    r = await client.post("/api/v1/invitations", json={"email": "x@example.com"}, headers=headers(scheduler))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_accept_checks_email_and_expiry(client, db, make_company, make_user, headers):
    company = await make_company()
    stranger = await make_user(email="stranger@example.com")
    invitee = await make_user(email="late@example.com")
    wrong_email = Invitation(
        company_id=company.id,
        email="someone@example.com",
        role="employee",
        token="tok_wrong_email",
        expires_at=utcnow() + timedelta(days=1),
    )
    expired = Invitation(
        company_id=company.id,
        email="late@example.com",
        role="employee",
        token="tok_expired",
        expires_at=utcnow() - timedelta(minutes=1),
    )
    db.add_all([wrong_email, expired])
    await db.commit()

    r = await client.post("/api/v1/invitations/accept", json={"token": "tok_wrong_email"}, headers=headers(stranger))
    assert r.status_code == 403

    r = await client.post("/api/v1/invitations/accept", json={"token": "tok_expired"}, headers=headers(invitee))
    assert r.status_code == 410

    r = await client.post("/api/v1/invitations/accept", json={"token": "tok_missing"}, headers=headers(invitee))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_revoke(client, db, make_company, make_user, headers):
    company = await make_company()
    other = await make_company()
    manager = await make_user(role=Role.MANAGER, company=company)
    other_manager = await make_user(role=Role.MANAGER, company=other)
    await db.commit()

    r = await client.post("/api/v1/invitations", json={"email": "gone@example.com"}, headers=headers(manager))
    invitation_id = r.json()["id"]

    r = await client.post(f"/api/v1/invitations/{invitation_id}/revoke", headers=headers(other_manager))
    assert r.status_code == 404

    r = await client.post(f"/api/v1/invitations/{invitation_id}/revoke", headers=headers(manager))
    assert r.status_code == 204

    r = await client.get("/api/v1/invitations", headers=headers(manager))
    assert r.json() == []
