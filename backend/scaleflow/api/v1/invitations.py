from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scaleflow.api.deps.permissions import forbid, require_capabilities
from scaleflow.api.deps.session import get_current_company_id
from scaleflow.api.v1.auth import get_current_user
from scaleflow.auth.permissions import Capability, SessionPermissions
from scaleflow.core.clock import as_utc, utcnow
from scaleflow.core.config import settings
from scaleflow.core.security import generate_invite_token
from scaleflow.crud.users import get_user_by_email
from scaleflow.db.session import get_db
from scaleflow.models.invitation import Invitation
from scaleflow.models.user import User
from scaleflow.schemas.employee import EmployeeOut
from scaleflow.schemas.invitation import (
    InvitationAccept,
    InvitationCreate,
    InvitationOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invitations", tags=["invitations"])


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def invite_link(token: str) -> str:
    return f"{settings.SITE_URL.rstrip('/')}/login?invite={token}"


# =========================================================
# CREATE + LIST (company-scoped; manage_employees)
# =========================================================
@router.post("", response_model=InvitationOut, status_code=status.HTTP_201_CREATED)
async def create_invitation(
    payload: InvitationCreate,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    perms: SessionPermissions = Depends(require_capabilities(Capability.MANAGE_EMPLOYEES)),
):
    """
    Invite someone into the caller's company with a role the caller may assign.
    """
    email = _normalize_email(str(payload.email))

    if not perms.can_assign_role(payload.role):
        forbid(
            perms,
            "can_assign_role",
            f"You cannot invite users with the role {payload.role.value}.",
            target_role=payload.role.value,
        )

    existing_user = await get_user_by_email(db, email)
    if existing_user is not None and existing_user.company_id == company_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User is already a member of this company",
        )

    # Pending = not accepted and not yet expired
    pending = (
        await db.execute(
            select(Invitation).where(
                Invitation.company_id == company_id,
                Invitation.email == email,
                Invitation.accepted_at.is_(None),
                Invitation.expires_at > utcnow(),
            )
        )
    ).scalars().first()
    if pending is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A pending invitation already exists for this email",
        )

    invitation = Invitation(
        company_id=company_id,
        email=email,
        role=payload.role.value,
        first_name=payload.first_name,
        last_name=payload.last_name,
        token=generate_invite_token(),
        expires_at=utcnow() + timedelta(days=settings.INVITE_EXPIRY_DAYS),
        invited_by_user_id=perms.user_id,
    )
    db.add(invitation)
    await db.commit()
    await db.refresh(invitation)

    logger.info("invitation %s created for company %s: %s", invitation.id, company_id, invite_link(invitation.token))
    return invitation


@router.get("", response_model=List[InvitationOut])
async def list_invitations(
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(require_capabilities(Capability.MANAGE_EMPLOYEES)),
):
    res = await db.execute(
        select(Invitation)
        .where(Invitation.company_id == company_id)
        .order_by(Invitation.created_at.desc())
    )
    return list(res.scalars().all())


@router.post("/{invitation_id}/revoke", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_invitation(
    invitation_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(require_capabilities(Capability.MANAGE_EMPLOYEES)),
):
    invitation = await db.get(Invitation, invitation_id)
    if invitation is None or invitation.company_id != company_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invitation not found")

    if invitation.accepted_at is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Invitation already accepted")

    await db.delete(invitation)
    await db.commit()
    return None


# =========================================================
# ACCEPT (JWT only; the invitee's email must match)
# =========================================================
@router.post("/accept", response_model=EmployeeOut)
async def accept_invitation(
    payload: InvitationAccept,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Join the inviting company with the invited role.
    Platform invitations (no company) only grant the role.
    """
    token = payload.token.strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="token is required")

    invitation = (
        await db.execute(select(Invitation).where(Invitation.token == token))
    ).scalar_one_or_none()
    if invitation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invitation not found")

    if invitation.accepted_at is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Invitation already accepted")

    if as_utc(invitation.expires_at) <= utcnow():
        raise HTTPException(status_code=status.HTTP_410_GONE, detail="Invitation expired")

    if _normalize_email(invitation.email) != _normalize_email(user.email):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This invitation was sent to a different email address",
        )

    if invitation.company_id is not None:
        if user.company_id is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You already belong to a company",
            )
        user.company_id = invitation.company_id

    user.role = invitation.role
    if not user.first_name and invitation.first_name:
        user.first_name = invitation.first_name
    if not user.last_name and invitation.last_name:
        user.last_name = invitation.last_name

    invitation.accepted_at = utcnow()
    invitation.accepted_by_user_id = user.id

    await db.commit()
    await db.refresh(user)

    logger.info("user %s accepted invitation %s as %s", user.id, invitation.id, invitation.role)
    return user
