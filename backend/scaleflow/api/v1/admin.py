from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from scaleflow.api.deps.permissions import require_roles
from scaleflow.api.v1.auth import get_optional_user
from scaleflow.api.v1.invitations import invite_link
from scaleflow.auth.permissions import SessionPermissions
from scaleflow.core.clock import utcnow
from scaleflow.core.config import settings
from scaleflow.core.feature_flags import FEATURE_FLAG_CONFIG
from scaleflow.core.roles import Role
from scaleflow.core.security import generate_invite_token
from scaleflow.crud.users import count_active_system_admins
from scaleflow.db.session import get_db
from scaleflow.models.company import Company
from scaleflow.models.invitation import Invitation
from scaleflow.models.user import User
from scaleflow.schemas.company import CompanyOut
from scaleflow.schemas.employee import EmployeeOut
from scaleflow.schemas.feature_flag import FeatureFlagConfigOut
from scaleflow.schemas.invitation import FirstAdminInviteCreate, InvitationOut, InvitationSent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

_require_system_admin = require_roles(Role.SYSTEM_ADMIN)


@router.get("/companies", response_model=List[CompanyOut])
async def list_all_companies(
    db: AsyncSession = Depends(get_db),
    _perms: SessionPermissions = Depends(_require_system_admin),
):
    res = await db.execute(select(Company).order_by(Company.name))
    return list(res.scalars().all())


@router.delete("/companies/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_company(
    company_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(_require_system_admin),
):
    """
    Delete a company and its scheduling data. Members keep their accounts.
    """
    company = await db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")

    # Detach members explicitly; SQLite test databases do not enforce ON DELETE.
    await db.execute(update(User).where(User.company_id == company_id).values(company_id=None))
    await db.delete(company)
    await db.commit()

    logger.warning("company %s deleted by system admin %s", company_id, perms.user_id)
    return None


@router.get("/users", response_model=List[EmployeeOut])
async def list_all_users(
    company_id: Optional[uuid.UUID] = Query(default=None),
    role: Optional[Role] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    _perms: SessionPermissions = Depends(_require_system_admin),
):
    stmt = select(User)
    if company_id is not None:
        stmt = stmt.where(User.company_id == company_id)
    if role is not None:
        stmt = stmt.where(User.role == role.value)

    res = await db.execute(stmt.order_by(User.email))
    return list(res.scalars().all())


@router.get("/feature-flags", response_model=List[FeatureFlagConfigOut])
async def list_feature_flag_config(
    _perms: SessionPermissions = Depends(_require_system_admin),
):
    """
    Raw flag configuration. Use /feature-flags for the per-caller evaluation.
    """
    return [
        FeatureFlagConfigOut(
            name=flag.value,
            enabled=cfg.enabled,
            description=cfg.description,
            rollout_percentage=cfg.rollout_percentage,
            environments=list(cfg.environments) if cfg.environments is not None else None,
            roles=[r.value for r in cfg.roles] if cfg.roles is not None else None,
        )
        for flag, cfg in FEATURE_FLAG_CONFIG.items()
    ]


@router.post("/invite-first-admin", response_model=InvitationSent, status_code=status.HTTP_201_CREATED)
async def invite_first_admin(
    payload: FirstAdminInviteCreate,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """
    Bootstrap a platform-level invitation.

    Open to anyone while no active system admin exists; afterwards only
    system admins may call it.
    """
    caller_is_admin = user is not None and user.role == Role.SYSTEM_ADMIN.value
    if not caller_is_admin and await count_active_system_admins(db) > 0:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "code": "rbac_forbidden",
                "message": "A system administrator already exists.",
                "check": "first_admin",
            },
        )

    email = str(payload.email).strip().lower()
    invitation = Invitation(
        company_id=None,
        email=email,
        role=payload.role.value,
        first_name=payload.first_name,
        last_name=payload.last_name,
        token=generate_invite_token(),
        expires_at=utcnow() + timedelta(days=settings.INVITE_EXPIRY_DAYS),
        invited_by_user_id=user.id if user is not None else None,
    )
    db.add(invitation)
    await db.commit()
    await db.refresh(invitation)

    logger.info("platform invitation %s for %s: %s", invitation.id, email, invite_link(invitation.token))
    return InvitationSent(
        message=f"Invitation sent to {email}",
        invitation=InvitationOut.model_validate(invitation),
    )
