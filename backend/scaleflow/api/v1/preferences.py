from __future__ import annotations

import logging
import uuid
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scaleflow.api.deps.permissions import forbid, require_capabilities
from scaleflow.api.deps.session import get_current_company_id, get_session_permissions
from scaleflow.auth.permissions import Capability, SessionPermissions
from scaleflow.core.clock import utcnow
from scaleflow.db.session import get_db
from scaleflow.models.preference import Preference
from scaleflow.schemas.preference import PreferenceCreate, PreferenceOut, PreferenceUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/preferences", tags=["preferences"])

PENDING = "pending"


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Preference not found")


async def _load_own_pending(db: AsyncSession, perms: SessionPermissions, preference_id: uuid.UUID) -> Preference:
    pref = await db.get(Preference, preference_id)
    if pref is None or str(pref.employee_id) != str(perms.user_id):
        raise _not_found()
    if pref.status != PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only pending preferences can be changed",
        )
    return pref


# =========================================================
# OWN PREFERENCES
# =========================================================
@router.get("/mine", response_model=List[PreferenceOut])
async def list_my_preferences(
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    res = await db.execute(
        select(Preference)
        .where(Preference.employee_id == perms.user_id)
        .order_by(Preference.start_date.desc())
    )
    return list(res.scalars().all())


@router.post("", response_model=PreferenceOut, status_code=status.HTTP_201_CREATED)
async def create_preference(
    payload: PreferenceCreate,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    pref = Preference(
        company_id=company_id,
        employee_id=perms.user_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        preference_type=payload.preference_type,
        notes=payload.notes,
        status=PENDING,
    )
    db.add(pref)
    await db.commit()
    await db.refresh(pref)
    return pref


@router.patch("/{preference_id}", response_model=PreferenceOut)
async def update_preference(
    preference_id: uuid.UUID,
    payload: PreferenceUpdate,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields provided to update.")

    pref = await _load_own_pending(db, perms, preference_id)

    for required in ("start_date", "end_date", "preference_type"):
        if required in data and data[required] is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"{required} cannot be cleared",
            )

    start = data.get("start_date", pref.start_date)
    end = data.get("end_date", pref.end_date)
    if end < start:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_date must be on or after start_date",
        )

    for field, value in data.items():
        setattr(pref, field, value)

    await db.commit()
    await db.refresh(pref)
    return pref


@router.delete("/{preference_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_preference(
    preference_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    pref = await _load_own_pending(db, perms, preference_id)
    await db.delete(pref)
    await db.commit()
    return None


# =========================================================
# REVIEW (approve_preferences)
# =========================================================
@router.get("", response_model=List[PreferenceOut])
async def list_company_preferences(
    status_filter: Optional[Literal["pending", "approved", "rejected"]] = Query(default=None, alias="status"),
    employee_id: Optional[uuid.UUID] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(require_capabilities(Capability.APPROVE_PREFERENCES)),
):
    stmt = select(Preference).where(Preference.company_id == company_id)
    if status_filter is not None:
        stmt = stmt.where(Preference.status == status_filter)
    if employee_id is not None:
        stmt = stmt.where(Preference.employee_id == employee_id)

    res = await db.execute(stmt.order_by(Preference.created_at.desc()))
    return list(res.scalars().all())


async def _review(
    db: AsyncSession,
    perms: SessionPermissions,
    preference_id: uuid.UUID,
    new_status: str,
) -> Preference:
    pref = await db.get(Preference, preference_id)
    if pref is None:
        raise _not_found()
    if not perms.is_system_admin and str(pref.company_id) != str(perms.company_id):
        raise _not_found()

    if not perms.can_approve_preference(pref.company_id):
        forbid(perms, "can_approve_preference", "You cannot review preferences.")

    if pref.status != PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Preference already {pref.status}",
        )

    pref.status = new_status
    pref.reviewed_by = perms.user_id
    pref.reviewed_at = utcnow()

    await db.commit()
    await db.refresh(pref)

    logger.info("preference %s %s by %s", pref.id, new_status, perms.user_id)
    return pref


@router.post("/{preference_id}/approve", response_model=PreferenceOut)
async def approve_preference(
    preference_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    return await _review(db, perms, preference_id, "approved")


@router.post("/{preference_id}/reject", response_model=PreferenceOut)
async def reject_preference(
    preference_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    return await _review(db, perms, preference_id, "rejected")
