from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scaleflow.api.deps.permissions import forbid, require_capabilities
from scaleflow.api.deps.session import get_current_company_id, get_session_permissions
from scaleflow.auth.permissions import Capability, SessionPermissions
from scaleflow.core.clock import as_utc
from scaleflow.crud.users import get_company_member
from scaleflow.db.session import get_db
from scaleflow.models.shift import Shift
from scaleflow.schemas.shift import (
    ShiftBulkCreate,
    ShiftCreate,
    ShiftOut,
    ShiftPublish,
    ShiftUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shifts", tags=["shifts"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shift not found")


async def _load_visible_shift(db: AsyncSession, perms: SessionPermissions, shift_id: uuid.UUID) -> Shift:
    shift = await db.get(Shift, shift_id)
    if shift is None:
        raise _not_found()
    if not perms.can_view_shift(shift.employee_id, shift.company_id, shift.published):
        raise _not_found()
    return shift


async def _ensure_assignable(db: AsyncSession, company_id: uuid.UUID, employee_id: Optional[uuid.UUID]) -> None:
    if employee_id is None:
        return
    if await get_company_member(db, company_id, employee_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Employee is not a member of this company",
        )


def _apply_time_filters(stmt, start: Optional[datetime], end: Optional[datetime]):
    # Shifts overlapping [start, end)
    if start is not None:
        stmt = stmt.where(Shift.end_time > as_utc(start))
    if end is not None:
        stmt = stmt.where(Shift.start_time < as_utc(end))
    return stmt


def _new_shift(company_id: uuid.UUID, payload: ShiftCreate) -> Shift:
    return Shift(
        company_id=company_id,
        employee_id=payload.employee_id,
        role=payload.role.value if payload.role else None,
        start_time=as_utc(payload.start_time),
        end_time=as_utc(payload.end_time),
        notes=payload.notes,
        published=payload.published,
    )


# =========================================================
# READ
# =========================================================
@router.get("", response_model=List[ShiftOut])
async def list_shifts(
    start: Optional[datetime] = Query(default=None),
    end: Optional[datetime] = Query(default=None),
    published: Optional[bool] = Query(default=None),
    employee_id: Optional[uuid.UUID] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(require_capabilities(Capability.VIEW_EMPLOYEES)),
):
    """
    Company schedule, drafts included.
    """
    stmt = select(Shift).where(Shift.company_id == company_id)
    stmt = _apply_time_filters(stmt, start, end)
    if published is not None:
        stmt = stmt.where(Shift.published == published)
    if employee_id is not None:
        stmt = stmt.where(Shift.employee_id == employee_id)

    res = await db.execute(stmt.order_by(Shift.start_time))
    return list(res.scalars().all())


@router.get("/mine", response_model=List[ShiftOut])
async def list_my_shifts(
    start: Optional[datetime] = Query(default=None),
    end: Optional[datetime] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    stmt = select(Shift).where(Shift.employee_id == perms.user_id)
    stmt = _apply_time_filters(stmt, start, end)

    res = await db.execute(stmt.order_by(Shift.start_time))
    return list(res.scalars().all())


@router.get("/{shift_id}", response_model=ShiftOut)
async def get_shift(
    shift_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    return await _load_visible_shift(db, perms, shift_id)


# =========================================================
# WRITE (can_modify_shift)
# =========================================================
@router.post("", response_model=ShiftOut, status_code=status.HTTP_201_CREATED)
async def create_shift(
    payload: ShiftCreate,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    if not perms.can_modify_shift(company_id):
        forbid(perms, "can_modify_shift", "You cannot create shifts.")

    await _ensure_assignable(db, company_id, payload.employee_id)

    shift = _new_shift(company_id, payload)
    db.add(shift)
    await db.commit()
    await db.refresh(shift)
    return shift


@router.post("/bulk", response_model=List[ShiftOut], status_code=status.HTTP_201_CREATED)
async def create_shifts_bulk(
    payload: ShiftBulkCreate,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    """
    All-or-nothing: one bad employee id rejects the whole batch.
    """
    if not perms.can_modify_shift(company_id):
        forbid(perms, "can_modify_shift", "You cannot create shifts.")

    for employee_id in {s.employee_id for s in payload.shifts if s.employee_id is not None}:
        await _ensure_assignable(db, company_id, employee_id)

    shifts = [_new_shift(company_id, s) for s in payload.shifts]
    db.add_all(shifts)
    await db.commit()
    for shift in shifts:
        await db.refresh(shift)

    logger.info("user %s created %d shifts in company %s", perms.user_id, len(shifts), company_id)
    return shifts


@router.post("/publish", response_model=List[ShiftOut])
async def publish_shifts(
    payload: ShiftPublish,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    ids = set(payload.shift_ids)
    res = await db.execute(select(Shift).where(Shift.id.in_(list(ids))))
    shifts = list(res.scalars().all())

    visible = [s for s in shifts if perms.can_view_shift(s.employee_id, s.company_id, s.published)]
    missing = ids - {s.id for s in visible}
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": "Shift not found", "shift_ids": sorted(str(i) for i in missing)},
        )

    for shift in visible:
        if not perms.can_modify_shift(shift.company_id):
            forbid(perms, "can_modify_shift", "You cannot publish shifts.")

    for shift in visible:
        shift.published = True

    await db.commit()
    for shift in visible:
        await db.refresh(shift)
    return sorted(visible, key=lambda s: as_utc(s.start_time))


@router.patch("/{shift_id}", response_model=ShiftOut)
async def update_shift(
    shift_id: uuid.UUID,
    payload: ShiftUpdate,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields provided to update.")

    shift = await _load_visible_shift(db, perms, shift_id)
    if not perms.can_modify_shift(shift.company_id):
        forbid(perms, "can_modify_shift", "You cannot modify this shift.")

    if "employee_id" in data:
        await _ensure_assignable(db, shift.company_id, data["employee_id"])

    # Stored values come back naive from SQLite.
    start = data.get("start_time", as_utc(shift.start_time))
    end = data.get("end_time", as_utc(shift.end_time))
    if end <= start:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_time must be after start_time",
        )

    for field, value in data.items():
        if field == "role" and value is not None:
            value = value.value
        setattr(shift, field, value)

    await db.commit()
    await db.refresh(shift)
    return shift


@router.delete("/{shift_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shift(
    shift_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    shift = await _load_visible_shift(db, perms, shift_id)
    if not perms.can_modify_shift(shift.company_id):
        forbid(perms, "can_modify_shift", "You cannot delete this shift.")

    await db.delete(shift)
    await db.commit()
    return None
