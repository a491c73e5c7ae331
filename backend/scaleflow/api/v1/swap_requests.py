from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from scaleflow.api.deps.permissions import forbid
from scaleflow.api.deps.session import get_current_company_id, get_session_permissions
from scaleflow.auth.permissions import Capability, SessionPermissions
from scaleflow.core.clock import utcnow
from scaleflow.crud.users import get_company_member
from scaleflow.db.session import get_db
from scaleflow.models.shift import Shift
from scaleflow.models.swap_request import (
    SWAP_APPROVED,
    SWAP_CANCELLED,
    SWAP_PENDING_EMPLOYEE,
    SWAP_PENDING_MANAGER,
    SWAP_PENDING_STATUSES,
    SWAP_REJECTED,
    SwapRequest,
)
from scaleflow.schemas.swap_request import SwapRequestCreate, SwapRequestOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/swap-requests", tags=["swap-requests"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Swap request not found")


def _conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


def _involves(swap: SwapRequest, user_id) -> bool:
    return str(user_id) in (str(swap.requesting_employee_id), str(swap.target_employee_id))


async def _load_visible_swap(db: AsyncSession, perms: SessionPermissions, swap_id: uuid.UUID) -> SwapRequest:
    """
    Visible to the two employees involved, to system admins and to swap
    approvers of the company.
    """
    swap = await db.get(SwapRequest, swap_id)
    if swap is None:
        raise _not_found()
    if _involves(swap, perms.user_id):
        return swap
    if perms.is_system_admin:
        return swap
    if perms.has(Capability.APPROVE_SWAPS) and str(swap.company_id) == str(perms.company_id):
        return swap
    raise _not_found()


async def _finish(db: AsyncSession, swap: SwapRequest) -> SwapRequest:
    await db.commit()
    await db.refresh(swap)
    return swap


# =========================================================
# LIST + CREATE
# =========================================================
@router.get("", response_model=List[SwapRequestOut])
async def list_swap_requests(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    company_id: Optional[uuid.UUID] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    """
    Matches single-request visibility. System admins see every company and may
    narrow to one with company_id. Approvers see their own company; others only
    the requests they are part of.
    """
    stmt = select(SwapRequest)
    if perms.is_system_admin:
        if company_id is not None:
            stmt = stmt.where(SwapRequest.company_id == company_id)
    elif perms.has(Capability.APPROVE_SWAPS) and perms.company_id is not None:
        stmt = stmt.where(SwapRequest.company_id == perms.company_id)
    else:
        stmt = stmt.where(
            or_(
                SwapRequest.requesting_employee_id == perms.user_id,
                SwapRequest.target_employee_id == perms.user_id,
            )
        )
    if status_filter:
        stmt = stmt.where(SwapRequest.status == status_filter)

    res = await db.execute(stmt.order_by(SwapRequest.created_at.desc()))
    return list(res.scalars().all())


@router.post("", response_model=SwapRequestOut, status_code=status.HTTP_201_CREATED)
async def create_swap_request(
    payload: SwapRequestCreate,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    """
    Offer one of your shifts, either to a named colleague in exchange for one
    of theirs, or to the company (a manager decides).
    """
    requested = await db.get(Shift, payload.requested_shift_id)
    if requested is None or requested.company_id != company_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shift not found")
    if str(requested.employee_id) != str(perms.user_id):
        forbid(perms, "shift_owner", "You can only request swaps for your own shifts.")

    if payload.target_employee_id is not None:
        if payload.target_employee_id == perms.user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot swap a shift with yourself.",
            )
        if await get_company_member(db, company_id, payload.target_employee_id) is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Target employee is not a member of this company",
            )

        target_shift = await db.get(Shift, payload.target_shift_id)
        if target_shift is None or target_shift.company_id != company_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Target shift not found")
        if target_shift.employee_id != payload.target_employee_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The target shift is not assigned to the target employee.",
            )

    open_request = (
        await db.execute(
            select(SwapRequest).where(
                SwapRequest.requested_shift_id == requested.id,
                SwapRequest.status.in_(SWAP_PENDING_STATUSES),
            )
        )
    ).scalars().first()
    if open_request is not None:
        raise _conflict("A swap request for this shift is already pending")

    swap = SwapRequest(
        company_id=company_id,
        requesting_employee_id=perms.user_id,
        requested_shift_id=requested.id,
        target_employee_id=payload.target_employee_id,
        target_shift_id=payload.target_shift_id,
        request_notes=payload.request_notes,
        status=SWAP_PENDING_EMPLOYEE if payload.target_employee_id else SWAP_PENDING_MANAGER,
    )
    db.add(swap)
    await db.commit()
    await db.refresh(swap)

    logger.info("swap request %s created by %s (%s)", swap.id, perms.user_id, swap.status)
    return swap


@router.get("/{swap_id}", response_model=SwapRequestOut)
async def get_swap_request(
    swap_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    return await _load_visible_swap(db, perms, swap_id)


# =========================================================
# EMPLOYEE SIDE
# =========================================================
async def _load_as_target(db: AsyncSession, perms: SessionPermissions, swap_id: uuid.UUID) -> SwapRequest:
    swap = await _load_visible_swap(db, perms, swap_id)
    if str(swap.target_employee_id) != str(perms.user_id):
        forbid(perms, "swap_target", "Only the requested colleague can answer this request.")
    if swap.status != SWAP_PENDING_EMPLOYEE:
        raise _conflict(f"Swap request is {swap.status}")
    return swap


@router.post("/{swap_id}/accept", response_model=SwapRequestOut)
async def accept_swap_request(
    swap_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    swap = await _load_as_target(db, perms, swap_id)
    swap.status = SWAP_PENDING_MANAGER
    return await _finish(db, swap)


@router.post("/{swap_id}/decline", response_model=SwapRequestOut)
async def decline_swap_request(
    swap_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    swap = await _load_as_target(db, perms, swap_id)
    swap.status = SWAP_REJECTED
    return await _finish(db, swap)


@router.post("/{swap_id}/cancel", response_model=SwapRequestOut)
async def cancel_swap_request(
    swap_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    swap = await _load_visible_swap(db, perms, swap_id)
    if str(swap.requesting_employee_id) != str(perms.user_id):
        forbid(perms, "swap_requester", "Only the requester can cancel this request.")
    if swap.status not in SWAP_PENDING_STATUSES:
        raise _conflict(f"Swap request is {swap.status}")

    swap.status = SWAP_CANCELLED
    return await _finish(db, swap)


# =========================================================
# MANAGER SIDE (can_approve_swap_request)
# =========================================================
async def _load_for_review(db: AsyncSession, perms: SessionPermissions, swap_id: uuid.UUID) -> SwapRequest:
    swap = await _load_visible_swap(db, perms, swap_id)
    if not perms.can_approve_swap_request(swap.company_id):
        forbid(perms, "can_approve_swap_request", "You cannot review swap requests.")
    if swap.status != SWAP_PENDING_MANAGER:
        raise _conflict(f"Swap request is {swap.status}")
    return swap


@router.post("/{swap_id}/approve", response_model=SwapRequestOut)
async def approve_swap_request(
    swap_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    """
    Exchange the assignees of both shifts. Without a target the requested
    shift becomes open.
    """
    swap = await _load_for_review(db, perms, swap_id)

    requested = await db.get(Shift, swap.requested_shift_id)
    if requested is None or requested.employee_id != swap.requesting_employee_id:
        raise _conflict("The requested shift is no longer assigned to the requester")

    target_shift = None
    if swap.target_shift_id is not None:
        target_shift = await db.get(Shift, swap.target_shift_id)
        if target_shift is None or target_shift.employee_id != swap.target_employee_id:
            raise _conflict("The target shift is no longer assigned to the target employee")

    requested.employee_id = swap.target_employee_id
    if target_shift is not None:
        target_shift.employee_id = swap.requesting_employee_id

    swap.status = SWAP_APPROVED
    swap.reviewed_by = perms.user_id
    swap.reviewed_at = utcnow()

    logger.info("swap request %s approved by %s", swap.id, perms.user_id)
    return await _finish(db, swap)


@router.post("/{swap_id}/reject", response_model=SwapRequestOut)
async def reject_swap_request(
    swap_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(get_session_permissions),
):
    swap = await _load_for_review(db, perms, swap_id)

    swap.status = SWAP_REJECTED
    swap.reviewed_by = perms.user_id
    swap.reviewed_at = utcnow()
    return await _finish(db, swap)
