from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scaleflow.api.deps.permissions import forbid, require_capabilities
from scaleflow.api.deps.session import get_current_company_id
from scaleflow.auth.permissions import Capability, SessionPermissions
from scaleflow.core.roles import Role
from scaleflow.crud.users import count_members_by_role
from scaleflow.db.session import get_db
from scaleflow.models.user import User
from scaleflow.schemas.employee import EmployeeOut, EmployeeStats, EmployeeUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


async def _load_visible_employee(
    db: AsyncSession,
    perms: SessionPermissions,
    employee_id: uuid.UUID,
) -> User:
    """
    Members of other companies are reported as missing, except to system admins.
    """
    employee = await db.get(User, employee_id)
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    if not perms.is_system_admin:
        if employee.company_id is None or employee.company_id != perms.company_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    return employee


def _ensure_can_manage(perms: SessionPermissions, employee: User) -> None:
    if not perms.can_manage_user(employee.company_id):
        forbid(perms, "can_manage_user", "You cannot manage this employee.")

    # Nobody edits someone who outranks them.
    if employee.id != perms.user_id and not perms.can_assign_role(employee.role):
        forbid(perms, "can_assign_role", "You cannot manage a user with a higher role.", target_role=employee.role)


@router.get("", response_model=List[EmployeeOut])
async def list_employees(
    role: Optional[Role] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(require_capabilities(Capability.VIEW_EMPLOYEES)),
):
    stmt = select(User).where(User.company_id == company_id)
    if role is not None:
        stmt = stmt.where(User.role == role.value)
    stmt = stmt.order_by(User.last_name, User.first_name, User.email)

    res = await db.execute(stmt)
    return list(res.scalars().all())


@router.get("/stats", response_model=EmployeeStats)
async def employee_stats(
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(require_capabilities(Capability.VIEW_EMPLOYEES)),
):
    by_role = await count_members_by_role(db, company_id)
    return EmployeeStats(total=sum(by_role.values()), by_role=by_role)


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(require_capabilities(Capability.VIEW_EMPLOYEES)),
):
    return await _load_visible_employee(db, perms, employee_id)


@router.patch("/{employee_id}", response_model=EmployeeOut)
async def update_employee(
    employee_id: uuid.UUID,
    payload: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(require_capabilities(Capability.MANAGE_EMPLOYEES)),
):
    """
    Update names and/or role of a company member.
    A role change also needs the new role to be assignable by the caller.
    """
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields provided to update.")

    employee = await _load_visible_employee(db, perms, employee_id)
    _ensure_can_manage(perms, employee)

    new_role: Optional[Role] = data.pop("role", None)
    if new_role is not None and new_role.value != employee.role:
        if employee.id == perms.user_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You cannot change your own role.",
            )
        if not perms.can_assign_role(new_role):
            forbid(
                perms,
                "can_assign_role",
                f"You cannot assign the role {new_role.value}.",
                target_role=new_role.value,
            )
        logger.info("user %s changed role of %s: %s -> %s", perms.user_id, employee.id, employee.role, new_role.value)
        employee.role = new_role.value

    for field, value in data.items():
        setattr(employee, field, value)

    await db.commit()
    await db.refresh(employee)
    return employee


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    perms: SessionPermissions = Depends(require_capabilities(Capability.MANAGE_EMPLOYEES)),
):
    """
    Detach a member from the company. The account itself is kept.
    """
    employee = await _load_visible_employee(db, perms, employee_id)

    if employee.id == perms.user_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You cannot remove yourself from the company.",
        )

    _ensure_can_manage(perms, employee)

    employee.company_id = None
    await db.commit()

    logger.info("user %s removed %s from their company", perms.user_id, employee.id)
    return None
