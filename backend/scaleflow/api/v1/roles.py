from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query

from scaleflow.api.deps.session import get_session_permissions
from scaleflow.auth.permissions import SessionPermissions
from scaleflow.core.roles import ROLE_INFO, ROLE_ORDER, Role, get_role_level
from scaleflow.schemas.employee import RoleOut

router = APIRouter(prefix="/roles", tags=["roles"])


def _role_out(role: Role) -> RoleOut:
    info = ROLE_INFO[role]
    return RoleOut(
        name=role.value,
        display_name=info.name,
        description=info.description,
        requires_company=info.requires_company,
        can_access_admin=info.can_access_admin,
        level=int(get_role_level(role)),
    )


@router.get("", response_model=List[RoleOut])
async def list_roles(
    exclude_system_admin: bool = Query(default=False),
    _perms: SessionPermissions = Depends(get_session_permissions),
):
    """
    Every role in rank order. Role pickers pass exclude_system_admin=true.
    """
    return [
        _role_out(r)
        for r in ROLE_ORDER
        if not (exclude_system_admin and r is Role.SYSTEM_ADMIN)
    ]


@router.get("/assignable", response_model=List[RoleOut])
async def list_assignable_roles(
    perms: SessionPermissions = Depends(get_session_permissions),
):
    return [_role_out(r) for r in perms.assignable_roles]
