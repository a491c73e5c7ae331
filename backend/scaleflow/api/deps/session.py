from __future__ import annotations

import uuid

from fastapi import Depends, HTTPException, status

from scaleflow.api.v1.auth import get_current_user
from scaleflow.auth.permissions import SessionPermissions
from scaleflow.models.user import User


async def get_session_permissions(
    user: User = Depends(get_current_user),
) -> SessionPermissions:
    """
    Bind the permission predicates to the caller's (user, role, company).
    Unknown stored roles fall through parse_role() to "no capabilities".
    """
    return SessionPermissions(user_id=user.id, role=user.role, company_id=user.company_id)


async def get_current_company_id(
    perms: SessionPermissions = Depends(get_session_permissions),
) -> uuid.UUID:
    """
    Company of the caller, for company-scoped endpoints.
    """
    if perms.company_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "code": "company_required",
                "message": "You must belong to a company to use this endpoint.",
            },
        )
    return perms.company_id
