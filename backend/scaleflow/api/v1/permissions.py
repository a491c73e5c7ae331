from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from scaleflow.api.deps.session import get_session_permissions
from scaleflow.api.v1.auth import get_optional_user
from scaleflow.auth.gate import GateRequirements, evaluate_gate
from scaleflow.auth.permissions import SessionPermissions
from scaleflow.core.routes import RouteConfig, get_accessible_routes, resolve_route_access
from scaleflow.models.user import User
from scaleflow.schemas.permissions import (
    GateRequest,
    GateResponse,
    RouteCheckOut,
    RouteOut,
)

router = APIRouter(tags=["permissions"])


def _route_out(route: RouteConfig) -> RouteOut:
    return RouteOut(
        path=route.path,
        name=route.name,
        description=route.description,
        category=route.category,
        requires_auth=route.requires_auth,
        requires_company=route.requires_company,
        allowed_roles=[r.value for r in route.allowed_roles] if route.allowed_roles else None,
    )


@router.post("/permissions/gate", response_model=GateResponse)
async def check_gate(
    payload: GateRequest,
    perms: SessionPermissions = Depends(get_session_permissions),
):
    """
    Decide how a permission-gated element renders for the caller.
    """
    requirements = GateRequirements.build(
        allowed_roles=payload.allowed_roles,
        capabilities=payload.capabilities,
    )
    decision = evaluate_gate(
        perms.role,
        requirements,
        has_fallback=payload.has_fallback,
        disable_instead=payload.disable_instead,
        show_tooltip=payload.show_tooltip,
        tooltip_message=payload.tooltip_message,
    )
    return GateResponse(
        variant=decision.variant,
        allowed=decision.allowed,
        attributes=decision.attributes,
        tooltip=decision.tooltip,
    )


@router.get("/navigation", response_model=List[RouteOut])
async def list_navigation(
    perms: SessionPermissions = Depends(get_session_permissions),
):
    return [_route_out(r) for r in get_accessible_routes(perms)]


@router.get("/navigation/check", response_model=RouteCheckOut)
async def check_navigation(
    path: str = Query(..., min_length=1, max_length=200),
    user: Optional[User] = Depends(get_optional_user),
):
    """
    Where a page request ends up: allow, login, create_company, denied or not_found.
    Works without a token so the login screen can ask too.
    """
    session = None
    if user is not None:
        session = SessionPermissions(user_id=user.id, role=user.role, company_id=user.company_id)

    decision = resolve_route_access(path, session)
    return RouteCheckOut(
        path=decision.path,
        outcome=decision.outcome.value,
        allowed=decision.allowed,
        redirect_to=decision.redirect_to,
    )
