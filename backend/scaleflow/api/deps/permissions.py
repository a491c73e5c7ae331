from __future__ import annotations

import logging
from typing import Callable, NoReturn, Optional, Sequence

from fastapi import Depends, HTTPException, status

from scaleflow.api.deps.session import get_session_permissions
from scaleflow.auth.permissions import Capability, SessionPermissions
from scaleflow.core.roles import Role, parse_role
from scaleflow.core.routes import get_route_config, resolve_route_access

logger = logging.getLogger(__name__)


def forbid(perms: SessionPermissions, check: str, message: Optional[str] = None, **extra) -> NoReturn:
    logger.info(
        "permission denied: check=%s user=%s role=%s company=%s",
        check,
        perms.user_id,
        perms.role.value if perms.role else None,
        perms.company_id,
    )
    detail = {
        "code": "rbac_forbidden",
        "message": message or "You do not have permission to perform this action.",
        "check": check,
        "role": perms.role.value if perms.role else None,
    }
    detail.update(extra)
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def require_capabilities(
    required: Capability | Sequence[Capability],
    *,
    any_of: bool = False,
) -> Callable:
    """
    Enforce role capabilities for the current session.

    Args:
      required: capability OR list of capabilities
      any_of: True => any required capability passes; False => all are required
    """
    required_list = [required] if isinstance(required, Capability) else list(required)

    async def _checker(
        perms: SessionPermissions = Depends(get_session_permissions),
    ) -> SessionPermissions:
        checks = [perms.has(c) for c in required_list]
        allowed = any(checks) if any_of else all(checks)

        if not allowed:
            missing = [c.value for c, ok in zip(required_list, checks) if not ok]
            forbid(
                perms,
                "capabilities",
                required=[c.value for c in required_list],
                missing=missing,
            )

        return perms

    return _checker


def require_roles(*allowed_roles: Role | str) -> Callable:
    """
    Enforce session role is in allowed_roles.
    """
    allowed = {parse_role(r) for r in allowed_roles}
    if None in allowed:
        raise ValueError(f"Unknown role(s) in {allowed_roles!r}. Allowed: {[r.value for r in Role]}")

    async def _checker(
        perms: SessionPermissions = Depends(get_session_permissions),
    ) -> SessionPermissions:
        if perms.role not in allowed:
            forbid(
                perms,
                "roles",
                f"Insufficient role. Allowed: {', '.join(sorted(r.value for r in allowed))}",
            )
        return perms

    return _checker


def require_route(path: str) -> Callable:
    """
    Guard an endpoint with the same rule the front end applies to a page.
    """
    if get_route_config(path) is None:
        raise ValueError(f"Unknown route path: {path!r}")

    async def _checker(
        perms: SessionPermissions = Depends(get_session_permissions),
    ) -> SessionPermissions:
        decision = resolve_route_access(path, perms)
        if not decision.allowed:
            forbid(
                perms,
                "route",
                f"You do not have access to {path}.",
                outcome=decision.outcome.value,
                redirect_to=decision.redirect_to,
            )
        return perms

    return _checker
