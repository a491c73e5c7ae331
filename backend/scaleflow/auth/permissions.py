"""
Role capability table and permission predicates.

Every function here is pure and total: missing context (no role, no user id,
no company id) resolves to "deny", and nothing raises. Routers and
dependencies call into this module instead of comparing role names themselves.
"""
from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from scaleflow.core.roles import (
    ROLE_INFO,
    ROLE_ORDER,
    PermissionLevel,
    Role,
    get_role_level,
    parse_role,
)

RoleLike = Role | str | None
CompanyId = uuid.UUID | str | None
UserId = uuid.UUID | str | None


class Capability(str, enum.Enum):
    MANAGE_COMPANY = "manage_company"
    MANAGE_SCHEDULES = "manage_schedules"
    MANAGE_EMPLOYEES = "manage_employees"
    VIEW_EMPLOYEES = "view_employees"
    APPROVE_SWAPS = "approve_swaps"
    APPROVE_PREFERENCES = "approve_preferences"
    VIEW_REPORTS = "view_reports"
    ACCESS_ADMIN = "access_admin"


# Minimum level that grants each capability.
CAPABILITY_THRESHOLDS: dict[Capability, PermissionLevel] = {
    Capability.MANAGE_COMPANY: PermissionLevel.COMPANY_ADMIN,
    Capability.MANAGE_SCHEDULES: PermissionLevel.SCHEDULE_ADMIN,
    Capability.MANAGE_EMPLOYEES: PermissionLevel.COMPANY_ADMIN,
    Capability.VIEW_EMPLOYEES: PermissionLevel.OPERATIONS,
    Capability.APPROVE_SWAPS: PermissionLevel.SCHEDULE_ADMIN,
    Capability.APPROVE_PREFERENCES: PermissionLevel.SCHEDULE_ADMIN,
    Capability.VIEW_REPORTS: PermissionLevel.OPERATIONS,
    Capability.ACCESS_ADMIN: PermissionLevel.PLATFORM_ADMIN,
}


@dataclass(frozen=True)
class CapabilitySet:
    can_manage_company: bool = False
    can_manage_schedules: bool = False
    can_manage_employees: bool = False
    can_view_employees: bool = False
    can_approve_swaps: bool = False
    can_approve_preferences: bool = False
    can_view_reports: bool = False
    can_access_admin: bool = False
    requires_company: bool = True

    def has(self, capability: Capability | str) -> bool:
        try:
            cap = Capability(capability)
        except ValueError:
            return False
        return bool(getattr(self, f"can_{cap.value}"))

    def granted(self) -> tuple[Capability, ...]:
        return tuple(c for c in Capability if self.has(c))

    def as_dict(self) -> dict[str, bool]:
        return {
            "can_manage_company": self.can_manage_company,
            "can_manage_schedules": self.can_manage_schedules,
            "can_manage_employees": self.can_manage_employees,
            "can_view_employees": self.can_view_employees,
            "can_approve_swaps": self.can_approve_swaps,
            "can_approve_preferences": self.can_approve_preferences,
            "can_view_reports": self.can_view_reports,
            "can_access_admin": self.can_access_admin,
            "requires_company": self.requires_company,
        }


NO_CAPABILITIES = CapabilitySet()


def _build_capability_set(role: Role) -> CapabilitySet:
    level = get_role_level(role)
    flags = {f"can_{cap.value}": level >= threshold for cap, threshold in CAPABILITY_THRESHOLDS.items()}
    return CapabilitySet(requires_company=ROLE_INFO[role].requires_company, **flags)


# Computed once; the table is a pure function of the role.
ROLE_CAPABILITIES: dict[Role, CapabilitySet] = {role: _build_capability_set(role) for role in Role}


def _same_company(a: CompanyId, b: CompanyId) -> bool:
    # Missing ids never act as wildcards.
    if a is None or b is None:
        return False
    return str(a) == str(b)


def _same_user(a: UserId, b: UserId) -> bool:
    if a is None or b is None:
        return False
    return str(a) == str(b)


def get_role_permissions(role: RoleLike) -> CapabilitySet:
    r = parse_role(role)
    if r is None:
        return NO_CAPABILITIES
    return ROLE_CAPABILITIES[r]


def has_capability(role: RoleLike, capability: Capability | str) -> bool:
    return get_role_permissions(role).has(capability)


def _company_scoped(role: RoleLike, capability: Capability, actor_company_id: CompanyId, target_company_id: CompanyId) -> bool:
    r = parse_role(role)
    if r is None:
        return False
    # Cross-company override
    if r is Role.SYSTEM_ADMIN:
        return True
    if not ROLE_CAPABILITIES[r].has(capability):
        return False
    return _same_company(actor_company_id, target_company_id)


def can_access_route(
    role: RoleLike,
    allowed_roles: Optional[Iterable[RoleLike]] = None,
    requires_company: Optional[bool] = None,
    has_company: bool = False,
) -> bool:
    r = parse_role(role)
    if r is None:
        return False

    restricted = list(allowed_roles or [])
    if restricted and r not in {parse_role(x) for x in restricted}:
        return False

    if requires_company and not has_company:
        # Roles that live outside any company (system_admin) pass without one.
        return not ROLE_INFO[r].requires_company

    return True


def can_manage_user(role: RoleLike, company_id: CompanyId, target_company_id: CompanyId) -> bool:
    return _company_scoped(role, Capability.MANAGE_EMPLOYEES, company_id, target_company_id)


def can_modify_shift(role: RoleLike, company_id: CompanyId, shift_company_id: CompanyId) -> bool:
    return _company_scoped(role, Capability.MANAGE_SCHEDULES, company_id, shift_company_id)


def can_view_shift(
    role: RoleLike,
    user_id: UserId,
    company_id: CompanyId,
    shift_employee_id: UserId,
    shift_company_id: CompanyId,
    is_published: bool,
) -> bool:
    """
    Owners always see their own shift, published or not. Otherwise only roles
    that can view employees see shifts, and only inside their own company;
    unpublished shifts therefore stay manager-side.
    """
    r = parse_role(role)
    if r is None or user_id is None:
        return False
    if r is Role.SYSTEM_ADMIN:
        return True
    if _same_user(user_id, shift_employee_id):
        return True
    return _company_scoped(r, Capability.VIEW_EMPLOYEES, company_id, shift_company_id)


def can_approve_swap_request(role: RoleLike, company_id: CompanyId, shift_company_id: CompanyId) -> bool:
    return _company_scoped(role, Capability.APPROVE_SWAPS, company_id, shift_company_id)


def can_approve_preference(role: RoleLike, company_id: CompanyId, preference_owner_company_id: CompanyId) -> bool:
    return _company_scoped(role, Capability.APPROVE_PREFERENCES, company_id, preference_owner_company_id)


def get_assignable_roles(role: RoleLike) -> list[Role]:
    r = parse_role(role)
    if r is None or not ROLE_CAPABILITIES[r].can_manage_employees:
        return []
    level = get_role_level(r)
    return [
        candidate
        for candidate in ROLE_ORDER
        if get_role_level(candidate) <= level
        and (candidate is not Role.SYSTEM_ADMIN or r is Role.SYSTEM_ADMIN)
    ]


def can_assign_role(role: RoleLike, target_role: RoleLike) -> bool:
    target = parse_role(target_role)
    if target is None:
        return False
    return target in get_assignable_roles(role)


def get_role_capabilities(role: RoleLike) -> list[str]:
    """Human-readable capability list for profile / admin screens."""
    r = parse_role(role)
    if r is None:
        return []

    perms = ROLE_CAPABILITIES[r]
    out: list[str] = []

    if perms.can_access_admin:
        out += ["Manage all companies and users", "Configure platform settings", "Manage feature flags"]
    if perms.can_manage_company:
        out += ["Manage company settings", "Add and remove employees"]
    if perms.can_manage_schedules:
        out += ["Create and modify schedules", "Manage shift templates", "Publish shifts"]
    if perms.can_view_employees:
        out.append("View employee information")
    if perms.can_approve_swaps:
        out.append("Approve shift swap requests")
    if perms.can_approve_preferences:
        out.append("Review and approve employee preferences")
    if perms.can_view_reports:
        out.append("View operational reports")

    out += ["View personal schedule", "Update profile settings"]

    if r in (Role.EMPLOYEE, Role.STAFF):
        out += ["Submit availability preferences", "Request shift swaps"]

    return out


@dataclass(frozen=True)
class SessionPermissions:
    """
    Permission checks bound to one authenticated session, so callers only pass
    the target resource's metadata.
    """

    user_id: UserId
    role: Optional[Role]
    company_id: CompanyId
    permissions: CapabilitySet = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", parse_role(self.role))
        object.__setattr__(self, "permissions", get_role_permissions(self.role))

    @property
    def has_company(self) -> bool:
        return self.company_id is not None

    @property
    def is_system_admin(self) -> bool:
        return self.role is Role.SYSTEM_ADMIN

    @property
    def capabilities(self) -> list[str]:
        return get_role_capabilities(self.role)

    @property
    def assignable_roles(self) -> list[Role]:
        return get_assignable_roles(self.role)

    def has(self, capability: Capability | str) -> bool:
        return self.permissions.has(capability)

    def can_access_route(self, allowed_roles: Optional[Sequence[RoleLike]] = None, requires_company: Optional[bool] = None) -> bool:
        return can_access_route(self.role, allowed_roles, requires_company, self.has_company)

    def can_manage_user(self, target_company_id: CompanyId) -> bool:
        return can_manage_user(self.role, self.company_id, target_company_id)

    def can_assign_role(self, target_role: RoleLike) -> bool:
        return can_assign_role(self.role, target_role)

    def can_modify_shift(self, shift_company_id: CompanyId) -> bool:
        return can_modify_shift(self.role, self.company_id, shift_company_id)

    def can_view_shift(self, shift_employee_id: UserId, shift_company_id: CompanyId, is_published: bool) -> bool:
        return can_view_shift(self.role, self.user_id, self.company_id, shift_employee_id, shift_company_id, is_published)

    def can_approve_swap_request(self, shift_company_id: CompanyId) -> bool:
        return can_approve_swap_request(self.role, self.company_id, shift_company_id)

    def can_approve_preference(self, preference_owner_company_id: CompanyId) -> bool:
        return can_approve_preference(self.role, self.company_id, preference_owner_company_id)

    def summary(self) -> dict[str, Any]:
        return {
            "user_id": str(self.user_id) if self.user_id is not None else None,
            "role": self.role.value if self.role else None,
            "company_id": str(self.company_id) if self.company_id is not None else None,
            "permissions": self.permissions.as_dict(),
            "granted": [c.value for c in self.permissions.granted()],
            "capabilities": self.capabilities,
            "assignable_roles": [r.value for r in self.assignable_roles],
        }
