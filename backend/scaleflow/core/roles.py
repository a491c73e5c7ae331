# backend/scaleflow/core/roles.py
"""
Role definitions shared by routing, the permission table and the database.

Role values are stored verbatim in users.role / invitations.role, so the
wire names below must never change.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Mapping, assert_never


class Role(str, enum.Enum):
    SYSTEM_ADMIN = "system_admin"          # platform-wide, cross-company
    MANAGER = "manager"                    # company admin
    SCHEDULE_MANAGER = "schedule_manager"  # shift planning
    OPERATOR = "operator"                  # operations / reporting
    EMPLOYEE = "employee"
    STAFF = "staff"


class PermissionLevel(enum.IntEnum):
    PLATFORM_ADMIN = 5   # system_admin
    COMPANY_ADMIN = 4    # manager
    SCHEDULE_ADMIN = 3   # schedule_manager
    OPERATIONS = 2       # operator
    BASIC = 1            # employee, staff


# Display / assignment order, highest rank first.
ROLE_ORDER: tuple[Role, ...] = (
    Role.SYSTEM_ADMIN,
    Role.MANAGER,
    Role.SCHEDULE_MANAGER,
    Role.OPERATOR,
    Role.EMPLOYEE,
    Role.STAFF,
)


@dataclass(frozen=True)
class RoleInfo:
    name: str
    description: str
    requires_company: bool
    can_access_admin: bool


ROLE_INFO: Mapping[Role, RoleInfo] = {
    Role.EMPLOYEE: RoleInfo(
        name="Employee",
        description="Standard employee with access to their own schedules and preferences",
        requires_company=True,
        can_access_admin=False,
    ),
    Role.STAFF: RoleInfo(
        name="Staff",
        description="General staff member with basic access to personal schedules and preferences",
        requires_company=True,
        can_access_admin=False,
    ),
    Role.OPERATOR: RoleInfo(
        name="Operator",
        description="Operations team member with access to operational tasks and reporting",
        requires_company=True,
        can_access_admin=False,
    ),
    Role.SCHEDULE_MANAGER: RoleInfo(
        name="Schedule Manager",
        description="Schedule management specialist with focus on shift planning and coordination",
        requires_company=True,
        can_access_admin=False,
    ),
    Role.MANAGER: RoleInfo(
        name="Manager",
        description="Company manager with full control over schedules, employees, and settings",
        requires_company=True,
        can_access_admin=False,
    ),
    Role.SYSTEM_ADMIN: RoleInfo(
        name="System Administrator",
        description="System-wide administrator with cross-company access",
        requires_company=False,
        can_access_admin=True,
    ),
}


def parse_role(value: Role | str | None) -> Role | None:
    """
    Lenient conversion used at every boundary. Unknown or empty values map to
    None, which the permission layer treats as "no capabilities".
    """
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        return None
    v = value.strip().lower()
    try:
        return Role(v)
    except ValueError:
        return None


def is_valid_role(value: Role | str | None) -> bool:
    return parse_role(value) is not None


def get_role_level(role: Role) -> PermissionLevel:
    match role:
        case Role.SYSTEM_ADMIN:
            return PermissionLevel.PLATFORM_ADMIN
        case Role.MANAGER:
            return PermissionLevel.COMPANY_ADMIN
        case Role.SCHEDULE_MANAGER:
            return PermissionLevel.SCHEDULE_ADMIN
        case Role.OPERATOR:
            return PermissionLevel.OPERATIONS
        case Role.EMPLOYEE | Role.STAFF:
            return PermissionLevel.BASIC
        case _:
            assert_never(role)


def has_minimum_level(role: Role, level: PermissionLevel) -> bool:
    return get_role_level(role) >= level


def role_requires_company(role: Role | str | None) -> bool:
    r = parse_role(role)
    if r is None:
        return True
    return ROLE_INFO[r].requires_company


def can_access_admin_routes(role: Role | str | None) -> bool:
    r = parse_role(role)
    if r is None:
        return False
    return ROLE_INFO[r].can_access_admin
