# backend/scaleflow/core/routes.py
"""
Front-end route table.

Each entry states who may open a page and whether a company is required. The
same table drives the /navigation endpoints and documents which tables a page
reads, so it doubles as the contract between pages and the API.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Literal, Optional

from scaleflow.auth.permissions import SessionPermissions, can_access_route
from scaleflow.core.roles import Role, parse_role, role_requires_company

RouteCategory = Literal[
    "public",
    "auth_flow",
    "generic_protected",
    "manager_only",
    "employee_only",
    "system_admin",
]

LOGIN_PATH = "/login"
CREATE_COMPANY_PATH = "/create-company"


@dataclass(frozen=True)
class RouteConfig:
    path: str
    name: str
    description: str
    requires_auth: bool
    category: RouteCategory
    allowed_roles: Optional[tuple[Role, ...]] = None
    requires_company: Optional[bool] = None
    tables_accessed: tuple[str, ...] = ()


PUBLIC_ROUTES: tuple[RouteConfig, ...] = (
    RouteConfig(
        path="/",
        name="Landing Page",
        description="Public landing page",
        requires_auth=False,
        category="public",
    ),
)

AUTH_FLOW_ROUTES: tuple[RouteConfig, ...] = (
    RouteConfig(
        path=LOGIN_PATH,
        name="Login",
        description="User login page",
        requires_auth=False,
        category="auth_flow",
        tables_accessed=("profiles", "roles"),
    ),
    RouteConfig(
        path="/register",
        name="Register",
        description="User registration page",
        requires_auth=False,
        category="auth_flow",
        tables_accessed=("profiles", "roles"),
    ),
    RouteConfig(
        path="/verify",
        name="Verify Email",
        description="Email verification page",
        requires_auth=False,
        category="auth_flow",
    ),
)

# Managers and employees without a company may create one.
COMPANY_CREATION_ROUTE = RouteConfig(
    path=CREATE_COMPANY_PATH,
    name="Create Company",
    description="Page for creating a new company",
    requires_auth=True,
    requires_company=False,
    allowed_roles=(Role.MANAGER, Role.EMPLOYEE),
    category="generic_protected",
    tables_accessed=("companies", "profiles"),
)

GENERIC_PROTECTED_ROUTES: tuple[RouteConfig, ...] = (
    RouteConfig(
        path="/dashboard",
        name="Dashboard",
        description="Main dashboard for all authenticated users",
        requires_auth=True,
        requires_company=True,
        category="generic_protected",
        tables_accessed=("shifts", "profiles", "swap_requests"),
    ),
    RouteConfig(
        path="/profile-settings",
        name="Profile Settings",
        description="User profile settings page",
        requires_auth=True,
        requires_company=True,
        category="generic_protected",
        tables_accessed=("profiles",),
    ),
    RouteConfig(
        path="/swap-requests",
        name="Swap Requests",
        description="View and manage shift swap requests",
        requires_auth=True,
        requires_company=True,
        category="generic_protected",
        tables_accessed=("swap_requests", "shifts", "profiles"),
    ),
)

MANAGER_ROUTES: tuple[RouteConfig, ...] = (
    RouteConfig(
        path="/schedules",
        name="Schedules",
        description="Manage company schedules and shifts",
        requires_auth=True,
        requires_company=True,
        allowed_roles=(Role.MANAGER,),
        category="manager_only",
        tables_accessed=("shifts", "profiles", "shift_templates"),
    ),
    RouteConfig(
        path="/employees",
        name="Employees",
        description="Manage company employees",
        requires_auth=True,
        requires_company=True,
        allowed_roles=(Role.MANAGER,),
        category="manager_only",
        tables_accessed=("profiles", "roles"),
    ),
    RouteConfig(
        path="/company-settings",
        name="Company Settings",
        description="Manage company settings",
        requires_auth=True,
        requires_company=True,
        allowed_roles=(Role.MANAGER,),
        category="manager_only",
        tables_accessed=("companies",),
    ),
    RouteConfig(
        path="/shift-templates",
        name="Shift Templates",
        description="Manage shift templates",
        requires_auth=True,
        requires_company=True,
        allowed_roles=(Role.MANAGER,),
        category="manager_only",
        tables_accessed=("shift_templates",),
    ),
    RouteConfig(
        path="/employee-preferences",
        name="Employee Preferences",
        description="View and manage employee schedule preferences",
        requires_auth=True,
        requires_company=True,
        allowed_roles=(Role.MANAGER,),
        category="manager_only",
        tables_accessed=("preferences", "profiles"),
    ),
)

EMPLOYEE_ROUTES: tuple[RouteConfig, ...] = (
    RouteConfig(
        path="/my-schedule",
        name="My Schedule",
        description="View personal schedule",
        requires_auth=True,
        requires_company=True,
        allowed_roles=(Role.EMPLOYEE,),
        category="employee_only",
        tables_accessed=("shifts",),
    ),
    RouteConfig(
        path="/preferences",
        name="Preferences",
        description="Manage personal schedule preferences",
        requires_auth=True,
        requires_company=True,
        allowed_roles=(Role.EMPLOYEE,),
        category="employee_only",
        tables_accessed=("preferences",),
    ),
)

SYSTEM_ADMIN_ROUTES: tuple[RouteConfig, ...] = (
    RouteConfig(
        path="/admin/companies",
        name="Admin - Companies",
        description="System-wide company management",
        requires_auth=True,
        requires_company=False,
        allowed_roles=(Role.SYSTEM_ADMIN,),
        category="system_admin",
        tables_accessed=("companies", "profiles"),
    ),
    RouteConfig(
        path="/admin/users",
        name="Admin - Users",
        description="System-wide user management",
        requires_auth=True,
        requires_company=False,
        allowed_roles=(Role.SYSTEM_ADMIN,),
        category="system_admin",
        tables_accessed=("profiles", "roles"),
    ),
)

ALL_ROUTES: tuple[RouteConfig, ...] = (
    *PUBLIC_ROUTES,
    *AUTH_FLOW_ROUTES,
    COMPANY_CREATION_ROUTE,
    *GENERIC_PROTECTED_ROUTES,
    *MANAGER_ROUTES,
    *EMPLOYEE_ROUTES,
    *SYSTEM_ADMIN_ROUTES,
)

_ROUTES_BY_PATH: dict[str, RouteConfig] = {r.path: r for r in ALL_ROUTES}


def _normalize_path(path: str) -> str:
    p = (path or "").strip()
    if not p.startswith("/"):
        p = "/" + p
    if len(p) > 1:
        p = p.rstrip("/")
    return p


def get_route_config(path: str) -> Optional[RouteConfig]:
    return _ROUTES_BY_PATH.get(_normalize_path(path))


def is_public_route(path: str) -> bool:
    p = _normalize_path(path)
    return any(r.path == p for r in PUBLIC_ROUTES)


def is_auth_flow_route(path: str) -> bool:
    p = _normalize_path(path)
    return any(r.path == p for r in AUTH_FLOW_ROUTES)


def get_unauthenticated_paths() -> list[str]:
    return [r.path for r in ALL_ROUTES if not r.requires_auth]


def get_paths_for_role(role: Role | str | None) -> list[str]:
    r = parse_role(role)
    return [
        route.path
        for route in ALL_ROUTES
        if not route.allowed_roles or (r is not None and r in route.allowed_roles)
    ]


# ---------------------------------------------------------
# Route guard
# ---------------------------------------------------------
class RouteOutcome(str, enum.Enum):
    ALLOW = "allow"
    LOGIN = "login"
    CREATE_COMPANY = "create_company"
    DENIED = "denied"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class RouteDecision:
    path: str
    outcome: RouteOutcome
    redirect_to: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome is RouteOutcome.ALLOW


def resolve_route_access(path: str, session: Optional[SessionPermissions]) -> RouteDecision:
    p = _normalize_path(path)
    route = get_route_config(p)
    if route is None:
        return RouteDecision(path=p, outcome=RouteOutcome.NOT_FOUND)

    if not route.requires_auth:
        return RouteDecision(path=p, outcome=RouteOutcome.ALLOW)

    if session is None or session.user_id is None:
        return RouteDecision(path=p, outcome=RouteOutcome.LOGIN, redirect_to=LOGIN_PATH)

    if can_access_route(session.role, route.allowed_roles, route.requires_company, session.has_company):
        return RouteDecision(path=p, outcome=RouteOutcome.ALLOW)

    # Role passed the allow-list, so the company requirement is what failed.
    if can_access_route(session.role, route.allowed_roles, False, session.has_company) and role_requires_company(session.role):
        return RouteDecision(path=p, outcome=RouteOutcome.CREATE_COMPANY, redirect_to=CREATE_COMPANY_PATH)

    return RouteDecision(path=p, outcome=RouteOutcome.DENIED)


def get_accessible_routes(session: Optional[SessionPermissions]) -> list[RouteConfig]:
    return [r for r in ALL_ROUTES if resolve_route_access(r.path, session).allowed]
