# tests/test_routes.py
from __future__ import annotations

import uuid

import pytest

from scaleflow.auth.permissions import SessionPermissions
from scaleflow.core.roles import Role
from scaleflow.core.routes import (
    ALL_ROUTES,
    CREATE_COMPANY_PATH,
    LOGIN_PATH,
    RouteOutcome,
    get_accessible_routes,
    get_paths_for_role,
    get_route_config,
    get_unauthenticated_paths,
    is_auth_flow_route,
    is_public_route,
    resolve_route_access,
)


def session(role, with_company: bool = True) -> SessionPermissions:
    return SessionPermissions(
        user_id=uuid.uuid4(),
        role=role,
        company_id=uuid.uuid4() if with_company else None,
    )


def test_paths_are_unique():
    paths = [r.path for r in ALL_ROUTES]
    assert len(paths) == len(set(paths))


def test_route_lookup_normalizes_paths():
    assert get_route_config("/employees/").path == "/employees"
    assert get_route_config("employees").path == "/employees"
    assert get_route_config("/nowhere") is None


def test_public_and_auth_flow_routes():
    assert is_public_route("/") is True
    assert is_auth_flow_route("/login") is True
    assert is_auth_flow_route("/dashboard") is False
    assert set(get_unauthenticated_paths()) == {"/", "/login", "/register", "/verify"}


def test_paths_for_role():
    employee_paths = get_paths_for_role(Role.EMPLOYEE)
    assert "/my-schedule" in employee_paths
    assert "/schedules" not in employee_paths
    assert "/admin/users" in get_paths_for_role("system_admin")
    assert "/create-company" not in get_paths_for_role(None)


def test_anonymous_user_is_sent_to_login():
    decision = resolve_route_access("/dashboard", None)
    assert decision.outcome is RouteOutcome.LOGIN
    assert decision.redirect_to == LOGIN_PATH


def test_public_route_allows_anonymous():
    assert resolve_route_access("/", None).allowed


def test_unknown_route():
    assert resolve_route_access("/does-not-exist", session(Role.MANAGER)).outcome is RouteOutcome.NOT_FOUND


def test_user_without_company_is_sent_to_create_company():
    decision = resolve_route_access("/dashboard", session(Role.EMPLOYEE, with_company=False))
    assert decision.outcome is RouteOutcome.CREATE_COMPANY
    assert decision.redirect_to == CREATE_COMPANY_PATH


def test_wrong_role_is_denied_even_without_company():
    decision = resolve_route_access("/schedules", session(Role.EMPLOYEE, with_company=False))
    assert decision.outcome is RouteOutcome.DENIED


def test_employee_cannot_open_manager_pages():
    assert resolve_route_access("/employees", session(Role.EMPLOYEE)).outcome is RouteOutcome.DENIED
    assert resolve_route_access("/employees", session(Role.MANAGER)).allowed


def test_system_admin_needs_no_company():
    admin = session(Role.SYSTEM_ADMIN, with_company=False)
    assert resolve_route_access("/admin/companies", admin).allowed
    assert resolve_route_access("/dashboard", admin).allowed
    assert resolve_route_access(CREATE_COMPANY_PATH, admin).outcome is RouteOutcome.DENIED


@pytest.mark.parametrize("role", [Role.MANAGER, Role.EMPLOYEE])
def test_create_company_open_to_managers_and_employees(role):
    assert resolve_route_access(CREATE_COMPANY_PATH, session(role, with_company=False)).allowed


def test_accessible_routes_for_employee():
    paths = {r.path for r in get_accessible_routes(session(Role.EMPLOYEE))}
    assert paths == {
        "/",
        "/login",
        "/register",
        "/verify",
        "/create-company",
        "/dashboard",
        "/profile-settings",
        "/swap-requests",
        "/my-schedule",
        "/preferences",
    }


def test_accessible_routes_for_anonymous():
    assert {r.path for r in get_accessible_routes(None)} == set(get_unauthenticated_paths())
