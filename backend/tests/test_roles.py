# tests/test_roles.py
from __future__ import annotations

import pytest

from scaleflow.core.roles import (
    ROLE_INFO,
    ROLE_ORDER,
    PermissionLevel,
    Role,
    can_access_admin_routes,
    get_role_level,
    has_minimum_level,
    is_valid_role,
    parse_role,
    role_requires_company,
)


def test_every_role_has_metadata_and_a_rank():
    assert set(ROLE_INFO) == set(Role)
    assert set(ROLE_ORDER) == set(Role)


def test_rank_order_is_non_increasing():
    levels = [get_role_level(r) for r in ROLE_ORDER]
    assert levels == sorted(levels, reverse=True)


@pytest.mark.parametrize(
    "role, level",
    [
        (Role.SYSTEM_ADMIN, PermissionLevel.PLATFORM_ADMIN),
        (Role.MANAGER, PermissionLevel.COMPANY_ADMIN),
        (Role.SCHEDULE_MANAGER, PermissionLevel.SCHEDULE_ADMIN),
        (Role.OPERATOR, PermissionLevel.OPERATIONS),
        (Role.EMPLOYEE, PermissionLevel.BASIC),
        (Role.STAFF, PermissionLevel.BASIC),
    ],
)
def test_role_levels(role, level):
    assert get_role_level(role) == level


def test_minimum_level():
    assert has_minimum_level(Role.MANAGER, PermissionLevel.SCHEDULE_ADMIN) is True
    assert has_minimum_level(Role.OPERATOR, PermissionLevel.SCHEDULE_ADMIN) is False


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("manager", Role.MANAGER),
        (" Schedule_Manager ", Role.SCHEDULE_MANAGER),
        (Role.STAFF, Role.STAFF),
        ("owner", None),
        ("", None),
        (None, None),
        (3, None),
    ],
)
def test_parse_role_is_lenient(raw, expected):
    assert parse_role(raw) is expected
    assert is_valid_role(raw) is (expected is not None)


def test_only_system_admin_lives_outside_a_company():
    assert role_requires_company(Role.SYSTEM_ADMIN) is False
    for role in Role:
        if role is not Role.SYSTEM_ADMIN:
            assert role_requires_company(role) is True
    assert role_requires_company(None) is True


def test_admin_routes():
    assert can_access_admin_routes("system_admin") is True
    assert can_access_admin_routes(Role.MANAGER) is False
    assert can_access_admin_routes("unknown") is False
