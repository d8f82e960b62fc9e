# tests/test_permissions.py
from __future__ import annotations

import pytest
from fastapi import HTTPException

from app.api.deps.permissions import require_capability, require_minimum_role
from app.auth.permissions import (
    Capability,
    capabilities_for_role,
    resolve_new_user_role,
    role_has_capability,
    role_is_at_least,
)
from app.core.roles import UserRole
from app.models.user import InternalUser

CUSTOMER_WRITES = [Capability.CREATE_CUSTOMER, Capability.EDIT_CUSTOMER, Capability.DELETE_CUSTOMER]
ADMIN_ONLY = [Capability.MANAGE_USERS, Capability.MANAGE_SETTINGS]


def test_super_admin_holds_everything():
    assert capabilities_for_role(UserRole.SUPER_ADMIN) == frozenset(Capability)


@pytest.mark.parametrize("capability", CUSTOMER_WRITES + [Capability.VIEW_CUSTOMER])
def test_manager_holds_customer_capabilities(capability):
    assert role_has_capability(UserRole.MANAGER, capability)


@pytest.mark.parametrize("capability", ADMIN_ONLY)
def test_manager_lacks_admin_capabilities(capability):
    assert not role_has_capability(UserRole.MANAGER, capability)


@pytest.mark.parametrize("capability", CUSTOMER_WRITES + ADMIN_ONLY)
def test_viewer_is_read_only(capability):
    assert not role_has_capability(UserRole.VIEWER, capability)


def test_viewer_can_view():
    assert capabilities_for_role(UserRole.VIEWER) == frozenset({Capability.VIEW_CUSTOMER})


def test_role_order():
    assert role_is_at_least(UserRole.SUPER_ADMIN, UserRole.MANAGER)
    assert role_is_at_least(UserRole.MANAGER, UserRole.MANAGER)
    assert not role_is_at_least(UserRole.VIEWER, UserRole.MANAGER)
    assert UserRole.SUPER_ADMIN.rank > UserRole.MANAGER.rank > UserRole.VIEWER.rank


def test_parse_role():
    assert UserRole.parse(" manager ") is UserRole.MANAGER
    assert UserRole.parse("OWNER") is None
    assert UserRole.parse(None) is None


def test_first_user_is_always_super_admin():
    assert resolve_new_user_role(existing_user_count=0) is UserRole.SUPER_ADMIN
    assert (
        resolve_new_user_role(
            existing_user_count=0,
            requested=UserRole.VIEWER,
            requested_by=UserRole.SUPER_ADMIN,
        )
        is UserRole.SUPER_ADMIN
    )


def test_later_users_default_to_viewer():
    assert resolve_new_user_role(existing_user_count=1) is UserRole.VIEWER
    assert (
        resolve_new_user_role(existing_user_count=3, requested=UserRole.MANAGER, requested_by=UserRole.MANAGER)
        is UserRole.VIEWER
    )


def test_super_admin_may_promote_on_creation():
    assert (
        resolve_new_user_role(existing_user_count=2, requested=UserRole.MANAGER, requested_by=UserRole.SUPER_ADMIN)
        is UserRole.MANAGER
    )


def _user(role: UserRole) -> InternalUser:
    return InternalUser(email="someone@example.com", first_name="Some", last_name="One", role=role.value)


@pytest.mark.asyncio
async def test_capability_gate_passes_user_through():
    user = _user(UserRole.MANAGER)

    assert await require_capability(Capability.DELETE_CUSTOMER)(user=user) is user


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "gate",
    [
        require_capability(Capability.MANAGE_SETTINGS),
        require_minimum_role(UserRole.SUPER_ADMIN),
    ],
)
async def test_denial_never_names_the_required_role(gate):
    with pytest.raises(HTTPException) as excinfo:
        await gate(user=_user(UserRole.MANAGER))

    assert excinfo.value.status_code == 403
    assert excinfo.value.detail == "Insufficient permissions"


@pytest.mark.asyncio
async def test_unknown_stored_role_is_denied():
    user = InternalUser(email="x@example.com", first_name="X", last_name="", role="OWNER")

    with pytest.raises(HTTPException):
        await require_minimum_role(UserRole.VIEWER)(user=user)
