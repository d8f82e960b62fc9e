from __future__ import annotations

import enum
from typing import FrozenSet, Mapping

from app.core.roles import UserRole


class Capability(str, enum.Enum):
    MANAGE_USERS = "users.manage"
    MANAGE_SETTINGS = "settings.manage"
    CREATE_CUSTOMER = "customers.create"
    EDIT_CUSTOMER = "customers.edit"
    DELETE_CUSTOMER = "customers.delete"
    VIEW_CUSTOMER = "customers.view"


_CUSTOMER_CAPABILITIES: FrozenSet[Capability] = frozenset(
    {
        Capability.CREATE_CUSTOMER,
        Capability.EDIT_CUSTOMER,
        Capability.DELETE_CUSTOMER,
        Capability.VIEW_CUSTOMER,
    }
)

ROLE_CAPABILITIES: Mapping[UserRole, FrozenSet[Capability]] = {
    UserRole.SUPER_ADMIN: frozenset(
        {Capability.MANAGE_USERS, Capability.MANAGE_SETTINGS} | _CUSTOMER_CAPABILITIES
    ),
    UserRole.MANAGER: _CUSTOMER_CAPABILITIES,
    UserRole.VIEWER: frozenset({Capability.VIEW_CUSTOMER}),
}


def capabilities_for_role(role: UserRole) -> FrozenSet[Capability]:
    return ROLE_CAPABILITIES.get(role, frozenset())


def role_has_capability(role: UserRole, capability: Capability) -> bool:
    return capability in capabilities_for_role(role)


def role_is_at_least(role: UserRole, minimum: UserRole) -> bool:
    return role.rank >= minimum.rank


def resolve_new_user_role(
    *,
    existing_user_count: int,
    requested: UserRole | None = None,
    requested_by: UserRole | None = None,
) -> UserRole:
    """
    Role for an internal user about to be created in a tenant.

    - The first user of a tenant is always SUPER_ADMIN, whatever was requested.
    - Later users are VIEWER unless a SUPER_ADMIN caller asked for another role.
    """
    if existing_user_count == 0:
        return UserRole.SUPER_ADMIN
    if requested is not None and requested_by == UserRole.SUPER_ADMIN:
        return requested
    return UserRole.VIEWER
