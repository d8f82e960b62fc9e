from __future__ import annotations

from typing import Callable

import structlog
from fastapi import Depends, HTTPException, status

from app.api.deps.tenant import get_current_internal_user
from app.auth.permissions import Capability, role_has_capability, role_is_at_least
from app.core.roles import UserRole
from app.models.user import InternalUser

logger = structlog.get_logger(__name__)

# Same message whatever was missing; never name the role that would pass.
INSUFFICIENT_PERMISSIONS = "Insufficient permissions"


def _deny(user: InternalUser, required: str) -> HTTPException:
    logger.info("permission_denied", user_id=str(user.id), role=user.role, required=required)
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=INSUFFICIENT_PERMISSIONS)


def require_capability(capability: Capability) -> Callable:
    """
    Dependency factory: passes the caller's InternalUser through when its role
    holds ``capability``.
    """

    async def _checker(
        user: InternalUser = Depends(get_current_internal_user),
    ) -> InternalUser:
        role = UserRole.parse(user.role)
        if role is None or not role_has_capability(role, capability):
            raise _deny(user, capability.value)
        return user

    return _checker


def require_minimum_role(minimum: UserRole) -> Callable:
    async def _checker(
        user: InternalUser = Depends(get_current_internal_user),
    ) -> InternalUser:
        role = UserRole.parse(user.role)
        if role is None or not role_is_at_least(role, minimum):
            raise _deny(user, minimum.value)
        return user

    return _checker
