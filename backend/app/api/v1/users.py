# backend/app/api/v1/users.py
from __future__ import annotations

import uuid
from typing import List

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.permissions import require_capability
from app.api.deps.tenant import get_tenant
from app.auth.permissions import Capability
from app.core.errors import http_error, is_unique_violation
from app.core.roles import UserRole
from app.crud.internal_user import create_internal_user, get_user, get_user_by_email, list_users
from app.db.session import get_db
from app.models.tenant import Tenant
from app.models.user import InternalUser
from app.schemas.common import ApiResponse
from app.schemas.internal_user import InternalUserInvite, InternalUserOut, InternalUserRoleUpdate

router = APIRouter(prefix="/{tenant_slug}/users", tags=["users"])

logger = structlog.get_logger(__name__)

USER_NOT_FOUND = "User not found"


def _parse_role(value: str | None) -> UserRole:
    role = UserRole.parse(value)
    if role is None:
        allowed = ", ".join(r.value for r in UserRole)
        raise http_error(
            status.HTTP_400_BAD_REQUEST,
            "Invalid role",
            {"role": [f"Role must be one of: {allowed}"]},
        )
    return role


async def _load_user(db: AsyncSession, tenant: Tenant, user_id: uuid.UUID) -> InternalUser:
    user = await get_user(db, tenant_id=tenant.id, user_id=user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    return user


@router.get("", response_model=ApiResponse[List[InternalUserOut]])
async def list_tenant_users(
    _: InternalUser = Depends(require_capability(Capability.MANAGE_USERS)),
    tenant: Tenant = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
):
    users = await list_users(db, tenant.id)
    return ApiResponse(data=[InternalUserOut.from_model(u) for u in users])


@router.post("", response_model=ApiResponse[InternalUserOut], status_code=status.HTTP_201_CREATED)
async def invite_user(
    payload: InternalUserInvite,
    caller: InternalUser = Depends(require_capability(Capability.MANAGE_USERS)),
    tenant: Tenant = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
):
    """
    Pre-creates an internal user for an email address. The row is claimed
    when an identity with that email is provisioned for this tenant.
    """
    requested = _parse_role(payload.role) if payload.role else None

    if await get_user_by_email(db, tenant_id=tenant.id, email=str(payload.email)) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")

    try:
        user = await create_internal_user(
            db,
            tenant=tenant,
            email=str(payload.email),
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            requested_role=requested,
            requested_by=caller.user_role,
        )
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if is_unique_violation(exc):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")
        raise

    await db.refresh(user)
    logger.info("internal_user_invited", user_id=str(user.id), role=user.role, invited_by=str(caller.id))
    return ApiResponse(data=InternalUserOut.from_model(user), message="User invited")


@router.patch("/{user_id}/role", response_model=ApiResponse[InternalUserOut])
async def change_user_role(
    user_id: uuid.UUID,
    payload: InternalUserRoleUpdate,
    caller: InternalUser = Depends(require_capability(Capability.MANAGE_USERS)),
    tenant: Tenant = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
):
    role = _parse_role(payload.role)
    user = await _load_user(db, tenant, user_id)

    if user.id == caller.id and role != caller.user_role:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")

    previous = user.role
    user.role = role.value
    await db.commit()
    await db.refresh(user)

    logger.info("internal_user_role_changed", user_id=str(user.id), previous=previous, role=role.value)
    return ApiResponse(data=InternalUserOut.from_model(user), message="Role updated")


@router.delete("/{user_id}", response_model=ApiResponse[dict])
async def delete_user(
    user_id: uuid.UUID,
    caller: InternalUser = Depends(require_capability(Capability.MANAGE_USERS)),
    tenant: Tenant = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
):
    """Removes dashboard access only; the external identity is untouched."""
    user = await _load_user(db, tenant, user_id)
    if user.id == caller.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete yourself")

    await db.delete(user)
    await db.commit()

    logger.info("internal_user_deleted", user_id=str(user_id), deleted_by=str(caller.id))
    return ApiResponse(data={"message": "User deleted successfully"}, message="User deleted successfully")
