# app/crud/internal_user.py
from __future__ import annotations

import enum
import uuid
from typing import Optional, Sequence

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.permissions import resolve_new_user_role
from app.core.roles import UserRole
from app.models.tenant import Tenant
from app.models.user import InternalUser

logger = structlog.get_logger(__name__)


class ProvisionOutcome(str, enum.Enum):
    CREATED = "created"
    LINKED = "linked"        # claimed an invitation row for the same email
    DUPLICATE = "duplicate"  # identity already provisioned; redelivery


async def count_users(db: AsyncSession, tenant_id: uuid.UUID) -> int:
    stmt = select(func.count(InternalUser.id)).where(InternalUser.tenant_id == tenant_id)
    res = await db.execute(stmt)
    return int(res.scalar() or 0)


async def get_user(db: AsyncSession, *, tenant_id: uuid.UUID, user_id: uuid.UUID) -> InternalUser | None:
    stmt = select(InternalUser).where(
        InternalUser.id == user_id,
        InternalUser.tenant_id == tenant_id,
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_user_by_external_id(db: AsyncSession, external_id: str) -> InternalUser | None:
    stmt = select(InternalUser).where(InternalUser.external_id == external_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, *, tenant_id: uuid.UUID, email: str) -> InternalUser | None:
    stmt = select(InternalUser).where(
        InternalUser.tenant_id == tenant_id,
        InternalUser.email == InternalUser.normalize_email(email),
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def list_users(db: AsyncSession, tenant_id: uuid.UUID) -> Sequence[InternalUser]:
    stmt = (
        select(InternalUser)
        .where(InternalUser.tenant_id == tenant_id)
        .order_by(InternalUser.created_at.asc(), InternalUser.id)
    )
    return (await db.execute(stmt)).scalars().all()


async def create_internal_user(
    db: AsyncSession,
    *,
    tenant: Tenant,
    email: str,
    first_name: str,
    last_name: str = "",
    external_id: Optional[str] = None,
    requested_role: Optional[UserRole] = None,
    requested_by: Optional[UserRole] = None,
) -> InternalUser:
    """
    Adds a user under ``tenant`` with the first-user rule applied. The tenant
    row is locked before counting so two concurrent first users cannot both
    become SUPER_ADMIN (no-op on SQLite). Only flushes.
    """
    await db.execute(select(Tenant.id).where(Tenant.id == tenant.id).with_for_update())

    existing = await count_users(db, tenant.id)
    role = resolve_new_user_role(
        existing_user_count=existing,
        requested=requested_role,
        requested_by=requested_by,
    )

    user = InternalUser(
        tenant_id=tenant.id,
        external_id=external_id,
        email=InternalUser.normalize_email(email),
        first_name=first_name,
        last_name=last_name or "",
        role=role.value,
    )
    db.add(user)
    await db.flush()

    logger.info(
        "internal_user_created",
        tenant_slug=tenant.slug,
        user_id=str(user.id),
        role=role.value,
        first_user=existing == 0,
    )
    return user


async def provision_from_identity(
    db: AsyncSession,
    *,
    tenant: Tenant,
    external_id: str,
    email: str,
    first_name: str,
    last_name: str = "",
) -> tuple[InternalUser, ProvisionOutcome]:
    """
    Idempotent handling of an identity-created event. Only flushes.
    """
    existing = await get_user_by_external_id(db, external_id)
    if existing is not None:
        return existing, ProvisionOutcome.DUPLICATE

    invited = await get_user_by_email(db, tenant_id=tenant.id, email=email)
    if invited is not None and invited.external_id is None:
        invited.external_id = external_id
        if first_name and not invited.first_name:
            invited.first_name = first_name
        if last_name and not invited.last_name:
            invited.last_name = last_name
        await db.flush()
        logger.info("internal_user_linked", tenant_slug=tenant.slug, user_id=str(invited.id))
        return invited, ProvisionOutcome.LINKED

    user = await create_internal_user(
        db,
        tenant=tenant,
        email=email,
        first_name=first_name,
        last_name=last_name,
        external_id=external_id,
    )
    return user, ProvisionOutcome.CREATED
