# backend/app/core/phone_availability.py
"""
Per-tenant phone availability.

The answer is advisory: nothing is locked between this read and the insert
that follows it. The (tenant_id, phone) unique constraint on ``customers``
decides, and callers must still translate an IntegrityError at write time.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.phone import is_canonical_form, validate_and_format_phone
from app.models.customer import Customer

logger = structlog.get_logger(__name__)

ERROR_FORMAT = "Invalid phone number format"


@dataclass(frozen=True)
class PhoneAvailability:
    available: bool
    reason: Optional[str] = None
    formatted: Optional[str] = None
    existing_customer_id: Optional[uuid.UUID] = None


async def get_customer_by_phone(
    db: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    phone: str,
    exclude_customer_id: Optional[uuid.UUID] = None,
) -> Customer | None:
    stmt = select(Customer).where(Customer.tenant_id == tenant_id, Customer.phone == phone)
    if exclude_customer_id is not None:
        stmt = stmt.where(Customer.id != exclude_customer_id)
    return (await db.execute(stmt.limit(1))).scalar_one_or_none()


async def check_phone_availability(
    db: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    phone: str,
    exclude_customer_id: Optional[uuid.UUID] = None,
) -> PhoneAvailability:
    """
    ``phone`` must already be canonical. Anything else is reported as
    unavailable without touching the database.
    """
    if not is_canonical_form(phone):
        return PhoneAvailability(available=False, reason=ERROR_FORMAT)

    existing = await get_customer_by_phone(
        db, tenant_id=tenant_id, phone=phone, exclude_customer_id=exclude_customer_id
    )
    if existing is not None:
        logger.info(
            "phone_unavailable",
            tenant_id=str(tenant_id),
            existing_customer_id=str(existing.id),
        )
        return PhoneAvailability(
            available=False,
            reason=f"Phone number already registered to {existing.first_name} {existing.last_name}",
            formatted=phone,
            existing_customer_id=existing.id,
        )

    return PhoneAvailability(available=True, formatted=phone)


async def validate_and_check_phone(
    db: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    phone_input: str,
    country_code: str,
    exclude_customer_id: Optional[uuid.UUID] = None,
) -> tuple[Optional[str], PhoneAvailability]:
    """
    Format then check. Returns ``(format_error, availability)``; when the
    first element is set the second is an unavailable placeholder and no
    query was made.
    """
    result = validate_and_format_phone(phone_input, country_code)
    if not result.is_valid or result.formatted is None:
        error = result.error or ERROR_FORMAT
        return error, PhoneAvailability(available=False, reason=error)

    availability = await check_phone_availability(
        db,
        tenant_id=tenant_id,
        phone=result.formatted,
        exclude_customer_id=exclude_customer_id,
    )
    return None, availability


async def verify_customer_phone(
    db: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    customer_id: uuid.UUID,
    phone: str,
) -> bool:
    """True when the stored phone of ``customer_id`` in this tenant is exactly ``phone``."""
    stmt = select(Customer.phone).where(
        Customer.id == customer_id,
        Customer.tenant_id == tenant_id,
    )
    stored = (await db.execute(stmt)).scalar_one_or_none()
    return stored is not None and stored == phone


async def find_customers_by_phone(db: AsyncSession, phone: str) -> list[Customer]:
    """Every customer holding ``phone`` across all tenants, newest first."""
    if not is_canonical_form(phone):
        return []
    stmt = select(Customer).where(Customer.phone == phone).order_by(Customer.created_at.desc())
    return list((await db.execute(stmt)).scalars().all())
