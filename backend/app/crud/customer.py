# app/crud/customer.py
from __future__ import annotations

import uuid
from typing import Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.customer import Customer

SORTABLE_FIELDS = {
    "first_name": Customer.first_name,
    "last_name": Customer.last_name,
    "phone": Customer.phone,
    "birth_date": Customer.birth_date,
    "created_at": Customer.created_at,
}
DEFAULT_SORT_BY = "created_at"


def _search_filter(search: str):
    term = search.strip()
    return or_(
        Customer.first_name.icontains(term, autoescape=True),
        Customer.last_name.icontains(term, autoescape=True),
        Customer.email.icontains(term, autoescape=True),
        Customer.phone.contains(term, autoescape=True),
    )


async def get_customer(
    db: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    customer_id: uuid.UUID,
    with_actors: bool = False,
) -> Customer | None:
    """
    Scoped lookup: a customer of another tenant is indistinguishable from a
    missing one. ``with_actors`` eager-loads creator and updater.
    """
    stmt = select(Customer).where(Customer.id == customer_id, Customer.tenant_id == tenant_id)
    if with_actors:
        stmt = stmt.options(
            selectinload(Customer.created_by),
            selectinload(Customer.updated_by),
        ).execution_options(populate_existing=True)
    return (await db.execute(stmt)).scalar_one_or_none()


async def count_customers(db: AsyncSession, tenant_id: uuid.UUID) -> int:
    stmt = select(func.count(Customer.id)).where(Customer.tenant_id == tenant_id)
    res = await db.execute(stmt)
    return int(res.scalar() or 0)


async def list_customers(
    db: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    page: int = 1,
    page_size: int = 20,
    search: Optional[str] = None,
    sort_by: str = DEFAULT_SORT_BY,
    sort_order: str = "desc",
) -> tuple[Sequence[Customer], int]:
    """
    One page of a tenant's customers plus the total matching count.
    Unknown ``sort_by`` values fall back to creation time.
    """
    filters = [Customer.tenant_id == tenant_id]
    if search and search.strip():
        filters.append(_search_filter(search))

    total_stmt = select(func.count(Customer.id)).where(*filters)
    total = int((await db.execute(total_stmt)).scalar() or 0)

    column = SORTABLE_FIELDS.get(sort_by, SORTABLE_FIELDS[DEFAULT_SORT_BY])
    ordering = column.asc() if sort_order == "asc" else column.desc()

    stmt = (
        select(Customer)
        .options(selectinload(Customer.created_by))
        .where(*filters)
        .order_by(ordering, Customer.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    items = (await db.execute(stmt)).scalars().all()
    return items, total


async def recent_customers(db: AsyncSession, tenant_id: uuid.UUID, limit: int = 5) -> Sequence[Customer]:
    stmt = (
        select(Customer)
        .options(selectinload(Customer.created_by))
        .where(Customer.tenant_id == tenant_id)
        .order_by(Customer.created_at.desc(), Customer.id)
        .limit(limit)
    )
    return (await db.execute(stmt)).scalars().all()
