# backend/app/api/v1/dashboard.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.permissions import require_minimum_role
from app.api.deps.tenant import get_tenant
from app.core.roles import UserRole
from app.crud.customer import count_customers, recent_customers
from app.crud.internal_user import count_users
from app.db.session import get_db
from app.models.tenant import Tenant
from app.models.user import InternalUser
from app.schemas.common import ApiResponse
from app.schemas.customer import CustomerListItem
from app.schemas.dashboard import DashboardOut
from app.schemas.internal_user import TenantOut

router = APIRouter(prefix="/{tenant_slug}/dashboard", tags=["dashboard"])

RECENT_CUSTOMERS = 5


@router.get("", response_model=ApiResponse[DashboardOut])
async def get_dashboard(
    _: InternalUser = Depends(require_minimum_role(UserRole.VIEWER)),
    tenant: Tenant = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
):
    recent = await recent_customers(db, tenant.id, limit=RECENT_CUSTOMERS)
    return ApiResponse(
        data=DashboardOut(
            tenant=TenantOut.model_validate(tenant),
            customer_count=await count_customers(db, tenant.id),
            user_count=await count_users(db, tenant.id),
            recent_customers=[CustomerListItem.from_model(c, creator=c.created_by) for c in recent],
        )
    )
