# backend/app/schemas/dashboard.py
from __future__ import annotations

from pydantic import BaseModel

from app.schemas.customer import CustomerListItem
from app.schemas.internal_user import TenantOut


class DashboardOut(BaseModel):
    tenant: TenantOut
    customer_count: int
    user_count: int
    recent_customers: list[CustomerListItem]
