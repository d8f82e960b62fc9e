# backend/app/schemas/tenant_settings.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TenantSettingsOut(BaseModel):
    tenant_slug: str
    tenant_name: str
    country: str
    country_code: Optional[str] = None
    dial_code: Optional[str] = None
    updated_at: Optional[datetime] = None


class TenantSettingsUpdate(BaseModel):
    # registry display name, e.g. "United States"
    country: Optional[str] = Field(None, max_length=100)
