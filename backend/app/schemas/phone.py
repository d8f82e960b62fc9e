# backend/app/schemas/phone.py
from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, Field


class PhoneCheckRequest(BaseModel):
    phone: str = Field(..., max_length=50)
    # ISO code or registry name; the tenant's country is used when omitted
    country_code: Optional[str] = Field(None, max_length=100)
    exclude_customer_id: Optional[uuid.UUID] = None


class PhoneCheckResult(BaseModel):
    available: bool
    formatted: str
    display: str
    country: Optional[str] = None
