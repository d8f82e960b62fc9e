# backend/app/schemas/internal_user.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class InternalUserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    role: str
    # invitation not yet claimed by an identity
    is_pending: bool = False
    created_at: datetime

    @classmethod
    def from_model(cls, user) -> "InternalUserOut":
        out = cls.model_validate(user)
        out.is_pending = user.external_id is None
        return out


class InternalUserInvite(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    role: Optional[str] = None


class InternalUserRoleUpdate(BaseModel):
    role: str = Field(..., min_length=1, max_length=30)


class TenantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    slug: str
    name: str


class MeOut(BaseModel):
    user: InternalUserOut
    tenant: TenantOut
    role: str
    capabilities: List[str]

