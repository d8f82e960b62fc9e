# backend/app/api/v1/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps.tenant import get_current_internal_user, get_tenant
from app.auth.permissions import capabilities_for_role
from app.models.tenant import Tenant
from app.models.user import InternalUser
from app.schemas.common import ApiResponse
from app.schemas.internal_user import InternalUserOut, MeOut, TenantOut

router = APIRouter(prefix="/{tenant_slug}", tags=["auth"])


@router.get("/me", response_model=ApiResponse[MeOut])
async def me(
    user: InternalUser = Depends(get_current_internal_user),
    tenant: Tenant = Depends(get_tenant),
):
    """
    The caller as this tenant sees it. The dashboard uses ``capabilities`` to
    decide which actions to show; the API enforces them independently.
    """
    role = user.user_role
    return ApiResponse(
        data=MeOut(
            user=InternalUserOut.from_model(user),
            tenant=TenantOut.model_validate(tenant),
            role=role.value,
            capabilities=sorted(c.value for c in capabilities_for_role(role)),
        )
    )
