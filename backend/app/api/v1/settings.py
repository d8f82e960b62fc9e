# backend/app/api/v1/settings.py
from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.permissions import require_capability
from app.api.deps.tenant import get_tenant
from app.auth.permissions import Capability
from app.core.countries import get_country_by_name
from app.core.errors import http_error
from app.core.tenant_context import get_or_create_settings
from app.db.session import get_db
from app.models.tenant import Tenant
from app.models.tenant_settings import TenantSettings
from app.models.user import InternalUser
from app.schemas.common import ApiResponse
from app.schemas.tenant_settings import TenantSettingsOut, TenantSettingsUpdate

router = APIRouter(prefix="/{tenant_slug}/settings", tags=["settings"])

logger = structlog.get_logger(__name__)


def _settings_out(tenant: Tenant, tenant_settings: TenantSettings) -> TenantSettingsOut:
    country = get_country_by_name(tenant_settings.country)
    return TenantSettingsOut(
        tenant_slug=tenant.slug,
        tenant_name=tenant.name,
        country=tenant_settings.country,
        country_code=country.code if country else None,
        dial_code=country.dial_code if country else None,
        updated_at=tenant_settings.updated_at,
    )


@router.get("", response_model=ApiResponse[TenantSettingsOut])
async def get_settings(
    _: InternalUser = Depends(require_capability(Capability.MANAGE_SETTINGS)),
    tenant: Tenant = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
):
    tenant_settings = await get_or_create_settings(db, tenant)
    await db.commit()
    return ApiResponse(data=_settings_out(tenant, tenant_settings))


@router.put("", response_model=ApiResponse[TenantSettingsOut])
async def update_settings(
    payload: TenantSettingsUpdate,
    user: InternalUser = Depends(require_capability(Capability.MANAGE_SETTINGS)),
    tenant: Tenant = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
):
    """The country must be one of the registry's display names."""
    value = (payload.country or "").strip()
    if not value:
        raise http_error(status.HTTP_400_BAD_REQUEST, "Country is required", {"country": ["Country is required"]})

    country = get_country_by_name(value)
    if country is None:
        raise http_error(
            status.HTTP_400_BAD_REQUEST,
            "Invalid country selected",
            {"country": ["Invalid country selected"]},
        )

    tenant_settings = await get_or_create_settings(db, tenant)
    previous = tenant_settings.country
    tenant_settings.country = country.name
    await db.commit()
    await db.refresh(tenant_settings)

    logger.info("tenant_settings_updated", user_id=str(user.id), previous=previous, country=country.name)
    return ApiResponse(data=_settings_out(tenant, tenant_settings), message="Settings updated")
