# backend/app/core/tenant_context.py
"""
Tenant resolution from the URL path.

The first path segment that is not framework-reserved is the tenant slug
candidate. Lookups eager-load settings; a missing settings row is created on
first read with the configured default country.
"""

from __future__ import annotations

import re
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.models.tenant import Tenant
from app.models.tenant_settings import TenantSettings

logger = structlog.get_logger(__name__)

# version prefix segments, skipped while looking for the slug
PREFIX_SEGMENTS = frozenset({"api", "v1"})

# non-tenant roots; a path under one of these carries no slug
RESERVED_SEGMENTS = frozenset(
    {
        "api",
        "v1",
        "docs",
        "redoc",
        "openapi.json",
        "webhooks",
        "countries",
        "health",
    }
)

_SLUG_RE = re.compile(r"[a-z0-9][a-z0-9-]{0,62}")


def _is_reserved(segment: str) -> bool:
    return segment in RESERVED_SEGMENTS or segment.startswith("_") or "." in segment


def extract_tenant_slug_from_path(path: str) -> Optional[str]:
    """
    "/api/v1/acme/customers" -> "acme"; "/api/v1/countries" -> None.
    """
    for segment in (path or "").split("/"):
        if not segment or segment in PREFIX_SEGMENTS:
            continue
        if _is_reserved(segment):
            return None
        return segment
    return None


def is_valid_tenant_slug(slug: Optional[str]) -> bool:
    if not slug or slug in RESERVED_SEGMENTS:
        return False
    return _SLUG_RE.fullmatch(slug) is not None


def display_name_from_slug(slug: str) -> str:
    """Capitalize the first letter; hyphens become spaces ("acme-coffee" -> "Acme coffee")."""
    if not slug:
        return slug
    return (slug[0].upper() + slug[1:]).replace("-", " ")


async def get_tenant_by_slug(db: AsyncSession, slug: str) -> Tenant | None:
    stmt = select(Tenant).options(selectinload(Tenant.settings)).where(Tenant.slug == slug)
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_or_create_settings(db: AsyncSession, tenant: Tenant) -> TenantSettings:
    """
    Returns the tenant's settings row, adding one with the default country if
    none exists. Only flushes; the caller owns the commit.
    """
    if tenant.settings is not None:
        return tenant.settings

    tenant_settings = TenantSettings(tenant_id=tenant.id, country=settings.DEFAULT_COUNTRY)
    db.add(tenant_settings)
    tenant.settings = tenant_settings
    await db.flush()
    logger.info("tenant_settings_created", tenant_slug=tenant.slug, country=tenant_settings.country)
    return tenant_settings


async def create_tenant(db: AsyncSession, slug: str, name: Optional[str] = None) -> Tenant:
    """Adds a tenant plus default settings. Only flushes; the caller owns the commit."""
    tenant = Tenant(slug=slug, name=name or display_name_from_slug(slug))
    tenant.settings = TenantSettings(country=settings.DEFAULT_COUNTRY)
    db.add(tenant)
    await db.flush()
    logger.info("tenant_created", tenant_slug=slug, tenant_id=str(tenant.id))
    return tenant
