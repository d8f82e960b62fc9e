from __future__ import annotations

import structlog
from fastapi import Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import UNAUTHORIZED, get_current_external_id
from app.core.tenant_context import get_or_create_settings, get_tenant_by_slug, is_valid_tenant_slug
from app.crud.internal_user import get_user_by_external_id
from app.db.session import get_db
from app.models.tenant import Tenant
from app.models.user import InternalUser

logger = structlog.get_logger(__name__)

TENANT_NOT_FOUND = "Organization not found"
FORBIDDEN = "Forbidden"


async def get_tenant(
    tenant_slug: str = Path(..., max_length=100),
    db: AsyncSession = Depends(get_db),
) -> Tenant:
    """
    Resolve the tenant named by the path segment. Unknown or malformed slugs
    are 404; only public registration may create a tenant.
    """
    if not is_valid_tenant_slug(tenant_slug):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TENANT_NOT_FOUND)

    tenant = await get_tenant_by_slug(db, tenant_slug)
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TENANT_NOT_FOUND)

    if tenant.settings is None:
        await get_or_create_settings(db, tenant)
        await db.commit()

    return tenant


async def get_current_internal_user(
    external_id: str = Depends(get_current_external_id),
    tenant: Tenant = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> InternalUser:
    """
    The caller's internal user, which must belong to the tenant in the path.
    An identity with no internal user at all is unauthenticated here.
    """
    user = await get_user_by_external_id(db, external_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHORIZED)

    if user.tenant_id != tenant.id:
        logger.info("tenant_mismatch", user_id=str(user.id))
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN)

    return user
