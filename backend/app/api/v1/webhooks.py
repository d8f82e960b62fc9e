# backend/app/api/v1/webhooks.py
from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from svix.webhooks import Webhook, WebhookVerificationError

from app.core.config import settings
from app.core.errors import is_unique_violation
from app.core.tenant_context import get_tenant_by_slug, is_valid_tenant_slug
from app.crud.internal_user import ProvisionOutcome, get_user_by_external_id, provision_from_identity
from app.db.session import get_db
from app.schemas.common import ApiResponse
from app.schemas.webhook import IdentityEvent, IdentityUserData, WebhookAck

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

logger = structlog.get_logger(__name__)

SVIX_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")
USER_CREATED = "user.created"


def _ack(outcome: str, user_id=None) -> ApiResponse[WebhookAck]:
    return ApiResponse(data=WebhookAck(outcome=outcome, user_id=str(user_id) if user_id else None))


async def _verified_body(request: Request) -> bytes:
    """Raw request body once its svix signature checks out."""
    secret = settings.IDENTITY_WEBHOOK_SECRET
    if not secret:
        logger.error("webhook_secret_missing")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook not configured")

    headers = {name: request.headers.get(name) for name in SVIX_HEADERS}
    if not all(headers.values()):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing svix headers")

    body = await request.body()
    try:
        # the return value differs across svix majors; only the check is used
        Webhook(secret).verify(body, headers)
    except WebhookVerificationError:
        logger.warning("webhook_signature_invalid", svix_id=headers["svix-id"])
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")
    return body


@router.post("/identity", response_model=ApiResponse[WebhookAck])
async def identity_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Identity-provider events. ``user.created`` provisions an internal user in
    the tenant named by ``public_metadata.organizationSlug``; redelivery of
    the same identity is acknowledged without creating anything.
    """
    body = await _verified_body(request)

    try:
        event = IdentityEvent.model_validate_json(body)
        data = IdentityUserData.model_validate(event.data) if event.type == USER_CREATED else None
    except ValidationError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook payload")

    if data is None:
        logger.info("webhook_ignored", event_type=event.type)
        return _ack("ignored")

    email = data.primary_email
    slug = data.organization_slug
    if not email or not slug or not is_valid_tenant_slug(slug):
        logger.info("webhook_skipped", reason="missing_email_or_slug", external_id=data.id)
        return _ack("skipped")

    tenant = await get_tenant_by_slug(db, slug)
    if tenant is None:
        logger.info("webhook_skipped", reason="unknown_tenant", external_id=data.id, tenant_slug=slug)
        return _ack("skipped")

    try:
        user, outcome = await provision_from_identity(
            db,
            tenant=tenant,
            external_id=data.id,
            email=email,
            first_name=data.display_first_name(),
            last_name=(data.last_name or "").strip(),
        )
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if not is_unique_violation(exc):
            raise
        # concurrent delivery of the same event, or the email is held by another identity
        existing = await get_user_by_external_id(db, data.id)
        if existing is not None:
            return _ack(ProvisionOutcome.DUPLICATE.value, existing.id)
        logger.warning("webhook_email_conflict", external_id=data.id, tenant_slug=slug)
        return _ack("skipped")

    logger.info("webhook_user_provisioned", outcome=outcome.value, user_id=str(user.id), role=user.role)
    return _ack(outcome.value, user.id)
