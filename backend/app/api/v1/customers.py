# backend/app/api/v1/customers.py
from __future__ import annotations

import uuid
from typing import Literal, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.permissions import require_capability
from app.api.deps.tenant import TENANT_NOT_FOUND, get_tenant
from app.auth.permissions import Capability
from app.core.config import settings
from app.core.countries import DEFAULT_COUNTRY_CODE, resolve_country
from app.core.errors import VALIDATION_ERROR, http_error, is_unique_violation
from app.core.form_validation import (
    FieldError,
    errors_to_details,
    parse_birth_date,
    validate_customer_registration,
)
from app.core.phone import format_phone_for_display, validate_and_format_phone
from app.core.phone_availability import check_phone_availability, validate_and_check_phone
from app.core.tenant_context import (
    create_tenant,
    get_or_create_settings,
    get_tenant_by_slug,
    is_valid_tenant_slug,
)
from app.crud.customer import count_customers, get_customer, list_customers
from app.db.session import get_db
from app.models.customer import PHONE_UNIQUE_CONSTRAINT, Customer
from app.models.tenant import Tenant
from app.models.user import InternalUser
from app.schemas.common import ApiResponse, Pagination
from app.schemas.customer import (
    CustomerCreate,
    CustomerListItem,
    CustomerOut,
    CustomerPage,
    CustomerPayload,
    CustomerRegister,
    CustomerUpdate,
    RegistrationResult,
)
from app.schemas.phone import PhoneCheckRequest, PhoneCheckResult

router = APIRouter(prefix="/{tenant_slug}/customers", tags=["customers"])

logger = structlog.get_logger(__name__)

CUSTOMER_NOT_FOUND = "Customer not found"
PHONE_TAKEN = "Phone number already registered"

SortBy = Literal["first_name", "last_name", "phone", "birth_date", "created_at"]


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------
def _iso_code(value: Optional[str]) -> Optional[str]:
    country = resolve_country(value)
    return country.code if country else None


def _tenant_country(tenant: Optional[Tenant]) -> Optional[str]:
    if tenant is None or tenant.settings is None:
        return None
    return tenant.settings.country


def _phone_region(*candidates: Optional[str]) -> str:
    """First candidate that resolves through the country registry, else the default."""
    for candidate in candidates:
        code = _iso_code(candidate)
        if code:
            return code
    return _iso_code(settings.DEFAULT_COUNTRY) or DEFAULT_COUNTRY_CODE


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _stored_country(payload: CustomerPayload, tenant: Optional[Tenant]) -> Optional[str]:
    country = resolve_country(payload.country)
    if country is not None:
        return country.name
    return _clean(payload.country) or _tenant_country(tenant)


def _validate_payload(
    payload: CustomerPayload,
    *,
    phone_region: str,
    require_consent: bool,
    check_phone: bool = True,
) -> Optional[str]:
    """
    Runs the form rules and, when ``check_phone``, the phone formatter.
    Raises 400 with every field error; returns the canonical phone.
    """
    postal_region = _iso_code(payload.country) or phone_region
    errors: list[FieldError] = validate_customer_registration(
        payload.form_data(),
        country_code=postal_region,
        require_consent=require_consent,
    )

    formatted: Optional[str] = None
    if check_phone:
        result = validate_and_format_phone(payload.phone or "", phone_region)
        if result.is_valid:
            formatted = result.formatted
        else:
            errors.append(FieldError("phone", result.error or "Invalid phone number"))

    if errors:
        raise http_error(status.HTTP_400_BAD_REQUEST, VALIDATION_ERROR, errors_to_details(errors))
    return formatted


def _apply_payload(customer: Customer, payload: CustomerPayload, tenant: Optional[Tenant]) -> None:
    customer.first_name = payload.first_name.strip()
    customer.last_name = payload.last_name.strip()
    customer.birth_date = parse_birth_date(payload.birth_date)
    customer.email = _clean(payload.email)
    customer.address_line1 = _clean(payload.address_line1)
    customer.address_line2 = _clean(payload.address_line2)
    customer.city = _clean(payload.city)
    customer.state = _clean(payload.state)
    customer.postal_code = _clean(payload.postal_code)
    customer.country = _stored_country(payload, tenant)
    customer.consent_given = bool(payload.consent_given)


async def _commit_customer(db: AsyncSession, **log_context) -> None:
    """Commit, translating the (tenant, phone) constraint into 409."""
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if is_unique_violation(exc, constraint=PHONE_UNIQUE_CONSTRAINT, column="customers.phone"):
            logger.info("phone_conflict_on_write", **log_context)
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=PHONE_TAKEN)
        raise


async def _existing_tenant(db: AsyncSession, tenant_slug: str) -> Optional[Tenant]:
    """Tenant by slug, with its settings row created on first read."""
    tenant = await get_tenant_by_slug(db, tenant_slug)
    if tenant is not None and tenant.settings is None:
        await get_or_create_settings(db, tenant)
        await db.commit()
    return tenant


async def _load_customer(db: AsyncSession, tenant: Tenant, customer_id: uuid.UUID) -> Customer:
    customer = await get_customer(db, tenant_id=tenant.id, customer_id=customer_id, with_actors=True)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CUSTOMER_NOT_FOUND)
    return customer


# ---------------------------------------------------------
# Public
# ---------------------------------------------------------
@router.post("/validate-phone", response_model=ApiResponse[PhoneCheckResult])
async def validate_phone(
    payload: PhoneCheckRequest,
    tenant_slug: str = Path(..., max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """
    Format + availability pre-check for registration and edit forms.
    Advisory only: the insert can still conflict.
    """
    if not is_valid_tenant_slug(tenant_slug):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TENANT_NOT_FOUND)

    tenant = await _existing_tenant(db, tenant_slug)
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TENANT_NOT_FOUND)

    region = _phone_region(payload.country_code, _tenant_country(tenant))
    format_error, availability = await validate_and_check_phone(
        db,
        tenant_id=tenant.id,
        phone_input=payload.phone,
        country_code=region,
        exclude_customer_id=payload.exclude_customer_id,
    )
    if format_error:
        raise http_error(status.HTTP_400_BAD_REQUEST, format_error, {"phone": [format_error]})
    if not availability.available:
        reason = availability.reason or PHONE_TAKEN
        raise http_error(status.HTTP_409_CONFLICT, reason, {"phone": [reason]})

    formatted = availability.formatted or ""
    return ApiResponse(
        data=PhoneCheckResult(
            available=True,
            formatted=formatted,
            display=format_phone_for_display(formatted),
            country=region,
        )
    )


@router.post(
    "/register",
    response_model=ApiResponse[RegistrationResult],
    status_code=status.HTTP_201_CREATED,
)
async def register_customer(
    payload: CustomerRegister,
    tenant_slug: str = Path(..., max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """
    Public self-registration. The first registration under an unseen slug
    creates the tenant; tenant, settings and customer commit together.
    """
    if not is_valid_tenant_slug(tenant_slug):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid organization identifier")

    tenant = await _existing_tenant(db, tenant_slug)

    # The tenant's own country defines its public form; the body is a fallback.
    region = _phone_region(_tenant_country(tenant), payload.country_code, payload.country)
    phone = _validate_payload(payload, phone_region=region, require_consent=True)

    is_first_customer = True
    if tenant is not None:
        availability = await check_phone_availability(db, tenant_id=tenant.id, phone=phone)
        if not availability.available:
            reason = availability.reason or PHONE_TAKEN
            raise http_error(status.HTTP_409_CONFLICT, reason, {"phone": [reason]})
        is_first_customer = await count_customers(db, tenant.id) == 0

    tenant_created = tenant is None
    if tenant is None:
        try:
            tenant = await create_tenant(db, tenant_slug)
        except IntegrityError as exc:
            await db.rollback()
            if is_unique_violation(exc, constraint="ix_tenants_slug", column="tenants.slug"):
                # another first registration created the tenant in between
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Organization was just created, please try again",
                )
            raise

    customer_id = uuid.uuid4()
    customer = Customer(
        id=customer_id,
        tenant_id=tenant.id,
        phone=phone,
        created_by_user_id=None,
        updated_by_user_id=None,
    )
    _apply_payload(customer, payload, tenant)
    db.add(customer)

    # nothing is committed before this point, so a conflict leaves no orphan tenant
    await _commit_customer(db, tenant_slug=tenant_slug)

    logger.info(
        "customer_registered",
        customer_id=str(customer_id),
        first_customer=is_first_customer,
        tenant_created=tenant_created,
    )

    message = (
        "Registration successful! You are the first customer."
        if is_first_customer
        else "Registration successful!"
    )
    return ApiResponse(
        data=RegistrationResult(
            customer_id=customer_id,
            is_first_customer=is_first_customer,
            tenant_created=tenant_created,
            message=message,
        ),
        message=message,
    )


# ---------------------------------------------------------
# Internal users
# ---------------------------------------------------------
@router.get("", response_model=ApiResponse[CustomerPage])
async def list_tenant_customers(
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    sort_by: SortBy = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    _: InternalUser = Depends(require_capability(Capability.VIEW_CUSTOMER)),
    tenant: Tenant = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
):
    size = page_size or settings.CUSTOMER_PAGE_SIZE
    customers, total = await list_customers(
        db,
        tenant_id=tenant.id,
        page=page,
        page_size=size,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ApiResponse(
        data=CustomerPage(
            items=[CustomerListItem.from_model(c, creator=c.created_by) for c in customers],
            pagination=Pagination.build(page=page, page_size=size, total_count=total),
        )
    )


@router.post("/create", response_model=ApiResponse[CustomerOut], status_code=status.HTTP_201_CREATED)
async def create_customer(
    payload: CustomerCreate,
    user: InternalUser = Depends(require_capability(Capability.CREATE_CUSTOMER)),
    tenant: Tenant = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
):
    """Customer entered by staff; consent may be stored as false."""
    region = _phone_region(payload.country_code, payload.country, _tenant_country(tenant))
    phone = _validate_payload(payload, phone_region=region, require_consent=False)

    availability = await check_phone_availability(db, tenant_id=tenant.id, phone=phone)
    if not availability.available:
        reason = availability.reason or PHONE_TAKEN
        raise http_error(status.HTTP_409_CONFLICT, reason, {"phone": [reason]})

    customer_id = uuid.uuid4()
    customer = Customer(
        id=customer_id,
        tenant_id=tenant.id,
        phone=phone,
        created_by_user_id=user.id,
        updated_by_user_id=user.id,
    )
    _apply_payload(customer, payload, tenant)
    db.add(customer)

    await _commit_customer(db, user_id=str(user.id))
    logger.info("customer_created", customer_id=str(customer_id), user_id=str(user.id))

    customer = await _load_customer(db, tenant, customer_id)
    return ApiResponse(data=CustomerOut.from_model(customer), message="Customer created")


@router.get("/{customer_id}", response_model=ApiResponse[CustomerOut])
async def get_customer_detail(
    customer_id: uuid.UUID,
    _: InternalUser = Depends(require_capability(Capability.VIEW_CUSTOMER)),
    tenant: Tenant = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
):
    customer = await _load_customer(db, tenant, customer_id)
    return ApiResponse(data=CustomerOut.from_model(customer))


@router.put("/{customer_id}", response_model=ApiResponse[CustomerOut])
async def update_customer(
    customer_id: uuid.UUID,
    payload: CustomerUpdate,
    user: InternalUser = Depends(require_capability(Capability.EDIT_CUSTOMER)),
    tenant: Tenant = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
):
    customer = await _load_customer(db, tenant, customer_id)

    # The stored value is already canonical; only a changed number is re-checked.
    phone_changed = (payload.phone or "").strip() != customer.phone
    region = _phone_region(payload.country_code, payload.country, _tenant_country(tenant))
    phone = _validate_payload(
        payload,
        phone_region=region,
        require_consent=False,
        check_phone=phone_changed,
    )

    if phone_changed and phone != customer.phone:
        availability = await check_phone_availability(
            db,
            tenant_id=tenant.id,
            phone=phone,
            exclude_customer_id=customer.id,
        )
        if not availability.available:
            reason = availability.reason or PHONE_TAKEN
            raise http_error(status.HTTP_409_CONFLICT, reason, {"phone": [reason]})
        customer.phone = phone

    _apply_payload(customer, payload, tenant)
    customer.updated_by_user_id = user.id

    await _commit_customer(db, customer_id=str(customer_id), user_id=str(user.id))
    logger.info("customer_updated", customer_id=str(customer_id), user_id=str(user.id))

    customer = await _load_customer(db, tenant, customer_id)
    return ApiResponse(data=CustomerOut.from_model(customer), message="Customer updated")


@router.delete("/{customer_id}", response_model=ApiResponse[dict])
async def delete_customer(
    customer_id: uuid.UUID,
    user: InternalUser = Depends(require_capability(Capability.DELETE_CUSTOMER)),
    tenant: Tenant = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
):
    """Hard delete; nothing is retained."""
    customer = await get_customer(db, tenant_id=tenant.id, customer_id=customer_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CUSTOMER_NOT_FOUND)

    await db.delete(customer)
    await db.commit()

    logger.info("customer_deleted", customer_id=str(customer_id), user_id=str(user.id))
    return ApiResponse(data={"message": "Customer deleted successfully"}, message="Customer deleted successfully")
