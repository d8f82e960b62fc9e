# backend/app/schemas/customer.py
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from app.core.phone import format_phone_for_display
from app.models.customer import Customer
from app.models.user import InternalUser
from app.schemas.common import Pagination

PUBLIC_REGISTRATION = "Public Registration"


class CustomerPayload(BaseModel):
    """
    Loose on purpose: field rules live in app.core.form_validation so every
    violation is reported together with the phone error, if any.
    """

    first_name: Optional[str] = Field(None, max_length=200)
    last_name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    # ISO code or registry name used to parse ``phone``
    country_code: Optional[str] = Field(None, max_length=100)
    birth_date: Optional[str] = Field(None, max_length=40)

    email: Optional[str] = Field(None, max_length=320)
    address_line1: Optional[str] = Field(None, max_length=300)
    address_line2: Optional[str] = Field(None, max_length=300)
    city: Optional[str] = Field(None, max_length=200)
    state: Optional[str] = Field(None, max_length=200)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)

    consent_given: bool = False

    def form_data(self) -> dict[str, Any]:
        return self.model_dump()


class CustomerRegister(CustomerPayload):
    pass


class CustomerCreate(CustomerPayload):
    pass


class CustomerUpdate(CustomerPayload):
    pass


class ActorOut(BaseModel):
    """
    Who created or last touched a record: an internal user, or the public
    registration form when no user was involved.
    """

    kind: Literal["public", "user"]
    id: Optional[uuid.UUID] = None
    name: str
    email: Optional[str] = None

    @classmethod
    def public(cls) -> "ActorOut":
        return cls(kind="public", name=PUBLIC_REGISTRATION)

    @classmethod
    def from_user(cls, user: InternalUser) -> "ActorOut":
        return cls(kind="user", id=user.id, name=user.full_name or user.email, email=user.email)


class CustomerOut(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    full_name: str
    phone: str
    phone_display: str
    birth_date: date

    email: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None

    consent_given: bool
    created_by: ActorOut
    updated_by: Optional[ActorOut] = None

    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, customer: Customer) -> "CustomerOut":
        """``created_by``/``updated_by`` must be loaded (see crud.customer.get_customer)."""
        return cls(
            id=customer.id,
            first_name=customer.first_name,
            last_name=customer.last_name,
            full_name=customer.full_name,
            phone=customer.phone,
            phone_display=format_phone_for_display(customer.phone),
            birth_date=customer.birth_date,
            email=customer.email,
            address_line1=customer.address_line1,
            address_line2=customer.address_line2,
            city=customer.city,
            state=customer.state,
            postal_code=customer.postal_code,
            country=customer.country,
            consent_given=customer.consent_given,
            created_by=ActorOut.from_user(customer.created_by) if customer.created_by else ActorOut.public(),
            updated_by=ActorOut.from_user(customer.updated_by) if customer.updated_by else None,
            created_at=customer.created_at,
            updated_at=customer.updated_at,
        )


class CustomerListItem(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    phone: str
    phone_display: str
    birth_date: date
    email: Optional[str] = None
    created_by_name: str
    created_at: datetime

    @classmethod
    def from_model(cls, customer: Customer, *, creator: Optional[InternalUser] = None) -> "CustomerListItem":
        return cls(
            id=customer.id,
            first_name=customer.first_name,
            last_name=customer.last_name,
            phone=customer.phone,
            phone_display=format_phone_for_display(customer.phone),
            birth_date=customer.birth_date,
            email=customer.email,
            created_by_name=(creator.full_name or creator.email) if creator else PUBLIC_REGISTRATION,
            created_at=customer.created_at,
        )


class CustomerPage(BaseModel):
    items: list[CustomerListItem]
    pagination: Pagination


class RegistrationResult(BaseModel):
    customer_id: uuid.UUID
    is_first_customer: bool
    tenant_created: bool = False
    message: str

