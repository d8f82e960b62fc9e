# backend/app/models/customer.py

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base, utcnow

if TYPE_CHECKING:
    from app.models.user import InternalUser

# Referenced by the API layer when translating insert/update conflicts.
PHONE_UNIQUE_CONSTRAINT = "uq_customers_tenant_phone"


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (
        # Same phone may repeat across tenants, never within one.
        UniqueConstraint("tenant_id", "phone", name=PHONE_UNIQUE_CONSTRAINT),
        Index("ix_customers_tenant_created_at", "tenant_id", "created_at"),
        Index("ix_customers_tenant_last_name", "tenant_id", "last_name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Canonical international form (+15551234567); formatted only at display time
    phone: Mapped[str] = mapped_column(String(20), nullable=False)

    birth_date: Mapped[date] = mapped_column(Date, nullable=False)

    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    address_line1: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    address_line2: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    consent_given: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # NULL means public self-registration (no internal user involved)
    created_by_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("internal_users.id", ondelete="SET NULL"),
        nullable=True,
    )
    updated_by_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("internal_users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    created_by: Mapped[Optional["InternalUser"]] = relationship(foreign_keys=[created_by_user_id])
    updated_by: Mapped[Optional["InternalUser"]] = relationship(foreign_keys=[updated_by_user_id])

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
