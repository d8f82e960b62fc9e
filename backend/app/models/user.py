# backend/app/models/user.py
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.roles import UserRole
from app.db.base import Base, utcnow


class InternalUser(Base):
    """Dashboard user of one tenant, linked to an external identity."""

    __tablename__ = "internal_users"
    __table_args__ = (
        UniqueConstraint("tenant_id", "email", name="uq_internal_users_tenant_email"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Identity provider's user id; NULL for invitations not yet claimed
    external_id: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)

    email: Mapped[str] = mapped_column(String(320), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    # SUPER_ADMIN | MANAGER | VIEWER
    role: Mapped[str] = mapped_column(String(30), nullable=False, default=UserRole.VIEWER.value)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    @property
    def user_role(self) -> UserRole:
        return UserRole(self.role)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @staticmethod
    def normalize_email(value: str) -> str:
        return value.strip().lower()
