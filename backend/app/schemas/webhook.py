# backend/app/schemas/webhook.py
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class IdentityEmailAddress(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email_address: str


class IdentityUserData(BaseModel):
    """The ``data`` object of a ``user.created`` event; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")

    id: str
    email_addresses: list[IdentityEmailAddress] = Field(default_factory=list)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    public_metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def primary_email(self) -> Optional[str]:
        if not self.email_addresses:
            return None
        return self.email_addresses[0].email_address.strip().lower() or None

    @property
    def organization_slug(self) -> Optional[str]:
        slug = self.public_metadata.get("organizationSlug")
        return slug.strip() if isinstance(slug, str) and slug.strip() else None

    def display_first_name(self) -> str:
        if self.first_name and self.first_name.strip():
            return self.first_name.strip()
        email = self.primary_email
        if email:
            return email.split("@", 1)[0]
        return "User"


class IdentityEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    data: dict[str, Any] = Field(default_factory=dict)


class WebhookAck(BaseModel):
    received: bool = True
    outcome: str
    user_id: Optional[str] = None
