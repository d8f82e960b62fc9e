# app/core/roles.py

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"  # full access: users, settings, customers
    MANAGER = "MANAGER"          # customer create/edit/delete/view
    VIEWER = "VIEWER"            # read-only

    @property
    def rank(self) -> int:
        return ROLE_RANK[self]

    @classmethod
    def parse(cls, value: str | None) -> UserRole | None:
        """Returns None for anything that is not one of the three roles."""
        v = (value or "").strip().upper()
        try:
            return cls(v)
        except ValueError:
            return None


# Total order: SUPER_ADMIN > MANAGER > VIEWER
ROLE_RANK: dict[UserRole, int] = {
    UserRole.SUPER_ADMIN: 3,
    UserRole.MANAGER: 2,
    UserRole.VIEWER: 1,
}
