"""Authenticated caller identity."""

from dataclasses import dataclass
from uuid import UUID

from .roles import UserRole, has_permission


@dataclass(frozen=True)
class Identity:
    """Who is calling, resolved once per request from the access token."""

    user_id: UUID
    org_id: UUID
    role: UserRole
    email: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def has_role(self, required_role: UserRole) -> bool:
        return has_permission(self.role, required_role)
