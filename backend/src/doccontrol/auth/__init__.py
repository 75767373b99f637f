"""Access token validation and caller identity"""

from .identity import Identity
from .roles import UserRole, has_permission
from .dependencies import get_current_identity, require_role

__all__ = [
    "Identity",
    "UserRole",
    "has_permission",
    "get_current_identity",
    "require_role",
]
