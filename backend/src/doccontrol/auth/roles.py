"""Organization roles and permission hierarchy.

Role Hierarchy (descending permissions):
- ADMIN: Full access to every project in the organization
- MANAGER: Manages projects; may cancel workflows on projects they manage
- MEMBER: Works on documents; may request approval and act as approver
- VIEWER: Read-only access to documents and activity logs

Project-level roles (ProjectMember.role) are checked separately by the
approval access rules.
"""

from enum import Enum


class UserRole(str, Enum):
    """Organization-wide user roles.

    Values are stored as TEXT in the database and must match exactly.
    """
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    MEMBER = "MEMBER"
    VIEWER = "VIEWER"


# Role hierarchy: Each role includes permissions of all roles below it
ROLE_HIERARCHY = {
    UserRole.ADMIN: {UserRole.ADMIN, UserRole.MANAGER, UserRole.MEMBER, UserRole.VIEWER},
    UserRole.MANAGER: {UserRole.MANAGER, UserRole.MEMBER, UserRole.VIEWER},
    UserRole.MEMBER: {UserRole.MEMBER, UserRole.VIEWER},
    UserRole.VIEWER: {UserRole.VIEWER},
}


def has_permission(user_role: UserRole, required_role: UserRole) -> bool:
    """Check if a user role satisfies a minimum required role.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.MEMBER)
        True
        >>> has_permission(UserRole.VIEWER, UserRole.MEMBER)
        False
    """
    return required_role in ROLE_HIERARCHY.get(user_role, set())
