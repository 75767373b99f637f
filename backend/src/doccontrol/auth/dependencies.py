"""FastAPI dependencies for authentication and authorization.

This module provides dependency injection functions for:
- Extracting the access token from the Authorization header or the
  session cookie
- Validating it and resolving the caller's Identity
- Enforcing role-based access control (RBAC)

Usage:
    @router.post("/documents/{document_id}/approvals/approve")
    def approve(identity: Identity = Depends(get_current_identity)):
        ...

    @router.post("/documents/{document_id}/logs")
    def append_log(identity: Identity = Depends(require_role(UserRole.MEMBER))):
        ...
"""

from typing import Callable, Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from uuid import UUID
import jwt

from ..config import get_settings
from ..database import get_db
from ..models.user import User
from .identity import Identity
from .jwt import decode_token
from .roles import UserRole, has_permission


# HTTP Bearer token security scheme; browser clients send the cookie instead
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(get_settings().AUTH_COOKIE_NAME)


def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Identity:
    """Validate the access token and return the caller's Identity.

    This dependency:
    1. Takes the Bearer token, or the auth cookie when no header is sent
    2. Validates token signature and expiration
    3. Loads the user and checks it is ACTIVE and in the token's org
    4. Returns an Identity built from the verified claims

    Raises:
        HTTPException 401: If token is missing, invalid, expired, or user not found
        HTTPException 403: If user status is DISABLED
    """
    token = _extract_token(request, credentials)
    if not token:
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_token(token)

        user_id_str = payload.get("sub")
        org_id_str = payload.get("org_id")
        if not user_id_str or not org_id_str:
            raise _unauthorized("Invalid token: missing user or organization claim")

        user_id = UUID(user_id_str)
        org_id = UUID(org_id_str)
        role = UserRole(payload.get("role"))

    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(f"Invalid token: {str(e)}")
    except ValueError as e:
        raise _unauthorized(f"Invalid token claims: {str(e)}")

    user = db.query(User).filter(User.id == user_id, User.org_id == org_id).first()
    if not user:
        raise _unauthorized("User not found")

    if user.status != "ACTIVE":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return Identity(
        user_id=user_id,
        org_id=org_id,
        role=role,
        email=payload.get("email") or user.email,
    )


def require_role(required_role: UserRole) -> Callable:
    """Create a dependency that enforces a minimum organization role.

    Role Hierarchy (descending permissions):
    - ADMIN > MANAGER > MEMBER > VIEWER

    Raises:
        HTTPException 403: If the caller's role is insufficient
    """

    def role_dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        if not has_permission(identity.role, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required role: {required_role.value}",
            )
        return identity

    return role_dependency

