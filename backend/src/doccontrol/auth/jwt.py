"""JWT token generation and validation

Tokens are issued by the identity service in front of this backend. This
module validates them, and can also mint them for local tooling and tests.

JWT Token Claims Structure:
===========================

Standard JWT Claims:
- sub (Subject): User ID as UUID string
- iat (Issued At): Unix timestamp when token was created
- exp (Expiration): Unix timestamp when token expires (iat + JWT_EXPIRY_MINUTES)

Custom Claims:
- org_id: Organization (tenant) ID as UUID string
  Purpose: Multi-tenant isolation - every document lookup is scoped by this org_id

- role: User's role within the organization
  Values: "ADMIN" | "MANAGER" | "MEMBER" | "VIEWER"

- email: User's email address

Security Properties:
- Algorithm: HS256 (HMAC-SHA256 symmetric signing)
- Secret: JWT_SECRET environment variable
- Stateless validation; the user row is still checked for ACTIVE status

Example Token Payload:
{
  "sub": "550e8400-e29b-41d4-a716-446655440000",
  "org_id": "7c9e6679-7425-40de-944b-e07fc1f90ae7",
  "role": "MEMBER",
  "email": "reviewer@acme.de",
  "iat": 1704368400,
  "exp": 1704372000
}
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Any
from uuid import UUID
import jwt


def _get_jwt_secret() -> str:
    """Get JWT_SECRET from environment.

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = os.getenv('JWT_SECRET')
    if not secret:
        raise ValueError("JWT_SECRET environment variable is not set")
    return secret


def _get_jwt_expiry_minutes() -> int:
    expiry = os.getenv('JWT_EXPIRY_MINUTES', '60')
    try:
        return int(expiry)
    except ValueError:
        return 60


def create_access_token(
    user_id: UUID,
    org_id: UUID,
    role: str,
    email: str
) -> str:
    """Create a signed JWT access token.

    Args:
        user_id: User's UUID
        org_id: Organization's UUID
        role: User's role (ADMIN, MANAGER, MEMBER, VIEWER)
        email: User's email address

    Returns:
        str: Signed JWT token

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()
    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=_get_jwt_expiry_minutes())

    payload = {
        'sub': str(user_id),
        'org_id': str(org_id),
        'role': role,
        'email': email,
        'iat': int(now.timestamp()),
        'exp': int(expiration.timestamp())
    }

    return jwt.encode(payload, secret, algorithm='HS256')


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()

    try:
        return jwt.decode(token, secret, algorithms=['HS256'])
    except jwt.ExpiredSignatureError:
        raise jwt.ExpiredSignatureError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise jwt.InvalidTokenError(f"Invalid token: {str(e)}")
