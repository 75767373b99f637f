"""Unit tests for JWT token generation and validation

Tests cover:
- Token creation with valid claims
- Token decoding and validation
- Token expiration handling
- Invalid token handling
- Environment configuration
"""

import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4
import jwt

from doccontrol.auth.jwt import create_access_token, decode_token
from doccontrol.auth.identity import Identity
from doccontrol.auth.roles import UserRole, has_permission

TEST_SECRET = "test-secret-key-256-bits-minimum-length-required-for-security"


class TestCreateAccessToken:
    """Test JWT token creation"""

    def test_token_contains_correct_claims(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", TEST_SECRET)

        user_id = uuid4()
        org_id = uuid4()

        token = create_access_token(user_id=user_id, org_id=org_id, role="MEMBER", email="reviewer@acme.test")

        # Decode without verification to inspect payload
        payload = jwt.decode(token, options={"verify_signature": False})

        assert payload["sub"] == str(user_id)
        assert payload["org_id"] == str(org_id)
        assert payload["role"] == "MEMBER"
        assert payload["email"] == "reviewer@acme.test"
        assert payload["exp"] > payload["iat"]

    def test_expiry_follows_environment(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
        monkeypatch.setenv("JWT_EXPIRY_MINUTES", "15")

        token = create_access_token(uuid4(), uuid4(), "ADMIN", "admin@acme.test")
        payload = jwt.decode(token, options={"verify_signature": False})

        assert payload["exp"] - payload["iat"] == 15 * 60

    def test_invalid_expiry_falls_back_to_one_hour(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
        monkeypatch.setenv("JWT_EXPIRY_MINUTES", "soon")

        token = create_access_token(uuid4(), uuid4(), "ADMIN", "admin@acme.test")
        payload = jwt.decode(token, options={"verify_signature": False})

        assert payload["exp"] - payload["iat"] == 60 * 60

    def test_missing_secret_raises(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)

        with pytest.raises(ValueError, match="JWT_SECRET"):
            create_access_token(uuid4(), uuid4(), "MEMBER", "member@acme.test")


class TestDecodeToken:
    """Test JWT token validation"""

    def test_round_trip(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
        user_id = uuid4()

        payload = decode_token(create_access_token(user_id, uuid4(), "VIEWER", "v@acme.test"))

        assert payload["sub"] == str(user_id)

    def test_expired_token_rejected(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": str(uuid4()), "iat": int(past.timestamp()), "exp": int((past + timedelta(minutes=5)).timestamp())},
            TEST_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(token)

    def test_wrong_signature_rejected(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
        token = jwt.encode({"sub": str(uuid4())}, "some-other-secret-that-is-long-enough-for-hs256", algorithm="HS256")

        with pytest.raises(jwt.InvalidTokenError):
            decode_token(token)

    def test_garbage_rejected(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", TEST_SECRET)

        with pytest.raises(jwt.InvalidTokenError):
            decode_token("not.a.token")


class TestRoles:

    def test_hierarchy(self):
        assert has_permission(UserRole.ADMIN, UserRole.MEMBER) is True
        assert has_permission(UserRole.MEMBER, UserRole.MEMBER) is True
        assert has_permission(UserRole.VIEWER, UserRole.MEMBER) is False

    def test_identity_helpers(self):
        identity = Identity(user_id=uuid4(), org_id=uuid4(), role=UserRole.ADMIN, email="admin@acme.test")

        assert identity.is_admin is True
        assert identity.has_role(UserRole.MANAGER) is True
