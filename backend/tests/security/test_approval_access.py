"""Security tests for the approval workflow API

Tests cover:
- Missing, malformed, forged and expired tokens
- Cookie-based authentication for browser clients
- Disabled accounts
- Role and turn enforcement
- Tenant isolation (documents of other organizations are not disclosed)
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest
from fastapi.testclient import TestClient

from doccontrol.auth.jwt import create_access_token

pytestmark = pytest.mark.security


def approvals_url(document) -> str:
    return f"/api/v1/documents/{document.id}/approvals"


@pytest.fixture
def started(client_for, users, document, approvers):
    response = client_for(users["requester"]).post(
        approvals_url(document), json={"approverIds": [str(a) for a in approvers]}
    )
    assert response.status_code == 201
    return response.json()


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize("method,path", [
        ("GET", "/api/v1/documents/{id}/approvals"),
        ("POST", "/api/v1/documents/{id}/approvals"),
        ("POST", "/api/v1/documents/{id}/approvals/approve"),
        ("POST", "/api/v1/documents/{id}/approvals/reject"),
        ("POST", "/api/v1/documents/{id}/approvals/cancel"),
        ("GET", "/api/v1/documents/{id}/logs"),
        ("POST", "/api/v1/documents/{id}/logs"),
        ("GET", "/api/v1/approvals"),
        ("GET", "/api/v1/approvals/count"),
    ])
    def test_endpoints_require_auth(self, client, document, method, path):
        response = client.request(method, path.format(id=document.id))

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.parametrize("header", ["InvalidFormat", "Bearer", "Bearer not-a-jwt", "Basic dXNlcjpwYXNz"])
    def test_malformed_authorization_header(self, client, document, header):
        response = client.get(approvals_url(document), headers={"Authorization": header})

        assert response.status_code == 401

    def test_forged_signature(self, client, document, users):
        user = users["admin"]
        token = jwt.encode(
            {"sub": str(user.id), "org_id": str(user.org_id), "role": "ADMIN", "email": user.email},
            "attacker-secret-that-is-long-enough-for-hmac-sha256",
            algorithm="HS256",
        )

        response = client.get(approvals_url(document), headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_expired_token(self, client, document, users, monkeypatch):
        monkeypatch.setenv("JWT_EXPIRY_MINUTES", "-5")
        token = create_access_token(users["admin"].id, users["admin"].org_id, "ADMIN", users["admin"].email)

        response = client.get(approvals_url(document), headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert "expired" in response.json()["detail"].lower()

    def test_unknown_user(self, client, document, test_org):
        token = create_access_token(uuid4(), test_org.id, "ADMIN", "ghost@acme.test")

        response = client.get(approvals_url(document), headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_token_org_must_match_user(self, client, document, users, other_org):
        """A token claiming another org for a real user is refused"""
        user = users["admin"]
        token = create_access_token(user.id, other_org.id, "ADMIN", user.email)

        response = client.get(approvals_url(document), headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_unknown_role_claim(self, client, document, users):
        user = users["approver1"]
        token = create_access_token(user.id, user.org_id, "SUPERUSER", user.email)

        response = client.get(approvals_url(document), headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401


class TestCookieAuthentication:

    def test_cookie_token_accepted(self, app, document, users):
        token = create_access_token(
            users["requester"].id, users["requester"].org_id, "MEMBER", users["requester"].email
        )
        client = TestClient(app, cookies={"auth-token": token})

        response = client.get(approvals_url(document))

        assert response.status_code == 200


class TestDisabledAccount:

    def test_disabled_user_is_403(self, client_for, users, document):
        response = client_for(users["disabled"]).get(approvals_url(document))

        assert response.status_code == 403


class TestRoleAndTurnEnforcement:

    def test_viewer_cannot_request_approval(self, client_for, users, document, approvers):
        response = client_for(users["viewer"]).post(
            approvals_url(document), json={"approverIds": [str(a) for a in approvers]}
        )

        assert response.status_code == 403

    def test_non_member_cannot_request_approval(self, client_for, users, document, approvers):
        response = client_for(users["outsider"]).post(
            approvals_url(document), json={"approverIds": [str(a) for a in approvers]}
        )

        assert response.status_code == 403

    def test_admin_cannot_approve_for_someone_else(self, started, client_for, users, document):
        response = client_for(users["admin"]).post(f"{approvals_url(document)}/approve")

        assert response.status_code == 403

    def test_later_approver_cannot_reject_early(self, started, client_for, users, document):
        response = client_for(users["approver3"]).post(
            f"{approvals_url(document)}/reject", data={"comments": "jumping the queue"}
        )

        assert response.status_code == 403
        assert "turn" in response.json()["message"]


class TestTenantIsolation:

    def test_foreign_document_is_404(self, started, client_for, foreign_user, document):
        client = client_for(foreign_user)

        assert client.get(approvals_url(document)).status_code == 404
        assert client.post(f"{approvals_url(document)}/approve").status_code == 404
        assert client.post(f"{approvals_url(document)}/cancel").status_code == 404
        assert client.get(f"/api/v1/documents/{document.id}/logs").status_code == 404

    def test_foreign_inbox_is_empty(self, started, client_for, foreign_user):
        assert client_for(foreign_user).get("/api/v1/approvals/count").json() == {"count": 0}

    def test_unknown_document_is_404(self, client_for, users):
        response = client_for(users["admin"]).get(f"/api/v1/documents/{uuid4()}/approvals")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
