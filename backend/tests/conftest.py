"""Pytest fixtures for the document control backend.

Provides reusable test fixtures for:
- In-memory SQLite database with a fresh schema per test
- An organization with a project, its members and a draft document
- A second organization for tenant isolation tests
- Caller identities and authenticated test clients with JWT tokens
- An in-memory attachment store that can be told to fail

Usage:
    def test_approve(client_for, approver1, document_with_workflow):
        response = client_for(approver1).post(
            f"/api/v1/documents/{document_with_workflow.id}/approvals/approve"
        )
        assert response.status_code == 200
"""

import os

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Generator, Dict, List, Optional
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from doccontrol.database import make_engine, get_db
from doccontrol.models import Base, Org, User, Project, ProjectMember, Document
from doccontrol.auth.identity import Identity
from doccontrol.auth.jwt import create_access_token
from doccontrol.auth.roles import UserRole
from doccontrol.storage import get_storage
from doccontrol.storage.ports import AttachmentStoragePort, StoredAttachment, StorageError, build_storage_path
from doccontrol.approvals.service import ApprovalWorkflowService


class InMemoryAttachmentStorage(AttachmentStoragePort):
    """Attachment store double that keeps blobs in a dict.

    File names listed in fail_on make store() raise StorageError.
    """

    def __init__(self, fail_on: Optional[List[str]] = None):
        self.blobs: Dict[str, bytes] = {}
        self.fail_on = set(fail_on or [])

    async def store(self, document_id, step_id, file_name, content, content_type) -> StoredAttachment:
        if file_name in self.fail_on:
            raise StorageError(f"Failed to upload file: simulated outage for {file_name}")
        if not content:
            raise StorageError(f"Cannot store empty file: {file_name}")
        path = build_storage_path(document_id, step_id, file_name)
        self.blobs[path] = content
        return StoredAttachment(storage_path=path, size_bytes=len(content), content_type=content_type)

    async def generate_download_url(self, storage_path: str, ttl_seconds: int = 3600) -> str:
        return f"https://storage.test/{storage_path}?expires={ttl_seconds}"


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database per test, shared by every session and thread."""
    test_engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def storage() -> InMemoryAttachmentStorage:
    return InMemoryAttachmentStorage()


def _make_user(db: Session, org: Org, email: str, name: str, role: str = "MEMBER", status: str = "ACTIVE") -> User:
    user = User(org_id=org.id, email=email, name=name, role=role, status=status)
    db.add(user)
    db.flush()
    return user


@pytest.fixture(scope="function")
def test_org(db_session: Session) -> Org:
    org = Org(slug="acme-engineering", name="Acme Engineering")
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope="function")
def other_org(db_session: Session) -> Org:
    org = Org(slug="globex", name="Globex")
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope="function")
def users(db_session: Session, test_org: Org) -> Dict[str, User]:
    """Users of test_org keyed by their part in the tests."""
    result = {
        "requester": _make_user(db_session, test_org, "requester@acme.test", "Rita Requester"),
        "approver1": _make_user(db_session, test_org, "a1@acme.test", "Ann Approver"),
        "approver2": _make_user(db_session, test_org, "a2@acme.test", "Ben Approver"),
        "approver3": _make_user(db_session, test_org, "a3@acme.test", "Cem Approver"),
        "manager": _make_user(db_session, test_org, "pm@acme.test", "Pat Manager", role="MANAGER"),
        "admin": _make_user(db_session, test_org, "admin@acme.test", "Ada Admin", role="ADMIN"),
        "viewer": _make_user(db_session, test_org, "viewer@acme.test", "Val Viewer", role="VIEWER"),
        "outsider": _make_user(db_session, test_org, "outsider@acme.test", "Otto Outsider"),
        "disabled": _make_user(db_session, test_org, "gone@acme.test", "Gus Gone", status="DISABLED"),
    }
    db_session.commit()
    return result


@pytest.fixture(scope="function")
def foreign_user(db_session: Session, other_org: Org) -> User:
    user = _make_user(db_session, other_org, "intruder@globex.test", "Ivy Intruder", role="ADMIN")
    db_session.commit()
    return user


@pytest.fixture(scope="function")
def project(db_session: Session, test_org: Org, users: Dict[str, User]) -> Project:
    """Project whose members are everyone except the outsider and the admin."""
    project = Project(org_id=test_org.id, name="Harbour Bridge Retrofit")
    db_session.add(project)
    db_session.flush()

    for key in ("requester", "approver1", "approver2", "approver3", "viewer", "disabled"):
        db_session.add(ProjectMember(project_id=project.id, user_id=users[key].id, role="MEMBER"))
    db_session.add(ProjectMember(project_id=project.id, user_id=users["manager"].id, role="MANAGER"))
    db_session.commit()
    return project


@pytest.fixture(scope="function")
def document(db_session: Session, project: Project, users: Dict[str, User]) -> Document:
    document = Document(
        project_id=project.id,
        title="General Arrangement Rev C",
        file_name="GA-rev-C.pdf",
        uploaded_by=users["requester"].id,
        status="draft",
    )
    db_session.add(document)
    db_session.commit()
    return document


@pytest.fixture(scope="function")
def foreign_document(db_session: Session, other_org: Org, foreign_user: User) -> Document:
    project = Project(org_id=other_org.id, name="Globex HQ")
    db_session.add(project)
    db_session.flush()
    document = Document(project_id=project.id, title="Secret Plan", uploaded_by=foreign_user.id)
    db_session.add(document)
    db_session.commit()
    return document


def identity_for(user: User) -> Identity:
    return Identity(user_id=user.id, org_id=user.org_id, role=UserRole(user.role), email=user.email)


@pytest.fixture(scope="function")
def identities(users: Dict[str, User]) -> Dict[str, Identity]:
    """Caller identities keyed like the users fixture."""
    return {key: identity_for(user) for key, user in users.items()}


def token_for(user: User) -> str:
    return create_access_token(user_id=user.id, org_id=user.org_id, role=user.role, email=user.email)


@pytest.fixture(scope="function")
def service(db_session: Session, storage: InMemoryAttachmentStorage) -> ApprovalWorkflowService:
    return ApprovalWorkflowService(db_session, storage=storage)


@pytest.fixture(scope="function")
def approvers(users: Dict[str, User]) -> List[UUID]:
    return [users["approver1"].id, users["approver2"].id, users["approver3"].id]


@pytest.fixture(scope="function")
def app(db_session: Session, storage: InMemoryAttachmentStorage):
    """FastAPI app wired to the test database and in-memory storage."""
    from doccontrol.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app) -> TestClient:
    """Unauthenticated test client."""
    return TestClient(app)


@pytest.fixture(scope="function")
def client_for(app):
    """Factory returning a test client authenticated as the given user."""

    def make_client(user: User) -> TestClient:
        test_client = TestClient(app)
        test_client.headers = {"Authorization": f"Bearer {token_for(user)}"}
        return test_client

    return make_client
