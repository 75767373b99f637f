"""Integration tests for health, readiness and metrics endpoints"""

from uuid import UUID

import pytest

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def no_object_storage(monkeypatch):
    monkeypatch.delenv("MINIO_ROOT_USER", raising=False)
    monkeypatch.delenv("MINIO_ROOT_PASSWORD", raising=False)


def test_health_degraded_without_object_storage(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["components"]["database"]["status"] == "healthy"
    assert data["components"]["object_storage"]["status"] == "degraded"


def test_ready(client):
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json()["status"] == "ready"


def test_metrics_exposes_workflow_counters(client):
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "doccontrol_workflow_transitions_total" in response.text
    assert "doccontrol_attachment_uploads_total" in response.text


def test_request_id_is_echoed(client):
    response = client.get("/ready", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_root(client):
    assert client.get("/").json()["name"] == "Document Control API"


def test_request_id_is_generated_when_absent(client):
    first = client.get("/ready").headers["X-Request-ID"]
    second = client.get("/ready").headers["X-Request-ID"]

    assert str(UUID(first)) == first
    assert first != second


def test_ready_reports_database(client):
    assert client.get("/ready").json()["database"]["status"] == "healthy"
