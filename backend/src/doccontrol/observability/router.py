"""Health, readiness and Prometheus endpoints (mounted outside /api/v1)."""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session

from ..database import get_db
from .health import (
    ComponentHealth,
    HealthStatus,
    check_database_health,
    check_object_storage_health,
    get_overall_health,
)

router = APIRouter(tags=["Observability"])


def _component_body(component: ComponentHealth) -> dict:
    return {
        "status": component.status.value,
        "message": component.message,
        "latency_ms": component.latency_ms,
    }


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """Workflow transition, attachment upload and activity log failure counters."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health", summary="Database and attachment storage status")
def health(db: Session = Depends(get_db)) -> JSONResponse:
    """Report each component and the combined status.

    An unreachable attachment store only degrades the service, since
    approvals and rejections without attachments keep working. The
    response is 503 only when the database is down.
    """
    components = {
        "database": check_database_health(db),
        "object_storage": check_object_storage_health(),
    }
    overall = get_overall_health(components)

    return JSONResponse(
        status_code=503 if overall == HealthStatus.UNHEALTHY else 200,
        content={
            "status": overall.value,
            "components": {name: _component_body(component) for name, component in components.items()},
        },
    )


@router.get("/ready", summary="Readiness to accept workflow requests")
def ready(db: Session = Depends(get_db)):
    database = check_database_health(db)
    body = {"database": _component_body(database)}

    if database.status != HealthStatus.HEALTHY:
        return JSONResponse(status_code=503, content={"status": "not_ready", **body})
    return {"status": "ready", **body}
