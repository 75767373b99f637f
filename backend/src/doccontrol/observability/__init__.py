"""Observability: structured logging, metrics and health checks."""

from .logging_config import configure_logging, get_logger, get_request_id, request_id_var
from .metrics import (
    workflow_transitions_total,
    attachment_uploads_total,
    activity_log_failures_total,
)
from .health import HealthStatus, ComponentHealth
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "workflow_transitions_total",
    "attachment_uploads_total",
    "activity_log_failures_total",
    # Request ID
    "request_id_var",
    "get_request_id",
    # Health
    "HealthStatus",
    "ComponentHealth",
    # Middleware
    "RequestIDMiddleware",
]
