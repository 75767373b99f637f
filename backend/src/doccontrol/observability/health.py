"""Health check utilities.

Provides health and readiness checks for the database and attachment store.
"""

import time
from enum import Enum
from typing import Dict, Optional
from dataclasses import dataclass

from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..storage.config import load_storage_config_from_env
from ..storage.s3_adapter import S3AttachmentStorage
from ..storage.ports import StorageError
from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status enum."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single component."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_database_health(db: Session) -> ComponentHealth:
    """Check database connectivity with a trivial query."""
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Database connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message="Database unavailable"
        )


def check_object_storage_health() -> ComponentHealth:
    """Check that the attachment bucket is reachable.

    Storage problems only degrade the service: rejections still go through,
    their attachments are skipped.
    """
    try:
        storage = S3AttachmentStorage.from_config(load_storage_config_from_env())

        start = time.time()
        storage.s3_client.head_bucket(Bucket=storage.bucket_name)
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Object storage connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except (ValueError, StorageError, ClientError, BotoCoreError) as e:
        logger.warning(f"Object storage health check failed: {e}")
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            message="Object storage unavailable"
        )


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Determine overall health from component statuses."""
    if all(c.status == HealthStatus.HEALTHY for c in components.values()):
        return HealthStatus.HEALTHY

    if any(c.status == HealthStatus.UNHEALTHY for c in components.values()):
        return HealthStatus.UNHEALTHY

    return HealthStatus.DEGRADED
