"""Document activity log service.

Every approval workflow transition appends an entry here. Appends are
fire-and-forget from the caller's point of view: the insert runs inside a
SAVEPOINT, and if it fails the savepoint is rolled back, the failure is
logged and counted, and the surrounding transition carries on.
"""

import logging
from typing import Optional, Dict, Any, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.activity_log import DocumentActivityLog, ActivityAction
from ..observability.metrics import activity_log_failures_total

logger = logging.getLogger(__name__)


class ActivityLogService:
    """Writes and reads document activity entries."""

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        document_id: UUID,
        user_id: Optional[UUID],
        action: ActivityAction,
        description: str,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None,
        reason: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[DocumentActivityLog]:
        """Append an entry to the document's activity log.

        Args:
            document_id: Document the event is about
            user_id: User who caused the event
            action: Kind of event
            description: Human-readable summary
            old_value: Value before the change (e.g. previous status)
            new_value: Value after the change
            reason: Free-text reason supplied by the user
            metadata: Additional context as JSON (e.g. {"step": 2, "total_steps": 3})

        Returns:
            The persisted entry, or None if the write failed. Failures are
            never raised to the caller.
        """
        action = ActivityAction(action)

        try:
            with self.db.begin_nested():
                entry = DocumentActivityLog(
                    document_id=document_id,
                    user_id=user_id,
                    action=action.value,
                    description=description,
                    old_value=old_value,
                    new_value=new_value,
                    reason=reason,
                    metadata_json=metadata,
                )
                self.db.add(entry)
                self.db.flush()
        except SQLAlchemyError as e:
            activity_log_failures_total.labels(action=action.value).inc()
            logger.error(
                f"Failed to write activity log entry: {e}",
                extra={"document_id": document_id, "action": action.value},
                exc_info=True,
            )
            return None

        return entry

    def list(self, document_id: UUID) -> List[DocumentActivityLog]:
        """All entries for a document, newest first."""
        query = (
            select(DocumentActivityLog)
            .where(DocumentActivityLog.document_id == document_id)
            .order_by(DocumentActivityLog.created_at.desc())
        )
        return list(self.db.execute(query).scalars().all())
