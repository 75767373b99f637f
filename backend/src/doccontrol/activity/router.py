"""Document activity log endpoints.

GET lists a document's activity newest first. POST lets other parts of the
application (viewer, version upload, comments) record their own events.
Entries cannot be updated or deleted through the API, and the actions the
approval engine writes itself cannot be posted.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..approvals.access import ensure_can_record_activity
from ..approvals.errors import ValidationError
from ..auth.dependencies import get_current_identity, require_role
from ..auth.identity import Identity
from ..auth.roles import UserRole
from ..database import get_db
from ..documents.service import DocumentRecordService
from ..models.activity_log import ActivityAction
from .schemas import ActivityLogEntryResponse, ActivityLogCreate
from .service import ActivityLogService


router = APIRouter(prefix="/documents", tags=["Activity Log"])

# Written only by the approval workflow engine
ENGINE_ACTIONS = frozenset({
    ActivityAction.APPROVAL,
    ActivityAction.REJECTED,
    ActivityAction.REJECTION,
    ActivityAction.STATUS_CHANGE,
})


@router.get(
    "/{document_id}/logs",
    response_model=list[ActivityLogEntryResponse],
    summary="List document activity",
    description="Returns the document's activity log ordered by created_at DESC (newest first)."
)
def list_document_logs(
    document_id: UUID,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> list[ActivityLogEntryResponse]:
    """List activity log entries for a document.

    Requirements:
    - Authenticated caller from the document's organization
    - Documents of other organizations respond 404
    """
    document = DocumentRecordService(db).get_for_identity(document_id, identity)
    entries = ActivityLogService(db).list(document.id)
    return [ActivityLogEntryResponse(**entry.to_dict()) for entry in entries]


@router.post(
    "/{document_id}/logs",
    response_model=ActivityLogEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record document activity",
)
def create_document_log(
    document_id: UUID,
    body: ActivityLogCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_role(UserRole.MEMBER)),
) -> ActivityLogEntryResponse:
    """Append an entry attributed to the caller.

    Requirements:
    - MEMBER role or higher
    - Caller is the uploader, a project member or an org admin
    - Approval outcomes and status changes are rejected with 400

    A failed write is reported as 503.
    """
    if body.action in ENGINE_ACTIONS:
        raise ValidationError(
            f"Action '{body.action.value}' is recorded by the approval workflow only",
            details={"action": body.action.value},
        )

    document = DocumentRecordService(db).get_for_identity(document_id, identity)
    ensure_can_record_activity(db, document, identity)

    entry = ActivityLogService(db).append(
        document_id=document.id,
        user_id=identity.user_id,
        action=body.action,
        description=body.description,
        old_value=body.old_value,
        new_value=body.new_value,
        reason=body.reason,
        metadata=body.metadata,
    )
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Activity entry could not be recorded",
        )

    db.commit()
    db.refresh(entry)
    return ActivityLogEntryResponse(**entry.to_dict())
