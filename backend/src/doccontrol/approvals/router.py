"""Approval workflow API endpoints

Document-scoped operations live under /documents/{document_id}/approvals.
The approver inbox lives under /approvals.

Every endpoint needs an authenticated caller. Documents of other
organizations respond 404. Domain errors are rendered by the handlers
registered in main.py.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_identity
from ..auth.identity import Identity
from ..config import get_settings
from ..database import get_db
from ..storage import AttachmentStoragePort, get_storage
from .errors import ValidationError
from .schemas import (
    CreateWorkflowRequest,
    ApproveRequest,
    EngagementRequest,
    WorkflowResponse,
    StepResponse,
    RejectResponse,
    StepAttachmentsResponse,
    AttachmentResponse,
    AttachmentLinkResponse,
    SkippedAttachmentResponse,
    CancelResponse,
    PendingApprovalResponse,
    PendingCountResponse,
)
from .service import ApprovalWorkflowService, AttachmentUpload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["Approvals"])
inbox_router = APIRouter(prefix="/approvals", tags=["Approvals"])


async def _read_uploads(files: Optional[List[UploadFile]]) -> List[AttachmentUpload]:
    files = [f for f in (files or []) if f.filename]
    max_files = get_settings().MAX_ATTACHMENTS_PER_REQUEST
    if len(files) > max_files:
        raise ValidationError(
            f"Too many files: {len(files)} (max {max_files} per request)",
            details={"max_files": max_files},
        )

    uploads = []
    for f in files:
        uploads.append(
            AttachmentUpload(
                file_name=f.filename,
                content=await f.read(),
                content_type=f.content_type or "application/octet-stream",
            )
        )
    return uploads


@router.post(
    "/{document_id}/approvals",
    response_model=WorkflowResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request approval",
    description="""
    Start a sequential approval workflow for the document.

    **Requirements:**
    - Caller is the uploader, a project member or an org ADMIN (never a VIEWER)
    - Every approver is an active member of the document's project
    - No other workflow for the document is pending or under review

    **Document status:** → pending_review
    """
)
def create_workflow(
    document_id: UUID,
    body: CreateWorkflowRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> WorkflowResponse:
    """Create a workflow with one step per approver.

    Raises:
        400: Empty or ineligible approver list
        403: Caller may not request approval
        404: Document not found
        409: An active workflow already exists
    """
    workflow = ApprovalWorkflowService(db).create_workflow(
        document_id=document_id,
        approver_ids=body.approver_ids,
        requested_by=identity,
        comments=body.comments,
    )
    db.commit()
    db.refresh(workflow)
    return WorkflowResponse.model_validate(workflow)


@router.get(
    "/{document_id}/approvals",
    response_model=Optional[WorkflowResponse],
    summary="Get the latest approval workflow",
)
def get_workflow(
    document_id: UUID,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> Optional[WorkflowResponse]:
    """Latest workflow with steps and attachments, or null if approval was never requested."""
    workflow = ApprovalWorkflowService(db).get_workflow(document_id, identity)
    if workflow is None:
        return None
    return WorkflowResponse.model_validate(workflow)


@router.post(
    "/{document_id}/approvals/approve",
    response_model=WorkflowResponse,
    summary="Approve the current step",
    description="""
    Approve the step under the workflow's current pointer.

    **State Transition:** pending/under-review → under-review (more steps remain)
    or → approved (last step)
    """
)
def approve(
    document_id: UUID,
    body: Optional[ApproveRequest] = None,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> WorkflowResponse:
    """Approve as the current approver.

    Raises:
        403: Not the caller's turn, or not a participant
        404: Document or workflow not found
        409: Workflow terminal, step decided, or concurrent update
    """
    workflow = ApprovalWorkflowService(db).approve(
        document_id=document_id,
        approver=identity,
        comments=body.comments if body else None,
    )
    db.commit()
    db.refresh(workflow)
    return WorkflowResponse.model_validate(workflow)


@router.post(
    "/{document_id}/approvals/reject",
    response_model=RejectResponse,
    summary="Reject the current step",
    description="""
    Reject the document at the current step. Rejection ends the workflow.

    Multipart form: `comments` (required) and any number of `files`.
    Files are stored best-effort; files that fail are listed under `skipped`
    and do not prevent the rejection.
    """
)
async def reject(
    document_id: UUID,
    comments: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    storage: Optional[AttachmentStoragePort] = Depends(get_storage),
) -> RejectResponse:
    """Reject as the current approver.

    Raises:
        400: Missing comments or too many files
        403: Not the caller's turn, or not a participant
        404: Document or workflow not found
        409: Workflow terminal, step decided, or concurrent update
    """
    if comments is None or not comments.strip():
        raise ValidationError("Comments are required when rejecting")

    uploads = await _read_uploads(files)
    result = await ApprovalWorkflowService(db, storage=storage).reject(
        document_id=document_id,
        approver=identity,
        comments=comments,
        files=uploads,
    )
    db.commit()
    db.refresh(result.workflow)

    return RejectResponse(
        workflow=WorkflowResponse.model_validate(result.workflow),
        attachments=[AttachmentResponse.model_validate(a) for a in result.attachments],
        skipped=[SkippedAttachmentResponse(file_name=s.file_name, reason=s.reason) for s in result.skipped],
    )


@router.post(
    "/{document_id}/approvals/cancel",
    response_model=CancelResponse,
    summary="Cancel the active approval workflow",
    description="""
    Delete the active workflow with its steps and revert the document to draft.
    Allowed for the requester, the uploader, a project MANAGER or an org ADMIN.
    """
)
def cancel(
    document_id: UUID,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> CancelResponse:
    """Cancel approval.

    Raises:
        403: Caller may not cancel
        404: Document not found or no workflow
        409: Workflow already finished, or concurrent update
    """
    ApprovalWorkflowService(db).cancel(document_id=document_id, requested_by=identity)
    db.commit()
    return CancelResponse(document_id=document_id)


@router.post(
    "/{document_id}/approvals/engagement",
    response_model=StepResponse,
    summary="Record approver engagement",
)
def record_engagement(
    document_id: UUID,
    body: EngagementRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> StepResponse:
    """Set the viewed/downloaded/opened flag on the caller's current step."""
    step = ApprovalWorkflowService(db).record_engagement(document_id, identity, body.kind)
    db.commit()
    db.refresh(step)
    return StepResponse.model_validate(step)


@router.post(
    "/{document_id}/approvals/steps/{step_id}/attachments",
    response_model=StepAttachmentsResponse,
    summary="Add attachments to a rejected step",
)
async def add_step_attachments(
    document_id: UUID,
    step_id: UUID,
    files: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    storage: Optional[AttachmentStoragePort] = Depends(get_storage),
) -> StepAttachmentsResponse:
    """Supplementary upload by the approver who rejected the step.

    Raises:
        400: No files or too many files
        403: Caller is not the step's approver
        404: Document or step not found
        409: Step is not rejected
    """
    uploads = await _read_uploads(files)
    attachments, skipped = await ApprovalWorkflowService(db, storage=storage).add_step_attachments(
        document_id=document_id,
        step_id=step_id,
        identity=identity,
        files=uploads,
    )
    db.commit()

    return StepAttachmentsResponse(
        attachments=[AttachmentResponse.model_validate(a) for a in attachments],
        skipped=[SkippedAttachmentResponse(file_name=s.file_name, reason=s.reason) for s in skipped],
    )


@router.get(
    "/{document_id}/approvals/steps/{step_id}/attachments",
    response_model=List[AttachmentLinkResponse],
    summary="List attachments of a step",
)
async def list_step_attachments(
    document_id: UUID,
    step_id: UUID,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    storage: Optional[AttachmentStoragePort] = Depends(get_storage),
) -> List[AttachmentLinkResponse]:
    """Attachments with signed download URLs valid for ATTACHMENT_URL_TTL_SECONDS."""
    links = await ApprovalWorkflowService(db, storage=storage).list_step_attachments(
        document_id=document_id,
        step_id=step_id,
        identity=identity,
    )
    return [
        AttachmentLinkResponse(
            **AttachmentResponse.model_validate(link.attachment).model_dump(),
            download_url=link.download_url,
        )
        for link in links
    ]


@inbox_router.get(
    "",
    response_model=List[PendingApprovalResponse],
    summary="List workflows waiting on the caller",
)
def list_pending(
    for_approver: str = Query("me", alias="forApprover", description="Only 'me' is supported"),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> List[PendingApprovalResponse]:
    """Active workflows in the caller's org whose current step belongs to the caller.

    Example:
        GET /approvals?forApprover=me
    """
    if for_approver != "me":
        raise ValidationError("Only forApprover=me is supported")

    workflows = ApprovalWorkflowService(db).list_pending_for_approver(identity.user_id, identity.org_id)
    return [
        PendingApprovalResponse(
            workflow_id=w.id,
            document_id=w.document_id,
            document_title=w.document.title,
            current_step=w.current_step,
            total_steps=w.total_steps,
            overall_status=w.overall_status,
            requested_by=w.requested_by,
            requested_at=w.requested_at,
            comments=w.comments,
        )
        for w in workflows
    ]


@inbox_router.get(
    "/count",
    response_model=PendingCountResponse,
    summary="Count workflows waiting on the caller",
)
def count_pending(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> PendingCountResponse:
    count = ApprovalWorkflowService(db).count_pending_for_approver(identity.user_id, identity.org_id)
    return PendingCountResponse(count=count)
