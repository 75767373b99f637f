"""Approval workflow engine.

A workflow walks a document through an ordered list of approvers. Only the
approver of the step under the current_step pointer may decide, and each
decision is written with a conditional UPDATE so that two concurrent
decisions (or a decision racing a cancel) cannot both succeed.

Side effects of every transition:
- the document's status column mirrors the workflow status
- an entry is appended to the document activity log (failures swallowed)

The service flushes but never commits; routers own the transaction.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, List, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from ..activity.service import ActivityLogService
from ..auth.identity import Identity
from ..config import get_settings
from ..documents.service import DocumentRecordService
from ..models.activity_log import ActivityAction
from ..models.approval_step import ApprovalStep, StepStatus
from ..models.approval_workflow import ApprovalWorkflow, WorkflowStatus
from ..models.base import utcnow
from ..models.document import Document, DocumentStatus
from ..models.rejection_attachment import RejectionAttachment
from ..observability.metrics import workflow_transitions_total, attachment_uploads_total
from ..storage.ports import AttachmentStoragePort, StorageError, sanitize_filename
from . import access
from .errors import ValidationError, NotAuthorizedError, NotFoundError, ConflictError, InvalidStateError
from .repository import WorkflowRepository
from .status import DOCUMENT_STATUS_FOR, validate_transition, status_after_approval

logger = logging.getLogger(__name__)


@dataclass
class AttachmentUpload:
    """A file received with a rejection, already read into memory."""
    file_name: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class SkippedAttachment:
    """A file that could not be stored, and why."""
    file_name: str
    reason: str


@dataclass
class RejectionResult:
    """Outcome of reject(): the terminal workflow plus per-file upload results."""
    workflow: ApprovalWorkflow
    attachments: List[RejectionAttachment] = field(default_factory=list)
    skipped: List[SkippedAttachment] = field(default_factory=list)


@dataclass
class AttachmentLink:
    """Attachment row paired with a signed download URL (None if signing failed)."""
    attachment: RejectionAttachment
    download_url: Optional[str]


ENGAGEMENT_KINDS = {
    "viewed": ("viewed_document", ActivityAction.VIEW, "Viewed document during approval"),
    "downloaded": ("downloaded_document", ActivityAction.DOWNLOAD, "Downloaded document during approval"),
    "opened_in_sharepoint": ("opened_in_sharepoint", ActivityAction.VIEW, "Opened document in SharePoint during approval"),
}


class ApprovalWorkflowService:
    """Creates, advances, rejects and cancels approval workflows."""

    def __init__(
        self,
        db: Session,
        storage: Optional[AttachmentStoragePort] = None,
        activity_log: Optional[ActivityLogService] = None,
        documents: Optional[DocumentRecordService] = None,
        max_attachment_bytes: Optional[int] = None,
    ):
        self.db = db
        self.storage = storage
        self.repository = WorkflowRepository(db)
        self.activity_log = activity_log or ActivityLogService(db)
        self.documents = documents or DocumentRecordService(db)
        self.max_attachment_bytes = max_attachment_bytes or get_settings().MAX_ATTACHMENT_SIZE_BYTES

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def create_workflow(
        self,
        document_id: UUID,
        approver_ids: Sequence[UUID],
        requested_by: Identity,
        comments: Optional[str] = None,
    ) -> ApprovalWorkflow:
        """Start a workflow with one step per approver, in the given order.

        Duplicate approver ids are kept; each occurrence is a separate turn.

        Raises:
            NotFoundError: Document not in the caller's organization
            NotAuthorizedError: Caller may not request approval
            ValidationError: Empty or ineligible approver list
            ConflictError: An active workflow already exists
        """
        document = self.documents.get_for_identity(document_id, requested_by)
        access.ensure_can_request_approval(self.db, document, requested_by)
        access.validate_approvers(self.db, document, requested_by.org_id, approver_ids)

        if self.repository.get_active_for_document(document.id) is not None:
            raise ConflictError("An approval workflow is already active for this document")

        validate_transition(None, WorkflowStatus.PENDING)
        workflow = self.repository.create(
            document_id=document.id,
            approver_ids=list(approver_ids),
            requested_by=requested_by.user_id,
            comments=comments,
        )

        previous_status = self.documents.set_status(document, DocumentStatus.PENDING_REVIEW)
        self.activity_log.append(
            document_id=document.id,
            user_id=requested_by.user_id,
            action=ActivityAction.STATUS_CHANGE,
            description="Approval requested",
            old_value=previous_status,
            new_value=DocumentStatus.PENDING_REVIEW.value,
            reason=comments,
            metadata={
                "workflow_id": str(workflow.id),
                "total_steps": workflow.total_steps,
                "approver_ids": [str(approver_id) for approver_id in approver_ids],
            },
        )

        workflow_transitions_total.labels(transition="created").inc()
        logger.info(
            f"Approval workflow created with {workflow.total_steps} step(s)",
            extra={"document_id": document.id, "workflow_id": workflow.id, "user_id": requested_by.user_id},
        )
        return workflow

    def approve(
        self,
        document_id: UUID,
        approver: Identity,
        comments: Optional[str] = None,
    ) -> ApprovalWorkflow:
        """Approve the current step; advance the pointer or finish the workflow.

        Raises:
            NotFoundError: No document or no workflow
            InvalidStateError: Workflow is terminal or the step is already decided
            NotAuthorizedError: Not the caller's turn, or not a participant
            ConflictError: A concurrent decision or cancel won the race
        """
        document = self.documents.get_for_identity(document_id, approver)
        workflow = self._get_active_workflow(document)
        step = self._current_step_for(workflow, approver)

        step_number = workflow.current_step
        total_steps = workflow.total_steps
        previous_status = WorkflowStatus(workflow.overall_status)
        new_status = status_after_approval(step_number, total_steps)
        validate_transition(previous_status, new_status)

        now = utcnow()
        if not self.repository.mark_step_decided(step.id, StepStatus.APPROVED, comments, now):
            self._lost_race(workflow)

        if new_status == WorkflowStatus.APPROVED:
            written = self.repository.complete(workflow.id, step_number, WorkflowStatus.APPROVED, now)
        else:
            written = self.repository.advance(workflow.id, step_number)
        if not written:
            self._lost_race(workflow)

        self.db.refresh(workflow)
        self.documents.set_status(document, DOCUMENT_STATUS_FOR[new_status])

        if new_status == WorkflowStatus.APPROVED:
            description = f"Approved final step {step_number} of {total_steps}; document approved"
        else:
            description = f"Approved step {step_number} of {total_steps}"

        self.activity_log.append(
            document_id=document.id,
            user_id=approver.user_id,
            action=ActivityAction.APPROVAL,
            description=description,
            old_value=previous_status.value,
            new_value=new_status.value,
            reason=comments,
            metadata={"step": step_number, "total_steps": total_steps},
        )

        workflow_transitions_total.labels(
            transition="approved" if new_status == WorkflowStatus.APPROVED else "advanced"
        ).inc()
        logger.info(
            f"Step {step_number}/{total_steps} approved; workflow {new_status.value}",
            extra={"document_id": document.id, "workflow_id": workflow.id, "user_id": approver.user_id},
        )
        return workflow

    async def reject(
        self,
        document_id: UUID,
        approver: Identity,
        comments: Optional[str],
        files: Sequence[AttachmentUpload] = (),
    ) -> RejectionResult:
        """Reject the current step. Rejection is terminal for the whole workflow.

        Files are uploaded best-effort after the decision is recorded. A file
        that cannot be stored is reported in RejectionResult.skipped and
        does not undo the rejection. Later steps stay pending.

        Raises:
            ValidationError: Comments missing or blank (checked first)
            NotFoundError / InvalidStateError / NotAuthorizedError / ConflictError:
                as for approve()
        """
        if comments is None or not comments.strip():
            raise ValidationError("Comments are required when rejecting")
        comments = comments.strip()

        document = self.documents.get_for_identity(document_id, approver)
        workflow = self._get_active_workflow(document)
        step = self._current_step_for(workflow, approver)

        step_number = workflow.current_step
        total_steps = workflow.total_steps
        previous_status = WorkflowStatus(workflow.overall_status)
        validate_transition(previous_status, WorkflowStatus.REJECTED)

        now = utcnow()
        if not self.repository.mark_step_decided(step.id, StepStatus.REJECTED, comments, now):
            self._lost_race(workflow)
        if not self.repository.complete(workflow.id, step_number, WorkflowStatus.REJECTED, now):
            self._lost_race(workflow)

        attachments, skipped = await self._store_attachments(document, step, approver, files)

        self.db.expire_all()
        self.documents.set_status(document, DocumentStatus.REJECTED)
        self.activity_log.append(
            document_id=document.id,
            user_id=approver.user_id,
            action=ActivityAction.REJECTED,
            description=f"Rejected at step {step_number} of {total_steps}",
            old_value=previous_status.value,
            new_value=WorkflowStatus.REJECTED.value,
            reason=comments,
            metadata={
                "step": step_number,
                "total_steps": total_steps,
                "attachment_count": len(attachments),
                "skipped_count": len(skipped),
            },
        )

        workflow_transitions_total.labels(transition="rejected").inc()
        logger.info(
            f"Step {step_number}/{total_steps} rejected with {len(attachments)} attachment(s), "
            f"{len(skipped)} skipped",
            extra={"document_id": document.id, "workflow_id": workflow.id, "user_id": approver.user_id},
        )
        return RejectionResult(workflow=workflow, attachments=attachments, skipped=skipped)

    def cancel(self, document_id: UUID, requested_by: Identity) -> None:
        """Hard-delete the active workflow and revert the document to draft.

        Step and attachment rows cascade. Attachment blobs stay in the
        attachment store.

        Raises:
            NotFoundError: No document or no workflow
            InvalidStateError: The latest workflow is already terminal
            NotAuthorizedError: Caller may not cancel
            ConflictError: The workflow finished or was cancelled concurrently
        """
        document = self.documents.get_for_identity(document_id, requested_by)
        workflow = self._get_active_workflow(document)
        access.ensure_can_cancel(self.db, document, workflow, requested_by)

        workflow_id = workflow.id
        previous_status = workflow.overall_status

        if not self.repository.delete_active(workflow_id):
            self._lost_race(workflow)

        self.documents.set_status(document, DocumentStatus.DRAFT)
        self.activity_log.append(
            document_id=document.id,
            user_id=requested_by.user_id,
            action=ActivityAction.STATUS_CHANGE,
            description="Approval cancelled",
            old_value=previous_status,
            new_value=DocumentStatus.DRAFT.value,
            metadata={"workflow_id": str(workflow_id)},
        )

        workflow_transitions_total.labels(transition="cancelled").inc()
        logger.info(
            "Approval workflow cancelled",
            extra={"document_id": document.id, "workflow_id": workflow_id, "user_id": requested_by.user_id},
        )

    # ------------------------------------------------------------------
    # Queries and supplementary operations
    # ------------------------------------------------------------------

    def get_workflow(self, document_id: UUID, identity: Identity) -> Optional[ApprovalWorkflow]:
        """Latest workflow for the document with its steps, or None."""
        document = self.documents.get_for_identity(document_id, identity)
        return self.repository.get_latest_for_document(document.id)

    def list_pending_for_approver(self, approver_id: UUID, org_id: UUID) -> List[ApprovalWorkflow]:
        """Active workflows whose current step is waiting on approver_id."""
        return self.repository.list_pending_for_approver(approver_id, org_id)

    def count_pending_for_approver(self, approver_id: UUID, org_id: UUID) -> int:
        return self.repository.count_pending_for_approver(approver_id, org_id)

    async def add_step_attachments(
        self,
        document_id: UUID,
        step_id: UUID,
        identity: Identity,
        files: Sequence[AttachmentUpload],
    ) -> Tuple[List[RejectionAttachment], List[SkippedAttachment]]:
        """Attach more files to a step its approver already rejected.

        Raises:
            NotFoundError: Unknown document or step
            NotAuthorizedError: Caller is not the step's approver
            InvalidStateError: Step is not rejected
            ValidationError: No files given
        """
        if not files:
            raise ValidationError("At least one file is required")

        document = self.documents.get_for_identity(document_id, identity)
        step = self._get_step(document, step_id)

        if step.approver_id != identity.user_id:
            raise NotAuthorizedError("Only the approver who rejected this step can add attachments")
        if step.status != StepStatus.REJECTED.value:
            raise InvalidStateError(
                "Attachments can only be added to a rejected step",
                details={"step_status": step.status},
            )

        attachments, skipped = await self._store_attachments(document, step, identity, files)

        if attachments:
            self.activity_log.append(
                document_id=document.id,
                user_id=identity.user_id,
                action=ActivityAction.REJECTION,
                description=f"Added {len(attachments)} attachment(s) to rejection",
                metadata={
                    "step": step.step_order,
                    "attachment_count": len(attachments),
                    "skipped_count": len(skipped),
                },
            )
        return attachments, skipped

    async def list_step_attachments(
        self,
        document_id: UUID,
        step_id: UUID,
        identity: Identity,
        ttl_seconds: Optional[int] = None,
    ) -> List[AttachmentLink]:
        """Attachments of a step with signed download URLs.

        Raises:
            NotFoundError: Unknown document or step
        """
        document = self.documents.get_for_identity(document_id, identity)
        step = self._get_step(document, step_id)
        ttl_seconds = ttl_seconds or get_settings().ATTACHMENT_URL_TTL_SECONDS

        links = []
        for attachment in step.attachments:
            url = None
            if self.storage is not None:
                try:
                    url = await self.storage.generate_download_url(attachment.storage_path, ttl_seconds)
                except StorageError as e:
                    logger.warning(
                        f"Could not sign download URL for {attachment.storage_path}: {e}",
                        extra={"document_id": document.id, "step_id": step.id},
                    )
            links.append(AttachmentLink(attachment=attachment, download_url=url))
        return links

    def record_engagement(self, document_id: UUID, identity: Identity, kind: str) -> ApprovalStep:
        """Flag that the current approver viewed, downloaded or opened the document.

        Flags are advisory and never change workflow state.

        Raises:
            ValidationError: Unknown engagement kind
            NotFoundError / InvalidStateError / NotAuthorizedError: as for approve()
        """
        if kind not in ENGAGEMENT_KINDS:
            raise ValidationError(
                f"Unknown engagement kind: {kind}",
                details={"allowed": sorted(ENGAGEMENT_KINDS)},
            )
        flag, action, description = ENGAGEMENT_KINDS[kind]

        document = self.documents.get_for_identity(document_id, identity)
        workflow = self._get_active_workflow(document)
        step = self._current_step_for(workflow, identity)

        self.repository.set_engagement_flag(step.id, flag)
        self.db.refresh(step)

        metadata = {"step": step.step_order, "workflow_id": str(workflow.id)}
        if kind == "opened_in_sharepoint":
            metadata["source"] = "sharepoint"
        self.activity_log.append(
            document_id=document.id,
            user_id=identity.user_id,
            action=action,
            description=description,
            metadata=metadata,
        )
        return step

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_active_workflow(self, document: Document) -> ApprovalWorkflow:
        workflow = self.repository.get_latest_for_document(document.id)
        if workflow is None:
            raise NotFoundError("No approval workflow exists for this document")
        if not workflow.is_active:
            raise InvalidStateError(
                f"Approval workflow is already {workflow.overall_status}",
                details={"overall_status": workflow.overall_status},
            )
        return workflow

    def _get_step(self, document: Document, step_id: UUID) -> ApprovalStep:
        step = self.repository.get_step_for_document(document.id, step_id)
        if step is None:
            raise NotFoundError(f"Approval step {step_id} not found")
        return step

    def _current_step_for(self, workflow: ApprovalWorkflow, identity: Identity) -> ApprovalStep:
        """The step the caller may decide on right now.

        The current step must belong to the caller and still be pending.
        """
        step = workflow.current_step_row()
        if step is None:
            raise InvalidStateError("Approval workflow has no step at its current position")

        if step.approver_id != identity.user_id:
            if any(s.approver_id == identity.user_id for s in workflow.steps):
                raise NotAuthorizedError("It is not your turn to review this document")
            raise NotAuthorizedError("You are not an approver on this workflow")

        if step.status != StepStatus.PENDING.value:
            raise InvalidStateError(
                f"Step {step.step_order} has already been {step.status}",
                details={"step_status": step.status},
            )
        return step

    def _lost_race(self, workflow: ApprovalWorkflow) -> None:
        """Abort after a conditional write matched no row."""
        workflow_id = workflow.id
        self.db.rollback()
        logger.warning(
            "Approval decision lost a concurrent update",
            extra={"workflow_id": workflow_id},
        )
        raise ConflictError("The approval workflow was changed by another request; reload and try again")

    async def _store_attachments(
        self,
        document: Document,
        step: ApprovalStep,
        identity: Identity,
        files: Sequence[AttachmentUpload],
    ) -> Tuple[List[RejectionAttachment], List[SkippedAttachment]]:
        attachments: List[RejectionAttachment] = []
        skipped: List[SkippedAttachment] = []

        for upload in files:
            file_name = sanitize_filename(upload.file_name)
            reason = None

            if self.storage is None:
                reason = "Attachment storage is not configured"
            elif len(upload.content) > self.max_attachment_bytes:
                reason = f"File exceeds {self.max_attachment_bytes} bytes"
            else:
                try:
                    stored = await self.storage.store(
                        document_id=document.id,
                        step_id=step.id,
                        file_name=file_name,
                        content=upload.content,
                        content_type=upload.content_type,
                    )
                except StorageError as e:
                    reason = str(e)

            if reason is not None:
                attachment_uploads_total.labels(status="skipped").inc()
                logger.warning(
                    f"Skipped rejection attachment {file_name}: {reason}",
                    extra={"document_id": document.id, "step_id": step.id},
                )
                skipped.append(SkippedAttachment(file_name=upload.file_name, reason=reason))
                continue

            attachments.append(
                self.repository.add_attachment(
                    step_id=step.id,
                    file_name=file_name,
                    file_size=stored.size_bytes,
                    file_type=stored.content_type,
                    storage_path=stored.storage_path,
                    uploaded_by=identity.user_id,
                )
            )
            attachment_uploads_total.labels(status="stored").inc()

        return attachments, skipped
