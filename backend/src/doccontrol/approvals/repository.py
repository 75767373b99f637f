"""Approval workflow repository for database operations"""

from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update, delete, func, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..models.approval_workflow import ApprovalWorkflow, WorkflowStatus, ACTIVE_WORKFLOW_STATUSES
from ..models.approval_step import ApprovalStep, StepStatus
from ..models.document import Document
from ..models.project import Project
from ..models.rejection_attachment import RejectionAttachment
from .errors import ConflictError

ENGAGEMENT_FLAGS = ("viewed_document", "downloaded_document", "opened_in_sharepoint")


class WorkflowRepository:
    """Repository for approval_workflow, approval_step and rejection_attachment.

    State-changing writes are conditional: each UPDATE/DELETE repeats the
    precondition in its WHERE clause and reports whether a row matched.
    A False return means a concurrent transaction got there first.
    """

    def __init__(self, db: Session):
        self.db = db

    def _with_steps(self):
        return select(ApprovalWorkflow).options(
            selectinload(ApprovalWorkflow.steps).selectinload(ApprovalStep.attachments)
        )

    def get_latest_for_document(self, document_id: UUID) -> Optional[ApprovalWorkflow]:
        """Most recently created workflow for the document, active or not."""
        query = (
            self._with_steps()
            .where(ApprovalWorkflow.document_id == document_id)
            .order_by(ApprovalWorkflow.created_at.desc())
            .limit(1)
        )
        return self.db.execute(query).scalars().first()

    def get_active_for_document(self, document_id: UUID) -> Optional[ApprovalWorkflow]:
        query = self._with_steps().where(
            ApprovalWorkflow.document_id == document_id,
            ApprovalWorkflow.overall_status.in_(ACTIVE_WORKFLOW_STATUSES),
        )
        return self.db.execute(query).scalars().first()

    def get_step_for_document(self, document_id: UUID, step_id: UUID) -> Optional[ApprovalStep]:
        """Step by id, only if it belongs to a workflow of the given document."""
        query = (
            select(ApprovalStep)
            .join(ApprovalWorkflow, ApprovalWorkflow.id == ApprovalStep.workflow_id)
            .options(selectinload(ApprovalStep.attachments))
            .where(ApprovalStep.id == step_id, ApprovalWorkflow.document_id == document_id)
        )
        return self.db.execute(query).scalars().first()

    def create(
        self,
        document_id: UUID,
        approver_ids: Sequence[UUID],
        requested_by: UUID,
        comments: Optional[str] = None,
    ) -> ApprovalWorkflow:
        """Insert a workflow and one pending step per approver, in list order.

        Raises:
            ConflictError: If another active workflow for the document was
                committed concurrently (partial unique index violation)
        """
        workflow = ApprovalWorkflow(
            document_id=document_id,
            current_step=1,
            total_steps=len(approver_ids),
            overall_status=WorkflowStatus.PENDING.value,
            requested_by=requested_by,
            comments=comments,
        )
        workflow.steps = [
            ApprovalStep(
                approver_id=approver_id,
                step_order=position,
                status=StepStatus.PENDING.value,
            )
            for position, approver_id in enumerate(approver_ids, start=1)
        ]

        try:
            with self.db.begin_nested():
                self.db.add(workflow)
                self.db.flush()
        except IntegrityError:
            raise ConflictError("An approval workflow is already active for this document")

        return workflow

    def mark_step_decided(
        self,
        step_id: UUID,
        decision: StepStatus,
        comments: Optional[str],
        decided_at: datetime,
    ) -> bool:
        """pending → approved/rejected. Returns False if the step was no longer pending."""
        values = {"status": decision.value, "comments": comments}
        if decision == StepStatus.APPROVED:
            values["approved_at"] = decided_at
        else:
            values["rejected_at"] = decided_at

        result = self.db.execute(
            update(ApprovalStep)
            .where(
                ApprovalStep.id == step_id,
                ApprovalStep.status == StepStatus.PENDING.value,
            )
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def advance(self, workflow_id: UUID, expected_step: int) -> bool:
        """Move the pointer to the next step and mark the workflow under review."""
        result = self.db.execute(
            update(ApprovalWorkflow)
            .where(
                ApprovalWorkflow.id == workflow_id,
                ApprovalWorkflow.current_step == expected_step,
                ApprovalWorkflow.current_step < ApprovalWorkflow.total_steps,
                ApprovalWorkflow.overall_status.in_(ACTIVE_WORKFLOW_STATUSES),
            )
            .values(
                current_step=expected_step + 1,
                overall_status=WorkflowStatus.UNDER_REVIEW.value,
            )
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def complete(
        self,
        workflow_id: UUID,
        expected_step: int,
        final_status: WorkflowStatus,
        completed_at: datetime,
    ) -> bool:
        """Finish the workflow as approved or rejected, freezing current_step."""
        result = self.db.execute(
            update(ApprovalWorkflow)
            .where(
                ApprovalWorkflow.id == workflow_id,
                ApprovalWorkflow.current_step == expected_step,
                ApprovalWorkflow.overall_status.in_(ACTIVE_WORKFLOW_STATUSES),
            )
            .values(
                overall_status=final_status.value,
                completed_at=completed_at,
            )
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def delete_active(self, workflow_id: UUID) -> bool:
        """Hard-delete an active workflow. Steps and attachment rows cascade in the database."""
        result = self.db.execute(
            delete(ApprovalWorkflow)
            .where(
                ApprovalWorkflow.id == workflow_id,
                ApprovalWorkflow.overall_status.in_(ACTIVE_WORKFLOW_STATUSES),
            )
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def add_attachment(
        self,
        step_id: UUID,
        file_name: str,
        file_size: int,
        file_type: Optional[str],
        storage_path: str,
        uploaded_by: UUID,
    ) -> RejectionAttachment:
        attachment = RejectionAttachment(
            step_id=step_id,
            file_name=file_name,
            file_size=file_size,
            file_type=file_type,
            storage_path=storage_path,
            uploaded_by=uploaded_by,
        )
        self.db.add(attachment)
        self.db.flush()
        return attachment

    def set_engagement_flag(self, step_id: UUID, flag: str) -> None:
        if flag not in ENGAGEMENT_FLAGS:
            raise ValueError(f"Unknown engagement flag: {flag}")
        self.db.execute(
            update(ApprovalStep)
            .where(ApprovalStep.id == step_id)
            .values({flag: True})
            .execution_options(synchronize_session="fetch")
        )

    def _pending_for_approver_query(self, approver_id: UUID, org_id: UUID):
        return (
            select(ApprovalWorkflow)
            .join(
                ApprovalStep,
                and_(
                    ApprovalStep.workflow_id == ApprovalWorkflow.id,
                    ApprovalStep.step_order == ApprovalWorkflow.current_step,
                ),
            )
            .join(Document, Document.id == ApprovalWorkflow.document_id)
            .join(Project, Project.id == Document.project_id)
            .where(
                ApprovalWorkflow.overall_status.in_(ACTIVE_WORKFLOW_STATUSES),
                ApprovalStep.approver_id == approver_id,
                ApprovalStep.status == StepStatus.PENDING.value,
                Project.org_id == org_id,
            )
        )

    def list_pending_for_approver(self, approver_id: UUID, org_id: UUID) -> list[ApprovalWorkflow]:
        """Active workflows whose current step waits on approver_id, oldest request first."""
        query = (
            self._pending_for_approver_query(approver_id, org_id)
            .options(selectinload(ApprovalWorkflow.steps), selectinload(ApprovalWorkflow.document))
            .order_by(ApprovalWorkflow.requested_at)
        )
        return list(self.db.execute(query).scalars().all())

    def count_pending_for_approver(self, approver_id: UUID, org_id: UUID) -> int:
        subquery = self._pending_for_approver_query(approver_id, org_id).subquery()
        return self.db.execute(select(func.count()).select_from(subquery)).scalar_one()
