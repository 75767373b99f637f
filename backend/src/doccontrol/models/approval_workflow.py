"""ApprovalWorkflow SQLAlchemy model"""

import enum
from uuid import uuid4

from sqlalchemy import Column, Text, Integer, DateTime, ForeignKey, CheckConstraint, Index, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import text

from .base import Base, utcnow


class WorkflowStatus(str, enum.Enum):
    """Overall status of an approval workflow.

    PENDING and UNDER_REVIEW are active; APPROVED and REJECTED are terminal.
    A cancelled workflow is deleted rather than given a status.
    """
    PENDING = "pending"
    UNDER_REVIEW = "under-review"
    APPROVED = "approved"
    REJECTED = "rejected"


ACTIVE_WORKFLOW_STATUSES = (WorkflowStatus.PENDING.value, WorkflowStatus.UNDER_REVIEW.value)

_ACTIVE_PREDICATE = text("overall_status IN ('pending', 'under-review')")


class ApprovalWorkflow(Base):
    """Sequential approval workflow for one document.

    At most one workflow per document may be active. The partial unique index
    below enforces this on both PostgreSQL and SQLite.
    """
    __tablename__ = "approval_workflow"
    __table_args__ = (
        CheckConstraint(
            "overall_status IN ('pending', 'under-review', 'approved', 'rejected')",
            name="ck_approval_workflow_status",
        ),
        CheckConstraint("total_steps >= 1", name="ck_approval_workflow_total_steps"),
        CheckConstraint(
            "current_step >= 1 AND current_step <= total_steps",
            name="ck_approval_workflow_current_step",
        ),
        Index(
            "uq_approval_workflow_active_document",
            "document_id",
            unique=True,
            postgresql_where=_ACTIVE_PREDICATE,
            sqlite_where=_ACTIVE_PREDICATE,
        ),
        Index("ix_approval_workflow_document_id_created_at", "document_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), nullable=False)
    current_step = Column(Integer, nullable=False, default=1)
    total_steps = Column(Integer, nullable=False)
    overall_status = Column(Text, nullable=False, default=WorkflowStatus.PENDING.value)
    requested_by = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    requested_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    document = relationship("Document")
    steps = relationship(
        "ApprovalStep",
        back_populates="workflow",
        order_by="ApprovalStep.step_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_active(self) -> bool:
        return self.overall_status in ACTIVE_WORKFLOW_STATUSES

    def current_step_row(self):
        """Return the step the workflow pointer is on, or None."""
        for step in self.steps:
            if step.step_order == self.current_step:
                return step
        return None

    def __repr__(self):
        return (
            f"<ApprovalWorkflow(id={self.id}, document_id={self.document_id}, "
            f"step={self.current_step}/{self.total_steps}, status='{self.overall_status}')>"
        )
