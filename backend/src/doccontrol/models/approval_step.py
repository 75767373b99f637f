"""ApprovalStep SQLAlchemy model"""

import enum
from uuid import uuid4

from sqlalchemy import (
    Column, Text, Integer, Boolean, DateTime, ForeignKey, CheckConstraint, UniqueConstraint, Index, Uuid,
)
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class StepStatus(str, enum.Enum):
    """Decision state of a single approval step."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalStep(Base):
    """One approver's turn inside a workflow.

    Steps are created together with their workflow, numbered 1..N by
    step_order. A step moves from pending to approved or rejected once.
    The engagement flags are advisory only and never drive transitions.
    """
    __tablename__ = "approval_step"
    __table_args__ = (
        UniqueConstraint("workflow_id", "step_order", name="uq_approval_step_workflow_order"),
        CheckConstraint("step_order >= 1", name="ck_approval_step_order"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_approval_step_status",
        ),
        Index("ix_approval_step_approver_id_status", "approver_id", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    workflow_id = Column(Uuid, ForeignKey("approval_workflow.id", ondelete="CASCADE"), nullable=False)
    approver_id = Column(Uuid, ForeignKey("user.id", ondelete="RESTRICT"), nullable=False)
    step_order = Column(Integer, nullable=False)
    status = Column(Text, nullable=False, default=StepStatus.PENDING.value)
    comments = Column(Text, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    viewed_document = Column(Boolean, nullable=False, default=False)
    downloaded_document = Column(Boolean, nullable=False, default=False)
    opened_in_sharepoint = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    workflow = relationship("ApprovalWorkflow", back_populates="steps")
    approver = relationship("User")
    attachments = relationship(
        "RejectionAttachment",
        back_populates="step",
        order_by="RejectionAttachment.uploaded_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
