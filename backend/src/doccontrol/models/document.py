"""Document SQLAlchemy model

Document represents a controlled file inside a project. Upload, versioning
and metadata editing are handled by other services; the approval workflow
only mirrors its state onto the status column.
"""

from uuid import uuid4

from sqlalchemy import Column, Text, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
import enum

from .base import Base, utcnow


class DocumentStatus(str, enum.Enum):
    """Status values for a Document Record

    State flow while under approval:
    DRAFT → PENDING_REVIEW → UNDER_REVIEW → APPROVED or REJECTED
    Cancelling a workflow reverts to DRAFT.
    """
    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class Document(Base):
    """Document model.

    Each document belongs to one project and, through it, to one organization.
    """
    __tablename__ = "document"
    __table_args__ = (
        Index("ix_document_project_id", "project_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    project_id = Column(Uuid, ForeignKey("project.id", ondelete="RESTRICT"), nullable=False)
    title = Column(Text, nullable=False)
    file_name = Column(Text, nullable=True)
    uploaded_by = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    status = Column(Text, nullable=False, default=DocumentStatus.DRAFT.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    project = relationship("Project", back_populates="documents")

    def to_dict(self):
        """Convert document to dictionary representation"""
        return {
            "id": str(self.id),
            "project_id": str(self.project_id),
            "title": self.title,
            "file_name": self.file_name,
            "uploaded_by": str(self.uploaded_by) if self.uploaded_by else None,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None
        }
