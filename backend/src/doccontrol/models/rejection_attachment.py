"""RejectionAttachment SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, Text, BigInteger, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class RejectionAttachment(Base):
    """File supporting a rejection decision.

    Rows are written once and never updated. They go away only when the
    owning step is deleted together with its workflow. The blob itself is
    addressed by storage_path in the attachment bucket.
    """
    __tablename__ = "rejection_attachment"
    __table_args__ = (
        Index("ix_rejection_attachment_step_id", "step_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    step_id = Column(Uuid, ForeignKey("approval_step.id", ondelete="CASCADE"), nullable=False)
    file_name = Column(Text, nullable=False)
    file_size = Column(BigInteger, nullable=False)
    file_type = Column(Text, nullable=True)
    storage_path = Column(Text, nullable=False)
    uploaded_by = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    step = relationship("ApprovalStep", back_populates="attachments")

    def to_dict(self):
        """Convert attachment to dictionary representation"""
        return {
            "id": str(self.id),
            "step_id": str(self.step_id),
            "file_name": self.file_name,
            "file_size": self.file_size,
            "file_type": self.file_type,
            "storage_path": self.storage_path,
            "uploaded_by": str(self.uploaded_by) if self.uploaded_by else None,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
        }
