"""DocumentActivityLog SQLAlchemy model"""

import enum
from uuid import uuid4

from sqlalchemy import Column, Text, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, utcnow


class ActivityAction(str, enum.Enum):
    """Kinds of entries in the document activity ledger."""
    UPLOAD = "upload"
    DOWNLOAD = "download"
    VIEW = "view"
    EDIT = "edit"
    STATUS_CHANGE = "status_change"
    CHECKOUT = "checkout"
    CHECKIN = "checkin"
    APPROVAL = "approval"
    REJECTED = "rejected"
    REJECTION = "rejection"
    VERSION_UPLOADED = "version_uploaded"
    VERSION_UPLOAD = "version_upload"
    UPDATED = "updated"
    DELETED = "deleted"
    SHARE = "share"
    COMMENT = "comment"
    RESTORE = "restore"
    MOVE = "move"
    COPY = "copy"


class DocumentActivityLog(Base):
    """Append-only ledger entry for a document.

    Written by the approval workflow on every transition and by other
    collaborators through the logs endpoint. Entries are never updated.
    """
    __tablename__ = "document_activity_log"
    __table_args__ = (
        Index("ix_document_activity_log_document_id_created_at", "document_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    action = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    reason = Column(Text, nullable=True)
    metadata_json = Column(PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User")

    def to_dict(self):
        """Convert log entry to dictionary representation"""
        return {
            "id": str(self.id),
            "document_id": str(self.document_id),
            "user_id": str(self.user_id) if self.user_id else None,
            "action": self.action,
            "description": self.description,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "reason": self.reason,
            "metadata": self.metadata_json,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
