"""User SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, Text, DateTime, ForeignKey, CheckConstraint, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class User(Base):
    """User model representing members of an organization.

    User management happens elsewhere; this service reads users to resolve
    approver membership. The role column mirrors the JWT role claim.
    """
    __tablename__ = "user"

    id = Column(Uuid, primary_key=True, default=uuid4)
    org_id = Column(Uuid, ForeignKey("org.id", ondelete="RESTRICT"), nullable=False)
    email = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    role = Column(Text, nullable=False, default="MEMBER")
    status = Column(Text, nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    org = relationship("Org", back_populates="users")

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "role IN ('ADMIN', 'MANAGER', 'MEMBER', 'VIEWER')",
            name='ck_user_role'
        ),
        CheckConstraint(
            "status IN ('ACTIVE', 'DISABLED')",
            name='ck_user_status'
        ),
        UniqueConstraint('org_id', 'email', name='uq_user_org_email')
    )

    def to_dict(self):
        """Convert user to dictionary representation"""
        return {
            "id": str(self.id),
            "org_id": str(self.org_id),
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "status": self.status,
        }
