"""Project and project membership models.

A project groups documents inside one organization. Membership decides who
can see a project's documents, who may request approval on them and who may
be named as an approver.
"""

import enum
from uuid import uuid4

from sqlalchemy import Column, Text, DateTime, ForeignKey, CheckConstraint, Index, Uuid
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class ProjectRole(str, enum.Enum):
    """Role of a user inside a single project."""
    MEMBER = "MEMBER"
    MANAGER = "MANAGER"


class Project(Base):
    """Project owned by exactly one organization."""
    __tablename__ = "project"
    __table_args__ = (
        Index("ix_project_org_id", "org_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    org_id = Column(Uuid, ForeignKey("org.id", ondelete="RESTRICT"), nullable=False)
    name = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    org = relationship("Org", back_populates="projects")
    members = relationship("ProjectMember", back_populates="project", cascade="all, delete-orphan")
    documents = relationship("Document", back_populates="project")


class ProjectMember(Base):
    """Team member or manager of a project."""
    __tablename__ = "project_member"
    __table_args__ = (
        CheckConstraint("role IN ('MEMBER', 'MANAGER')", name="ck_project_member_role"),
    )

    project_id = Column(Uuid, ForeignKey("project.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), primary_key=True)
    role = Column(Text, nullable=False, default=ProjectRole.MEMBER.value)

    project = relationship("Project", back_populates="members")
    user = relationship("User")
