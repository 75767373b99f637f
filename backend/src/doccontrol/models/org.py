"""Org model - Root entity for multi-tenant isolation"""

from uuid import uuid4

from sqlalchemy import Column, Text, DateTime, Uuid
from sqlalchemy.orm import validates, relationship
import re

from .base import Base, utcnow


class Org(Base):
    """
    Organization model - Root entity for multi-tenant system.

    Each organization represents a distinct tenant with isolated data.
    Projects, users and (through projects) documents reference org.id.
    Organization CRUD lives outside this service; the table exists so that
    tenant joins have something to join against.
    """
    __tablename__ = "org"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    users = relationship("User", back_populates="org")
    projects = relationship("Project", back_populates="org")

    @validates('slug')
    def validate_slug(self, key, value):
        """
        Ensure slug is URL-friendly.

        Pattern: ^[a-z0-9-]+$

        Raises:
            ValueError: If slug doesn't match pattern or length requirements
        """
        if not re.match(r'^[a-z0-9-]+$', value):
            raise ValueError(
                "Slug must contain only lowercase letters, numbers, and hyphens"
            )
        if len(value) < 2 or len(value) > 100:
            raise ValueError("Slug must be between 2 and 100 characters")
        return value

    def __repr__(self):
        return f"<Org(id={self.id}, slug='{self.slug}', name='{self.name}')>"
