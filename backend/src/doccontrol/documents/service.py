"""Document record operations used by the approval workflow.

Documents are owned by other services. This module only resolves a
document for a caller (scoped to the caller's organization) and mirrors
workflow state onto its status column.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..approvals.errors import NotFoundError
from ..auth.identity import Identity
from ..models.document import Document, DocumentStatus
from ..models.project import Project

logger = logging.getLogger(__name__)


class DocumentRecordService:
    """Tenant-scoped document lookup and status updates."""

    def __init__(self, db: Session):
        self.db = db

    def find_for_org(self, document_id: UUID, org_id: UUID) -> Optional[Document]:
        """Return the document if its project belongs to org_id, else None."""
        query = (
            select(Document)
            .join(Project, Project.id == Document.project_id)
            .where(Document.id == document_id, Project.org_id == org_id)
        )
        return self.db.execute(query).scalars().first()

    def get_for_identity(self, document_id: UUID, identity: Identity) -> Document:
        """Return a document visible to the caller.

        Documents of other organizations are reported as missing so that
        their existence is not disclosed.

        Raises:
            NotFoundError: If no such document exists in the caller's organization
        """
        document = self.find_for_org(document_id, identity.org_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")
        return document

    def set_status(self, document: Document, status: DocumentStatus) -> str:
        """Mirror workflow state onto the document.

        Returns:
            str: The status the document had before the update
        """
        previous = document.status
        document.status = status.value
        self.db.flush()

        logger.info(
            f"Document status changed: {previous} -> {status.value}",
            extra={"document_id": document.id},
        )
        return previous
