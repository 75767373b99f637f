"""Access rules for approval workflow operations.

Organization membership is already guaranteed by the document lookup
(documents of other orgs are not found). These checks add the project and
role rules on top.
"""

from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth.identity import Identity
from ..auth.roles import UserRole
from ..models.approval_workflow import ApprovalWorkflow
from ..models.document import Document
from ..models.project import ProjectMember, ProjectRole
from ..models.user import User
from .errors import NotAuthorizedError, ValidationError


def get_project_role(db: Session, project_id: UUID, user_id: UUID) -> Optional[ProjectRole]:
    """Return the user's role in the project, or None if not a member."""
    role = db.execute(
        select(ProjectMember.role).where(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
        )
    ).scalar_one_or_none()
    return ProjectRole(role) if role else None


def ensure_can_request_approval(db: Session, document: Document, identity: Identity) -> None:
    """Uploader, project members and org admins may start a workflow. Viewers never may.

    Raises:
        NotAuthorizedError: If the caller may not request approval
    """
    if identity.role == UserRole.VIEWER:
        raise NotAuthorizedError("Viewers cannot request approval")

    if identity.is_admin or document.uploaded_by == identity.user_id:
        return

    if get_project_role(db, document.project_id, identity.user_id) is None:
        raise NotAuthorizedError("Only project members can request approval for this document")


def ensure_can_cancel(
    db: Session,
    document: Document,
    workflow: ApprovalWorkflow,
    identity: Identity,
) -> None:
    """Requester, uploader, project managers and org admins may cancel.

    Raises:
        NotAuthorizedError: If the caller may not cancel the workflow
    """
    if identity.is_admin:
        return
    if identity.user_id in (workflow.requested_by, document.uploaded_by):
        return
    if get_project_role(db, document.project_id, identity.user_id) == ProjectRole.MANAGER:
        return

    raise NotAuthorizedError("Only the requester, the uploader or a project manager can cancel this approval")


def validate_approvers(db: Session, document: Document, org_id: UUID, approver_ids: Sequence[UUID]) -> None:
    """Every approver must be an active user of the org and a member of the document's project.

    Raises:
        ValidationError: If the list is empty or names an ineligible user
    """
    if not approver_ids:
        raise ValidationError("At least one approver is required")

    unique_ids = set(approver_ids)

    eligible = set(
        db.execute(
            select(User.id)
            .join(ProjectMember, ProjectMember.user_id == User.id)
            .where(
                User.id.in_(unique_ids),
                User.org_id == org_id,
                User.status == "ACTIVE",
                ProjectMember.project_id == document.project_id,
            )
        ).scalars().all()
    )

    invalid = [str(approver_id) for approver_id in approver_ids if approver_id not in eligible]
    if invalid:
        raise ValidationError(
            "Approvers must be active members of the document's project",
            details={"invalid_approver_ids": list(dict.fromkeys(invalid))},
        )


def ensure_can_record_activity(db: Session, document: Document, identity: Identity) -> None:
    """Uploader, project members and org admins may append to a document's log.

    Raises:
        NotAuthorizedError: If the caller is not on the document's project
    """
    if identity.is_admin or document.uploaded_by == identity.user_id:
        return

    if get_project_role(db, document.project_id, identity.user_id) is None:
        raise NotAuthorizedError("Only project members can record activity for this document")
