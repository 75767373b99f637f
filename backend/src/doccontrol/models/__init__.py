"""SQLAlchemy Models for the document control backend"""

from .base import Base
from .org import Org
from .user import User
from .project import Project, ProjectMember, ProjectRole
from .document import Document, DocumentStatus
from .approval_workflow import ApprovalWorkflow, WorkflowStatus, ACTIVE_WORKFLOW_STATUSES
from .approval_step import ApprovalStep, StepStatus
from .rejection_attachment import RejectionAttachment
from .activity_log import DocumentActivityLog, ActivityAction

__all__ = [
    "Base",
    "Org",
    "User",
    "Project",
    "ProjectMember",
    "ProjectRole",
    "Document",
    "DocumentStatus",
    "ApprovalWorkflow",
    "WorkflowStatus",
    "ACTIVE_WORKFLOW_STATUSES",
    "ApprovalStep",
    "StepStatus",
    "RejectionAttachment",
    "DocumentActivityLog",
    "ActivityAction",
]
