"""Workflow status state machine

State flow:
PENDING → UNDER_REVIEW → APPROVED
PENDING | UNDER_REVIEW → REJECTED
PENDING | UNDER_REVIEW → (deleted on cancel)

Intermediate approvals keep an UNDER_REVIEW workflow in UNDER_REVIEW while
the step pointer advances. APPROVED and REJECTED are terminal.
"""

from typing import Optional, Dict, List

from ..models.approval_workflow import WorkflowStatus
from ..models.document import DocumentStatus
from .errors import InvalidStateError


# State transition rules
ALLOWED_TRANSITIONS: Dict[Optional[WorkflowStatus], List[WorkflowStatus]] = {
    None: [WorkflowStatus.PENDING],
    WorkflowStatus.PENDING: [
        WorkflowStatus.UNDER_REVIEW,
        WorkflowStatus.APPROVED,
        WorkflowStatus.REJECTED,
    ],
    WorkflowStatus.UNDER_REVIEW: [
        WorkflowStatus.UNDER_REVIEW,
        WorkflowStatus.APPROVED,
        WorkflowStatus.REJECTED,
    ],
    WorkflowStatus.APPROVED: [],  # Terminal
    WorkflowStatus.REJECTED: [],  # Terminal
}

TERMINAL_STATUSES = frozenset({WorkflowStatus.APPROVED, WorkflowStatus.REJECTED})

# Document status mirrored for each workflow status
DOCUMENT_STATUS_FOR: Dict[WorkflowStatus, DocumentStatus] = {
    WorkflowStatus.PENDING: DocumentStatus.PENDING_REVIEW,
    WorkflowStatus.UNDER_REVIEW: DocumentStatus.UNDER_REVIEW,
    WorkflowStatus.APPROVED: DocumentStatus.APPROVED,
    WorkflowStatus.REJECTED: DocumentStatus.REJECTED,
}


def can_transition(from_status: Optional[WorkflowStatus], to_status: WorkflowStatus) -> bool:
    """Validate if status transition is allowed

    Example:
        >>> can_transition(WorkflowStatus.PENDING, WorkflowStatus.UNDER_REVIEW)
        True
        >>> can_transition(WorkflowStatus.APPROVED, WorkflowStatus.REJECTED)
        False
    """
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def validate_transition(from_status: Optional[WorkflowStatus], to_status: WorkflowStatus) -> None:
    """Raise InvalidStateError unless the transition is allowed."""
    if not can_transition(from_status, to_status):
        current = from_status.value if from_status else "none"
        raise InvalidStateError(
            f"Workflow cannot move from {current} to {to_status.value}",
            details={"current_status": current, "requested_status": to_status.value},
        )


def is_terminal(status: WorkflowStatus) -> bool:
    return status in TERMINAL_STATUSES


def status_after_approval(current_step: int, total_steps: int) -> WorkflowStatus:
    """Workflow status once the step at current_step has been approved.

    Example:
        >>> status_after_approval(1, 3)
        <WorkflowStatus.UNDER_REVIEW: 'under-review'>
        >>> status_after_approval(3, 3)
        <WorkflowStatus.APPROVED: 'approved'>
    """
    if current_step >= total_steps:
        return WorkflowStatus.APPROVED
    return WorkflowStatus.UNDER_REVIEW
