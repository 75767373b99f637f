"""Errors raised by approval workflow operations.

Each error carries the HTTP status and machine-readable code the API
returns for it. The exception handlers in main.py render them as
{"error": code, "message": message}.
"""

from typing import Optional, Dict, Any


class WorkflowError(Exception):
    """Base class for approval workflow errors."""

    status_code = 500
    code = "workflow_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(WorkflowError):
    """Request is missing a required value or names invalid participants."""

    status_code = 400
    code = "validation_error"


class NotAuthorizedError(WorkflowError):
    """Caller may not perform this action (not their turn, not a participant, no rights)."""

    status_code = 403
    code = "not_authorized"


class NotFoundError(WorkflowError):
    """Document, workflow or step does not exist for the caller's organization."""

    status_code = 404
    code = "not_found"


class ConflictError(WorkflowError):
    """Another active workflow exists, or a concurrent decision won the race."""

    status_code = 409
    code = "conflict"


class InvalidStateError(WorkflowError):
    """Workflow or step is in a state that does not allow the operation."""

    status_code = 409
    code = "invalid_state"
