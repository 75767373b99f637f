"""Pydantic schemas for approval workflow endpoints

Request/response models for /documents/{id}/approvals and /approvals.
"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict


# ============================================================================
# Requests
# ============================================================================

class CreateWorkflowRequest(BaseModel):
    """Body of POST /documents/{id}/approvals"""
    approver_ids: List[UUID] = Field(
        default_factory=list,
        alias="approverIds",
        description="Approvers in review order; duplicates give the same user several turns",
    )
    comments: Optional[str] = Field(None, max_length=5000, description="Note for the approvers")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "approverIds": [
                    "123e4567-e89b-12d3-a456-426614174000",
                    "9b2f7a1e-0c4d-4e5f-8a6b-7c8d9e0f1a2b"
                ],
                "comments": "Please review revision C before Friday"
            }
        },
    )


class ApproveRequest(BaseModel):
    """Body of POST /documents/{id}/approvals/approve"""
    comments: Optional[str] = Field(None, max_length=5000)


class EngagementRequest(BaseModel):
    """Body of POST /documents/{id}/approvals/engagement"""
    kind: str = Field(..., description="viewed | downloaded | opened_in_sharepoint")


# ============================================================================
# Responses
# ============================================================================

class AttachmentResponse(BaseModel):
    """Rejection attachment metadata"""
    id: UUID
    step_id: UUID
    file_name: str
    file_size: int
    file_type: Optional[str] = None
    storage_path: str
    uploaded_by: Optional[UUID] = None
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AttachmentLinkResponse(AttachmentResponse):
    """Attachment with a signed download URL (None if the URL could not be signed)"""
    download_url: Optional[str] = None


class SkippedAttachmentResponse(BaseModel):
    """File that was not stored"""
    file_name: str
    reason: str


class StepResponse(BaseModel):
    """One approver's turn"""
    id: UUID
    approver_id: UUID
    step_order: int
    status: str  # pending, approved, rejected
    comments: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    viewed_document: bool = False
    downloaded_document: bool = False
    opened_in_sharepoint: bool = False
    attachments: List[AttachmentResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class WorkflowResponse(BaseModel):
    """Approval workflow with its ordered steps"""
    id: UUID
    document_id: UUID
    current_step: int
    total_steps: int
    overall_status: str  # pending, under-review, approved, rejected
    requested_by: Optional[UUID] = None
    requested_at: datetime
    completed_at: Optional[datetime] = None
    comments: Optional[str] = None
    steps: List[StepResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class RejectResponse(BaseModel):
    """Result of a rejection: terminal workflow plus upload outcome per file"""
    workflow: WorkflowResponse
    attachments: List[AttachmentResponse]
    skipped: List[SkippedAttachmentResponse]


class StepAttachmentsResponse(BaseModel):
    """Result of a supplementary upload"""
    attachments: List[AttachmentResponse]
    skipped: List[SkippedAttachmentResponse]


class CancelResponse(BaseModel):
    document_id: UUID
    status: str = "cancelled"
    document_status: str = "draft"


class PendingApprovalResponse(BaseModel):
    """Workflow waiting on the caller, as listed in the approvals inbox"""
    workflow_id: UUID
    document_id: UUID
    document_title: str
    current_step: int
    total_steps: int
    overall_status: str
    requested_by: Optional[UUID] = None
    requested_at: datetime
    comments: Optional[str] = None


class PendingCountResponse(BaseModel):
    count: int
