"""Pydantic schemas for document activity log endpoints."""

from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime
from typing import Optional

from ..models.activity_log import ActivityAction


class ActivityLogEntryResponse(BaseModel):
    """Response schema for a document activity log entry."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "document_id": "7c9e6679-7425-40de-944b-e07fc1f90ae7",
                "user_id": "123e4567-e89b-12d3-a456-426614174000",
                "action": "approval",
                "description": "Approved step 1 of 3",
                "old_value": "pending",
                "new_value": "under-review",
                "reason": None,
                "metadata": {"step": 1, "total_steps": 3},
                "created_at": "2025-01-04T12:00:00Z"
            }
        }
    )

    id: UUID = Field(..., description="Entry unique identifier")
    document_id: UUID = Field(..., description="Document the entry belongs to")
    user_id: Optional[UUID] = Field(None, description="User who caused the event")
    action: str = Field(..., description="Event kind (status_change, approval, rejected, view, ...)")
    description: Optional[str] = Field(None, description="Human-readable summary")
    old_value: Optional[str] = Field(None, description="Value before the change")
    new_value: Optional[str] = Field(None, description="Value after the change")
    reason: Optional[str] = Field(None, description="Reason given by the user")
    metadata: Optional[dict] = Field(None, description="Additional context as JSON")
    created_at: datetime = Field(..., description="Event timestamp")


class ActivityLogCreate(BaseModel):
    """Request schema for recording an activity entry from another service or the UI.

    Approval outcomes and status changes are written by the workflow engine
    and are refused by the endpoint.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "action": "download",
                "description": "Downloaded revision C",
                "metadata": {"version": 3}
            }
        }
    )

    action: ActivityAction = Field(..., description="Event kind")
    description: str = Field(..., min_length=1, max_length=2000, description="Human-readable summary")
    old_value: Optional[str] = Field(None, description="Value before the change")
    new_value: Optional[str] = Field(None, description="Value after the change")
    reason: Optional[str] = Field(None, max_length=2000, description="Reason given by the user")
    metadata: Optional[dict] = Field(None, description="Additional context as JSON")
