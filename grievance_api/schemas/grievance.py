"""Pydantic schemas for grievances, their ledger and attachments."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from grievance_api.db.enums import GrievanceStatus


class GrievanceCreate(BaseModel):
    """Request to submit a grievance."""

    title: str = Field(..., max_length=200)
    description: str = Field(..., max_length=10000)
    category: str = Field(..., max_length=100)

    @field_validator("title", "description", "category")
    @classmethod
    def strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class GrievanceCreated(BaseModel):
    message: str = "Grievance submitted successfully"
    ticket_id: str
    department: str


class GrievanceRead(BaseModel):
    """Grievance header (no ledger)."""

    id: UUID
    ticket_id: str
    title: str
    description: str
    category: str
    status: str
    submitted_by_id: UUID
    submitted_by_name: str | None = None
    department_id: int | None = None
    department_name: str | None = None
    created_at: datetime
    updated_at: datetime


class GrievanceListItem(BaseModel):
    """Dashboard row."""

    ticket_id: str
    title: str
    category: str
    status: str
    submitted_by_name: str | None = None
    department_name: str | None = None
    created_at: datetime
    updated_at: datetime


class AttachmentRead(BaseModel):
    id: UUID
    filename: str
    content_type: str
    file_size: int
    update_id: int | None = None
    uploaded_by_id: UUID | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class LedgerEntryRead(BaseModel):
    """One ledger entry with the role its author acted under."""

    id: int
    update_type: str
    comment: str
    from_status: str | None = None
    to_status: str | None = None
    author_id: UUID
    author_name: str | None = None
    author_role: str
    created_at: datetime


class GrievanceDetail(BaseModel):
    grievance: GrievanceRead
    history: list[LedgerEntryRead]
    attachments: list[AttachmentRead]
    can_change_status: bool = False


class CommentCreate(BaseModel):
    comment: str = Field(..., max_length=5000)

    @field_validator("comment")
    @classmethod
    def strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Comment cannot be empty")
        return value


class CommentResponse(BaseModel):
    message: str
    status: str
    reopened: bool
    entries: list[LedgerEntryRead]


class StatusChange(BaseModel):
    """Body of PUT /grievances/{ticket}/status."""

    status: GrievanceStatus
    reason: str | None = Field(None, max_length=5000)


class StatusChangeResponse(BaseModel):
    message: str
    status: str
    entry: LedgerEntryRead


class StatusAnalytics(BaseModel):
    newly_submitted: int = 0
    awaiting_clarification: int = 0
    total_pending: int = 0
    resolved: int = 0
    rejected: int = 0
    escalated: int = 0


class OfficerDashboard(BaseModel):
    grievances: list[GrievanceListItem]
    analytics: StatusAnalytics


class ReassignRequest(BaseModel):
    department_id: int
