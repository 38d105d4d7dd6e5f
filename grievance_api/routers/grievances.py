"""
Grievances Router - submission, detail, comments, status changes, attachments.

Every endpoint that touches a specific grievance goes through the access
evaluator inside the service layer; this module only shapes requests and
responses and schedules post-commit delivery.
"""

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from grievance_api.core.access import check_read
from grievance_api.core.deps import get_current_session, get_db
from grievance_api.core.errors import NotFound
from grievance_api.db.models import Grievance, GrievanceUpdate
from grievance_api.routers.websocket import push_notifications
from grievance_api.schemas.auth import UserSession
from grievance_api.schemas.grievance import (
    AttachmentRead,
    CommentCreate,
    CommentResponse,
    GrievanceCreate,
    GrievanceCreated,
    GrievanceDetail,
    GrievanceListItem,
    GrievanceRead,
    LedgerEntryRead,
    StatusChange,
    StatusChangeResponse,
)
from grievance_api.services import (
    attachment_service,
    email_service,
    grievance_service,
    grievance_status_service,
    ledger_service,
)

router = APIRouter()


# =============================================================================
# Serialization
# =============================================================================


def to_grievance_read(grievance: Grievance) -> GrievanceRead:
    assignment = grievance.active_assignment
    return GrievanceRead(
        id=grievance.id,
        ticket_id=grievance.ticket_id,
        title=grievance.title,
        description=grievance.description,
        category=grievance.category,
        status=grievance.status,
        submitted_by_id=grievance.submitted_by_id,
        submitted_by_name=grievance.submitted_by.full_name if grievance.submitted_by else None,
        department_id=assignment.department_id if assignment else None,
        department_name=assignment.department.name if assignment else None,
        created_at=grievance.created_at,
        updated_at=grievance.updated_at,
    )


def to_list_item(grievance: Grievance) -> GrievanceListItem:
    assignment = grievance.active_assignment
    return GrievanceListItem(
        ticket_id=grievance.ticket_id,
        title=grievance.title,
        category=grievance.category,
        status=grievance.status,
        submitted_by_name=grievance.submitted_by.full_name if grievance.submitted_by else None,
        department_name=assignment.department.name if assignment else None,
        created_at=grievance.created_at,
        updated_at=grievance.updated_at,
    )


def to_ledger_entry(entry: GrievanceUpdate) -> LedgerEntryRead:
    return LedgerEntryRead(
        id=entry.id,
        update_type=entry.update_type,
        comment=entry.comment,
        from_status=entry.from_status,
        to_status=entry.to_status,
        author_id=entry.updated_by_id,
        author_name=entry.author.full_name if entry.author else None,
        author_role=entry.author_role,
        created_at=entry.created_at,
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post("", response_model=GrievanceCreated, status_code=201)
def submit_grievance(
    data: GrievanceCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Submit a grievance. The category decides the owning department."""
    grievance = grievance_service.create_grievance(db, session.user_id, data)
    return GrievanceCreated(
        ticket_id=grievance.ticket_id,
        department=grievance.active_assignment.department.name,
    )


@router.get("/mine", response_model=list[GrievanceListItem])
def list_my_grievances(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return [to_list_item(g) for g in grievance_service.list_my_grievances(db, session.user_id)]


@router.get("/{ticket_id}", response_model=GrievanceDetail)
def get_grievance(
    ticket_id: str,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Grievance with its full ordered history and attachments."""
    grievance = grievance_service.get_grievance_by_ticket(db, ticket_id)
    decision = check_read(session.capabilities, grievance)
    return GrievanceDetail(
        grievance=to_grievance_read(grievance),
        history=[to_ledger_entry(e) for e in ledger_service.get_history(db, grievance.id)],
        attachments=[
            AttachmentRead.model_validate(a)
            for a in ledger_service.get_attachments(db, grievance.id)
        ],
        can_change_status=decision.can_change_status,
    )


@router.post("/{ticket_id}/comments", response_model=CommentResponse, status_code=201)
def add_comment(
    ticket_id: str,
    data: CommentCreate,
    background_tasks: BackgroundTasks,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Add a comment. A submitter reply to a clarification request reopens the grievance."""
    grievance = grievance_service.get_grievance_by_ticket(db, ticket_id)
    outcome = ledger_service.add_comment(db, session.capabilities, grievance, data.comment)

    if outcome.pushes:
        background_tasks.add_task(push_notifications, outcome.pushes)

    return CommentResponse(
        message="Comment added successfully",
        status=outcome.grievance.status,
        reopened=outcome.reopened,
        entries=[to_ledger_entry(e) for e in outcome.entries],
    )


@router.put("/{ticket_id}/status", response_model=StatusChangeResponse)
def update_status(
    ticket_id: str,
    data: StatusChange,
    background_tasks: BackgroundTasks,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Move a grievance to a new status (officers of its department, or super admin)."""
    grievance = grievance_service.get_grievance_by_ticket(db, ticket_id)
    outcome = grievance_status_service.change_status(
        db, session.capabilities, grievance, data.status, data.reason
    )

    if outcome.pushes:
        background_tasks.add_task(push_notifications, outcome.pushes)
    if outcome.email:
        background_tasks.add_task(email_service.send_status_email, **outcome.email)

    return StatusChangeResponse(
        message="Status updated successfully",
        status=outcome.grievance.status,
        entry=to_ledger_entry(outcome.entry),
    )


@router.post(
    "/{ticket_id}/attachments",
    response_model=list[AttachmentRead],
    status_code=201,
)
def upload_attachments(
    ticket_id: str,
    files: list[UploadFile] = File(...),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    grievance = grievance_service.get_grievance_by_ticket(db, ticket_id)
    attachments = attachment_service.add_attachments(
        db,
        session.capabilities,
        grievance,
        [
            (f.filename or "", f.content_type or "application/octet-stream", f.file)
            for f in files
        ],
    )
    return [AttachmentRead.model_validate(a) for a in attachments]


@router.get("/{ticket_id}/attachments/{attachment_id}")
def download_attachment(
    ticket_id: str,
    attachment_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    grievance = grievance_service.get_grievance_by_ticket(db, ticket_id)
    check_read(session.capabilities, grievance)

    attachment = attachment_service.get_attachment(db, attachment_id)
    if not attachment or attachment.grievance_id != grievance.id:
        raise NotFound("Attachment not found")

    return FileResponse(
        attachment.storage_path,
        media_type=attachment.content_type,
        filename=attachment.filename,
    )
