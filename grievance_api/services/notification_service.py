"""
Notification Service - recipient fan-out and in-app notification CRUD.

dispatch() is called inside the caller's unit of work, after the grievance and
ledger writes, so notification rows commit (or roll back) with the change that
caused them. Pushes and emails are delivered after commit by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from grievance_api.core.unit_of_work import UnitOfWork
from grievance_api.db.enums import GrievanceStatus, NotificationEvent, NotificationType
from grievance_api.db.models import Grievance, Notification
from grievance_api.services import directory_service


@dataclass
class DispatchResult:
    """Who was notified, plus the rows written for them."""

    recipients: list[UUID] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)


def student_link(grievance: Grievance) -> str:
    return f"/grievance/{grievance.ticket_id}"


def officer_link(grievance: Grievance) -> str:
    return f"/officer/grievance/{grievance.ticket_id}"


# =============================================================================
# Recipient computation
# =============================================================================


def compute_recipients(
    db: Session,
    event: NotificationEvent,
    grievance: Grievance,
    actor_id: UUID,
    new_status: GrievanceStatus | None = None,
) -> list[UUID]:
    """
    Recipient set for an event. The actor is never notified of their own action.

    - comment by the submitter -> officers of the assigned department
    - comment by anyone else -> the submitter
    - transition to Escalated -> every super_admin (not the submitter)
    - any other transition -> the submitter
    """
    if event == NotificationEvent.COMMENT_ADDED:
        if actor_id == grievance.submitted_by_id:
            department_id = grievance.department_id
            candidates = (
                directory_service.list_department_officers(db, department_id)
                if department_id is not None
                else []
            )
        else:
            candidates = [grievance.submitted_by_id]
    elif new_status == GrievanceStatus.ESCALATED:
        candidates = directory_service.list_super_admins(db)
    else:
        candidates = [grievance.submitted_by_id]

    recipients: list[UUID] = []
    for user_id in candidates:
        if user_id != actor_id and user_id not in recipients:
            recipients.append(user_id)
    return recipients


def _content_for(
    event: NotificationEvent,
    grievance: Grievance,
    actor_id: UUID,
    new_status: GrievanceStatus | None,
) -> tuple[NotificationType, str, str]:
    ticket = grievance.ticket_id
    if event == NotificationEvent.COMMENT_ADDED:
        if actor_id == grievance.submitted_by_id:
            return (
                NotificationType.GRIEVANCE_STUDENT_REPLY,
                f"The student replied on grievance #{ticket}.",
                officer_link(grievance),
            )
        return (
            NotificationType.GRIEVANCE_COMMENT,
            f"An officer commented on your grievance #{ticket}.",
            student_link(grievance),
        )

    if new_status == GrievanceStatus.ESCALATED:
        return (
            NotificationType.GRIEVANCE_ESCALATED,
            f"Grievance #{ticket} has been escalated and needs administrator attention.",
            officer_link(grievance),
        )
    if new_status == GrievanceStatus.AWAITING_CLARIFICATION:
        return (
            NotificationType.GRIEVANCE_CLARIFICATION_REQUESTED,
            f"More information is needed on your grievance #{ticket}.",
            student_link(grievance),
        )
    label = new_status.value if new_status else grievance.status
    return (
        NotificationType.GRIEVANCE_STATUS_CHANGED,
        f"The status of your grievance #{ticket} has been updated to {label}.",
        student_link(grievance),
    )


def dispatch(
    db: Session,
    event: NotificationEvent,
    grievance: Grievance,
    actor_id: UUID,
    new_status: GrievanceStatus | None = None,
) -> DispatchResult:
    """Persist one notification per recipient (no commit; caller owns the transaction)."""
    recipients = compute_recipients(db, event, grievance, actor_id, new_status)
    if not recipients:
        return DispatchResult()

    type_, message, link = _content_for(event, grievance, actor_id, new_status)
    notifications = []
    for user_id in recipients:
        notification = Notification(
            user_id=user_id,
            type=type_.value,
            message=message,
            link=link,
            grievance_id=grievance.id,
        )
        db.add(notification)
        notifications.append(notification)
    db.flush()
    return DispatchResult(recipients=recipients, notifications=notifications)


def to_payload(notification: Notification) -> dict:
    """Serializable push payload (safe to use after the session closes)."""
    return {
        "notification_id": str(notification.id),
        "user_id": str(notification.user_id),
        "type": notification.type,
        "message": notification.message,
        "link": notification.link,
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
    }


# =============================================================================
# Notification CRUD
# =============================================================================


def get_notifications(
    db: Session,
    user_id: UUID,
    unread_only: bool = False,
    limit: int = 15,
    offset: int = 0,
) -> list[Notification]:
    """Get notifications for user, newest first."""
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    query = query.order_by(Notification.created_at.desc(), Notification.id).offset(offset).limit(limit)
    return list(db.execute(query).scalars())


def get_unread_count(db: Session, user_id: UUID) -> int:
    """Get count of unread notifications."""
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .count()
    )


def mark_read(db: Session, notification_id: UUID, user_id: UUID) -> Optional[Notification]:
    """Mark one of the user's notifications as read."""
    notification = db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    ).scalar_one_or_none()

    if notification and not notification.is_read:
        with UnitOfWork(db):
            notification.is_read = True
        db.refresh(notification)

    return notification


def mark_all_read(db: Session, user_id: UUID) -> int:
    """Mark all notifications as read. Returns count updated."""
    with UnitOfWork(db):
        result = db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
    return result.rowcount or 0
