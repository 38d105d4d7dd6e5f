"""
Comment/history ledger for grievances.

Entries are only ever inserted. Reads return them oldest first, ordered by
(created_at, id) so entries written in the same instant keep insert order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from grievance_api.core.access import Capabilities, check_comment, role_label_for
from grievance_api.core.unit_of_work import UnitOfWork
from grievance_api.db.base import utcnow
from grievance_api.db.enums import GrievanceStatus, NotificationEvent, Role, UpdateType
from grievance_api.db.models import Attachment, Grievance, GrievanceUpdate
from grievance_api.services import notification_service

logger = logging.getLogger(__name__)


@dataclass
class CommentOutcome:
    grievance: Grievance
    entries: list[GrievanceUpdate]
    reopened: bool = False
    # Filled only once the unit of work has committed
    pushes: list[dict] = field(default_factory=list)


def append_update(
    db: Session,
    grievance: Grievance,
    author_id: UUID,
    author_role: str,
    update_type: UpdateType,
    comment: str,
    from_status: str | None = None,
    to_status: str | None = None,
) -> GrievanceUpdate:
    """Insert one ledger entry (flush only; caller owns the transaction)."""
    entry = GrievanceUpdate(
        grievance_id=grievance.id,
        updated_by_id=author_id,
        author_role=author_role,
        update_type=update_type.value,
        comment=comment,
        from_status=from_status,
        to_status=to_status,
    )
    db.add(entry)
    db.flush()
    return entry


def get_history(db: Session, grievance_id: UUID) -> list[GrievanceUpdate]:
    return list(
        db.execute(
            select(GrievanceUpdate)
            .options(selectinload(GrievanceUpdate.author))
            .where(GrievanceUpdate.grievance_id == grievance_id)
            .order_by(GrievanceUpdate.created_at, GrievanceUpdate.id)
        ).scalars()
    )


def get_attachments(db: Session, grievance_id: UUID) -> list[Attachment]:
    return list(
        db.execute(
            select(Attachment)
            .where(Attachment.grievance_id == grievance_id)
            .order_by(Attachment.created_at, Attachment.id)
        ).scalars()
    )


def add_comment(
    db: Session,
    caps: Capabilities,
    grievance: Grievance,
    text: str,
) -> CommentOutcome:
    """
    Append a comment and notify the other side.

    A comment from the submitter while the grievance is Awaiting Clarification
    also reopens it: the comment, the flip back to Submitted and a
    StatusChange entry attributed to the submitter commit together.
    """
    check_comment(caps, grievance)
    author_role = role_label_for(caps, grievance)
    is_owner = grievance.submitted_by_id == caps.user_id

    with UnitOfWork(db) as uow:
        entries = [
            append_update(db, grievance, caps.user_id, author_role, UpdateType.COMMENT, text)
        ]

        reopened = (
            is_owner and grievance.status == GrievanceStatus.AWAITING_CLARIFICATION.value
        )
        grievance.updated_at = utcnow()
        if reopened:
            previous = grievance.status
            grievance.status = GrievanceStatus.SUBMITTED.value
            entries.append(
                append_update(
                    db,
                    grievance,
                    caps.user_id,
                    Role.STUDENT.value,
                    UpdateType.STATUS_CHANGE,
                    f"Status changed to {GrievanceStatus.SUBMITTED.value} (student replied)",
                    from_status=previous,
                    to_status=GrievanceStatus.SUBMITTED.value,
                )
            )

        dispatched = notification_service.dispatch(
            db, NotificationEvent.COMMENT_ADDED, grievance, caps.user_id
        )
        payloads = [notification_service.to_payload(n) for n in dispatched.notifications]

        outcome = CommentOutcome(grievance=grievance, entries=entries, reopened=reopened)
        uow.after_commit(lambda: outcome.pushes.extend(payloads))

    if reopened:
        logger.info("Grievance %s reopened by submitter reply", grievance.ticket_id)
    return outcome
