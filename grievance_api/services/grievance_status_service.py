"""
Grievance state machine.

    Submitted -> In Progress -> Resolved | Rejected | Escalated | Awaiting Clarification
    Awaiting Clarification -> Submitted   (only via the submitter's reply, see ledger_service)

Officers may move freely between the working statuses. Resolved and Rejected
are closed: only a super_admin can reopen them, and only to In Progress.
Submitted is never a manual target.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from grievance_api.core.access import Capabilities, check_status_change, role_label_for
from grievance_api.core.errors import InvalidTransition, MissingReason, NoOpTransition
from grievance_api.core.unit_of_work import UnitOfWork
from grievance_api.db.base import utcnow
from grievance_api.db.enums import (
    TERMINAL_STATUSES,
    GrievanceStatus,
    NotificationEvent,
    UpdateType,
)
from grievance_api.db.models import Grievance, GrievanceUpdate
from grievance_api.services import ledger_service, notification_service

logger = logging.getLogger(__name__)

OFFICER_TARGETS = frozenset(
    {
        GrievanceStatus.IN_PROGRESS,
        GrievanceStatus.AWAITING_CLARIFICATION,
        GrievanceStatus.RESOLVED,
        GrievanceStatus.REJECTED,
        GrievanceStatus.ESCALATED,
    }
)
REOPEN_TARGET = GrievanceStatus.IN_PROGRESS
REASON_REQUIRED = frozenset({GrievanceStatus.REJECTED, GrievanceStatus.AWAITING_CLARIFICATION})


@dataclass
class StatusChangeOutcome:
    grievance: Grievance
    entry: GrievanceUpdate
    # Filled only once the unit of work has committed
    pushes: list[dict] = field(default_factory=list)
    email: dict | None = None


def allowed_targets(current: GrievanceStatus, caps: Capabilities) -> frozenset[GrievanceStatus]:
    """Statuses the actor may move a grievance to from `current`."""
    if current in TERMINAL_STATUSES:
        return frozenset({REOPEN_TARGET}) if caps.is_super_admin else frozenset()
    return OFFICER_TARGETS - {current}


def validate_transition(
    current: GrievanceStatus,
    target: GrievanceStatus,
    reason: str | None,
    caps: Capabilities,
) -> str | None:
    """Check a transition without touching state. Returns the cleaned reason."""
    if target == current:
        raise NoOpTransition(f"Grievance is already {current.value}")

    if target not in allowed_targets(current, caps):
        raise InvalidTransition(f"Cannot change status from {current.value} to {target.value}")

    reason = (reason or "").strip() or None
    if target in REASON_REQUIRED and not reason:
        if target == GrievanceStatus.REJECTED:
            raise MissingReason("A reason is required to reject a grievance")
        raise MissingReason("A clarification request is required")
    return reason


def ledger_entry_for(target: GrievanceStatus, reason: str | None) -> tuple[UpdateType, str]:
    if target == GrievanceStatus.REJECTED:
        return UpdateType.STATUS_CHANGE, f"Status changed to Rejected. Reason: {reason}"
    if target == GrievanceStatus.AWAITING_CLARIFICATION:
        # A question to the submitter, so it reads as a comment in the timeline
        return UpdateType.COMMENT, reason or ""
    return UpdateType.STATUS_CHANGE, f"Status changed to {target.value}"


def change_status(
    db: Session,
    caps: Capabilities,
    grievance: Grievance,
    target: GrievanceStatus,
    reason: str | None = None,
) -> StatusChangeOutcome:
    """
    Apply a status transition.

    Status flip, ledger entry and notification rows share one unit of work;
    pushes and the submitter email are reported on the outcome only after it
    commits.
    """
    check_status_change(caps, grievance)
    current = GrievanceStatus(grievance.status)
    reason = validate_transition(current, target, reason, caps)
    update_type, comment = ledger_entry_for(target, reason)
    author_role = role_label_for(caps, grievance, status_change=True)

    with UnitOfWork(db) as uow:
        grievance.status = target.value
        grievance.updated_at = utcnow()
        entry = ledger_service.append_update(
            db,
            grievance,
            caps.user_id,
            author_role,
            update_type,
            comment,
            from_status=current.value,
            to_status=target.value,
        )
        dispatched = notification_service.dispatch(
            db, NotificationEvent.STATUS_CHANGED, grievance, caps.user_id, new_status=target
        )
        payloads = [notification_service.to_payload(n) for n in dispatched.notifications]

        outcome = StatusChangeOutcome(grievance=grievance, entry=entry)
        email = None
        if grievance.submitted_by_id in dispatched.recipients:
            submitter = grievance.submitted_by
            email = {
                "to_email": submitter.email,
                "full_name": submitter.full_name,
                "ticket_id": grievance.ticket_id,
                "title": grievance.title,
                "status": target.value,
                "reason": reason,
                "idempotency_key": f"grievance-update/{entry.id}",
            }

        def _report() -> None:
            outcome.pushes.extend(payloads)
            outcome.email = email

        uow.after_commit(_report)

    logger.info(
        "Grievance %s: %s -> %s by %s",
        grievance.ticket_id,
        current.value,
        target.value,
        caps.user_id,
    )
    return outcome
