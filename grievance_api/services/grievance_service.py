"""Grievance submission, lookup, listings and department reassignment."""

from __future__ import annotations

import logging
import random
from collections import Counter
from datetime import datetime
from typing import Iterable
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from grievance_api.core.access import Capabilities
from grievance_api.core.config import settings
from grievance_api.core.errors import Conflict, NotFound, ValidationError
from grievance_api.core.unit_of_work import UnitOfWork
from grievance_api.db.base import utcnow
from grievance_api.db.enums import GrievanceStatus
from grievance_api.db.models import Department, Grievance, GrievanceAssignment
from grievance_api.schemas.grievance import GrievanceCreate, StatusAnalytics
from grievance_api.services import directory_service

logger = logging.getLogger(__name__)

TICKET_PREFIX = "GRM"


def generate_ticket_id(now: datetime | None = None) -> str:
    """GRM + YYMMDD (portal local date) + 4 random digits, e.g. GRM2510191234."""
    now = now or datetime.now(ZoneInfo(settings.PORTAL_TIMEZONE))
    return f"{TICKET_PREFIX}{now:%y%m%d}{random.randint(1000, 9999)}"


def _grievance_query():
    return select(Grievance).options(
        selectinload(Grievance.assignments).selectinload(GrievanceAssignment.department),
        selectinload(Grievance.submitted_by),
    )


# =============================================================================
# Submission
# =============================================================================


def _insert_with_unique_ticket(db: Session, **fields) -> Grievance:
    """Insert a grievance, drawing a new ticket id on unique-constraint collision."""
    for attempt in range(1, settings.TICKET_ID_MAX_ATTEMPTS + 1):
        grievance = Grievance(ticket_id=generate_ticket_id(), **fields)
        try:
            with db.begin_nested():
                db.add(grievance)
                db.flush()
        except IntegrityError:
            logger.warning(
                "Ticket id collision on %s (attempt %d)", grievance.ticket_id, attempt
            )
            continue
        return grievance

    raise Conflict("Could not allocate a ticket id, please try again")


def create_grievance(db: Session, submitter_id: UUID, data: GrievanceCreate) -> Grievance:
    """
    Submit a grievance: route it by category and create its active assignment.

    Both rows are written in one unit of work.
    """
    department, category = directory_service.resolve_department_for_category(db, data.category)

    with UnitOfWork(db):
        grievance = _insert_with_unique_ticket(
            db,
            title=data.title,
            description=data.description,
            category=category,
            status=GrievanceStatus.SUBMITTED.value,
            submitted_by_id=submitter_id,
        )
        db.add(
            GrievanceAssignment(
                grievance_id=grievance.id,
                department_id=department.id,
                is_active=True,
            )
        )
        db.flush()

    logger.info(
        "Grievance %s submitted by %s, routed to %s",
        grievance.ticket_id,
        submitter_id,
        department.name,
    )
    return grievance


# =============================================================================
# Lookup and listings
# =============================================================================


def get_grievance_by_ticket(db: Session, ticket_id: str) -> Grievance:
    grievance = db.execute(
        _grievance_query().where(Grievance.ticket_id == ticket_id)
    ).scalar_one_or_none()
    if not grievance:
        raise NotFound("Grievance not found")
    return grievance


def list_my_grievances(db: Session, user_id: UUID) -> list[Grievance]:
    return list(
        db.execute(
            _grievance_query()
            .where(Grievance.submitted_by_id == user_id)
            .order_by(Grievance.created_at.desc())
        ).scalars()
    )


def _active_in_departments(department_ids: Iterable[int]):
    return select(GrievanceAssignment.grievance_id).where(
        GrievanceAssignment.is_active.is_(True),
        GrievanceAssignment.department_id.in_(list(department_ids)),
    )


def list_for_officer(db: Session, caps: Capabilities) -> list[Grievance]:
    """Grievances of the officer's departments (everything for super_admin)."""
    query = _grievance_query()
    if not caps.is_super_admin:
        if not caps.officer_department_ids:
            return []
        query = query.where(Grievance.id.in_(_active_in_departments(caps.officer_department_ids)))
    return list(db.execute(query.order_by(Grievance.updated_at.desc())).scalars())


def status_analytics(grievances: Iterable[Grievance]) -> StatusAnalytics:
    counts = Counter(g.status for g in grievances)
    submitted = counts[GrievanceStatus.SUBMITTED.value]
    awaiting = counts[GrievanceStatus.AWAITING_CLARIFICATION.value]
    return StatusAnalytics(
        newly_submitted=submitted,
        awaiting_clarification=awaiting,
        total_pending=submitted + awaiting,
        resolved=counts[GrievanceStatus.RESOLVED.value],
        rejected=counts[GrievanceStatus.REJECTED.value],
        escalated=counts[GrievanceStatus.ESCALATED.value],
    )


def filter_grievances(
    db: Session,
    status: GrievanceStatus | None = None,
    category: str | None = None,
    department_id: int | None = None,
) -> list[Grievance]:
    """Admin filter over all grievances."""
    query = _grievance_query()
    if status is not None:
        query = query.where(Grievance.status == status.value)
    if category:
        query = query.where(func.lower(Grievance.category) == category.strip().lower())
    if department_id is not None:
        query = query.where(Grievance.id.in_(_active_in_departments([department_id])))
    return list(db.execute(query.order_by(Grievance.created_at.desc())).scalars())


def portal_analytics(db: Session) -> dict:
    """Counts across the whole portal for the admin dashboard."""
    by_status = dict(
        db.execute(select(Grievance.status, func.count()).group_by(Grievance.status)).all()
    )
    by_category = dict(
        db.execute(select(Grievance.category, func.count()).group_by(Grievance.category)).all()
    )
    by_department = dict(
        db.execute(
            select(Department.name, func.count(GrievanceAssignment.id))
            .join(GrievanceAssignment, GrievanceAssignment.department_id == Department.id)
            .where(GrievanceAssignment.is_active.is_(True))
            .group_by(Department.name)
        ).all()
    )
    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "by_category": by_category,
        "by_department": by_department,
    }


# =============================================================================
# Reassignment
# =============================================================================


def reassign_department(
    db: Session,
    grievance: Grievance,
    department_id: int,
    actor_id: UUID,
) -> GrievanceAssignment:
    """Move the active assignment to another department."""
    department = directory_service.get_department(db, department_id)
    if not department:
        raise NotFound("Department not found.")

    current = grievance.active_assignment
    if current and current.department_id == department_id:
        raise ValidationError(f"Grievance is already assigned to {department.name}")

    with UnitOfWork(db):
        now = utcnow()
        if current:
            current.is_active = False
            current.unassigned_at = now
            # The partial unique index allows only one active row
            db.flush()
        assignment = GrievanceAssignment(
            grievance_id=grievance.id,
            department_id=department_id,
            is_active=True,
            assigned_by_user_id=actor_id,
            assigned_at=now,
        )
        db.add(assignment)
        grievance.updated_at = now
        db.flush()

    logger.info(
        "Grievance %s reassigned to department %s by %s",
        grievance.ticket_id,
        department.name,
        actor_id,
    )
    return assignment
