"""State machine: transitions, required reasons, no-ops and atomicity."""

import uuid

import pytest
from sqlalchemy import func, select

from grievance_api.core.access import Capabilities
from grievance_api.core.errors import Forbidden, InvalidTransition, MissingReason, NoOpTransition
from grievance_api.db.enums import GrievanceStatus, UpdateType
from grievance_api.db.models import GrievanceUpdate, Notification
from grievance_api.schemas.grievance import GrievanceCreate
from grievance_api.services import grievance_service, grievance_status_service, ledger_service


@pytest.fixture
def grievance(db, student):
    return grievance_service.create_grievance(
        db,
        student.id,
        GrievanceCreate(title="Broken fan", description="Room 204 fan is broken", category="Hostel"),
    )


def _ledger_count(db, grievance) -> int:
    return db.execute(
        select(func.count()).select_from(GrievanceUpdate).where(
            GrievanceUpdate.grievance_id == grievance.id
        )
    ).scalar_one()


def test_officer_moves_grievance_to_in_progress(db, grievance, hostel_officer, caps_for):
    outcome = grievance_status_service.change_status(
        db, caps_for(hostel_officer), grievance, GrievanceStatus.IN_PROGRESS
    )

    assert grievance.status == "In Progress"
    assert outcome.entry.update_type == UpdateType.STATUS_CHANGE.value
    assert outcome.entry.comment == "Status changed to In Progress"
    assert outcome.entry.from_status == "Submitted"
    assert outcome.entry.to_status == "In Progress"
    assert outcome.entry.author_role == "nodal_officer"


def test_officer_changing_own_grievance_is_labelled_as_officer(db, hostel_officer, caps_for):
    own = grievance_service.create_grievance(
        db,
        hostel_officer.id,
        GrievanceCreate(title="Leaking tap", description="Staff block tap leaks", category="Hostel"),
    )

    outcome = grievance_status_service.change_status(
        db, caps_for(hostel_officer), own, GrievanceStatus.IN_PROGRESS
    )

    assert outcome.entry.author_role == "nodal_officer"


def test_same_status_is_rejected_without_ledger_entry(db, grievance, hostel_officer, caps_for):
    caps = caps_for(hostel_officer)
    grievance_status_service.change_status(db, caps, grievance, GrievanceStatus.IN_PROGRESS)
    before = _ledger_count(db, grievance)

    with pytest.raises(NoOpTransition):
        grievance_status_service.change_status(db, caps, grievance, GrievanceStatus.IN_PROGRESS)

    assert _ledger_count(db, grievance) == before


def test_submitted_is_never_a_manual_target(db, grievance, hostel_officer, caps_for):
    caps = caps_for(hostel_officer)
    grievance_status_service.change_status(db, caps, grievance, GrievanceStatus.IN_PROGRESS)

    with pytest.raises(InvalidTransition):
        grievance_status_service.change_status(db, caps, grievance, GrievanceStatus.SUBMITTED)


def test_reject_without_reason_fails_before_any_mutation(db, grievance, hostel_officer, caps_for):
    with pytest.raises(MissingReason):
        grievance_status_service.change_status(
            db, caps_for(hostel_officer), grievance, GrievanceStatus.REJECTED, reason="   "
        )

    db.refresh(grievance)
    assert grievance.status == "Submitted"
    assert _ledger_count(db, grievance) == 0
    assert db.execute(select(func.count()).select_from(Notification)).scalar_one() == 0


def test_reject_records_reason_in_ledger(db, grievance, hostel_officer, caps_for):
    outcome = grievance_status_service.change_status(
        db, caps_for(hostel_officer), grievance, GrievanceStatus.REJECTED, reason="Duplicate"
    )

    assert outcome.entry.update_type == "StatusChange"
    assert outcome.entry.comment == "Status changed to Rejected. Reason: Duplicate"


def test_clarification_request_is_a_comment(db, grievance, hostel_officer, caps_for):
    outcome = grievance_status_service.change_status(
        db,
        caps_for(hostel_officer),
        grievance,
        GrievanceStatus.AWAITING_CLARIFICATION,
        reason="need course code",
    )

    assert grievance.status == "Awaiting Clarification"
    assert outcome.entry.update_type == "Comment"
    assert outcome.entry.comment == "need course code"


def test_clarification_without_request_fails(db, grievance, hostel_officer, caps_for):
    with pytest.raises(MissingReason):
        grievance_status_service.change_status(
            db, caps_for(hostel_officer), grievance, GrievanceStatus.AWAITING_CLARIFICATION
        )


def test_closed_grievance_only_reopened_by_super_admin(
    db, grievance, hostel_officer, admin, caps_for
):
    officer_caps = caps_for(hostel_officer)
    grievance_status_service.change_status(db, officer_caps, grievance, GrievanceStatus.RESOLVED)

    with pytest.raises(InvalidTransition):
        grievance_status_service.change_status(
            db, officer_caps, grievance, GrievanceStatus.IN_PROGRESS
        )
    with pytest.raises(InvalidTransition):
        grievance_status_service.change_status(
            db, caps_for(admin), grievance, GrievanceStatus.ESCALATED
        )

    outcome = grievance_status_service.change_status(
        db, caps_for(admin), grievance, GrievanceStatus.IN_PROGRESS
    )
    assert grievance.status == "In Progress"
    assert outcome.entry.author_role == "super_admin"


def test_submitter_cannot_change_status(db, grievance, student, caps_for):
    with pytest.raises(Forbidden):
        grievance_status_service.change_status(
            db, caps_for(student), grievance, GrievanceStatus.RESOLVED
        )


def test_officer_of_other_department_cannot_change_status(
    db, grievance, library_officer, caps_for
):
    with pytest.raises(Forbidden):
        grievance_status_service.change_status(
            db, caps_for(library_officer), grievance, GrievanceStatus.IN_PROGRESS
        )
    db.refresh(grievance)
    assert grievance.status == "Submitted"


def test_failure_during_dispatch_rolls_back_transition(
    db, grievance, hostel_officer, caps_for, monkeypatch
):
    def boom(*args, **kwargs):
        raise RuntimeError("dispatch failed")

    monkeypatch.setattr(grievance_status_service.notification_service, "dispatch", boom)

    with pytest.raises(RuntimeError):
        grievance_status_service.change_status(
            db, caps_for(hostel_officer), grievance, GrievanceStatus.IN_PROGRESS
        )

    db.refresh(grievance)
    assert grievance.status == "Submitted"
    assert ledger_service.get_history(db, grievance.id) == []


def test_outcome_reports_push_and_email_after_commit(db, grievance, student, hostel_officer, caps_for):
    outcome = grievance_status_service.change_status(
        db, caps_for(hostel_officer), grievance, GrievanceStatus.RESOLVED
    )

    assert [p["user_id"] for p in outcome.pushes] == [str(student.id)]
    assert outcome.email["to_email"] == student.email
    assert outcome.email["status"] == "Resolved"


@pytest.mark.parametrize(
    "current,expected",
    [
        (GrievanceStatus.SUBMITTED, {"In Progress", "Awaiting Clarification", "Resolved", "Rejected", "Escalated"}),
        (GrievanceStatus.ESCALATED, {"In Progress", "Awaiting Clarification", "Resolved", "Rejected"}),
        (GrievanceStatus.RESOLVED, set()),
    ],
)
def test_allowed_targets_for_officer(current, expected):
    caps = Capabilities(user_id=uuid.uuid4(), officer_department_ids=frozenset({1}))
    assert {s.value for s in grievance_status_service.allowed_targets(current, caps)} == expected
