"""Dispatcher: recipient sets, actor exclusion and persisted rows."""

import pytest
from sqlalchemy import select

from grievance_api.db.enums import GrievanceStatus, NotificationEvent, NotificationType, Role
from grievance_api.db.models import Notification
from grievance_api.schemas.grievance import GrievanceCreate
from grievance_api.services import (
    directory_service,
    grievance_service,
    grievance_status_service,
    ledger_service,
    notification_service,
)


@pytest.fixture
def grievance(db, student):
    return grievance_service.create_grievance(
        db,
        student.id,
        GrievanceCreate(title="Water leak", description="Leak in block C", category="Hostel"),
    )


def _notifications_for(db, user):
    return list(
        db.execute(select(Notification).where(Notification.user_id == user.id)).scalars()
    )


def test_submitter_comment_notifies_every_department_officer(
    db, grievance, student, hostel_officer, hostel_head, library_officer, admin
):
    recipients = notification_service.compute_recipients(
        db, NotificationEvent.COMMENT_ADDED, grievance, student.id
    )
    assert set(recipients) == {hostel_officer.id, hostel_head.id}


def test_officer_comment_notifies_submitter_only(
    db, grievance, student, hostel_officer, hostel_head
):
    recipients = notification_service.compute_recipients(
        db, NotificationEvent.COMMENT_ADDED, grievance, hostel_officer.id
    )
    assert recipients == [student.id]


def test_escalation_notifies_admins_not_submitter(
    db, grievance, student, hostel_officer, admin, make_user, caps_for
):
    second_admin = make_user(Role.SUPER_ADMIN)
    grievance_status_service.change_status(
        db, caps_for(hostel_officer), grievance, GrievanceStatus.ESCALATED
    )

    assert _notifications_for(db, student) == []
    for user in (admin, second_admin):
        notes = _notifications_for(db, user)
        assert len(notes) == 1
        assert notes[0].type == NotificationType.GRIEVANCE_ESCALATED.value
        assert notes[0].link == f"/officer/grievance/{grievance.ticket_id}"


def test_escalating_admin_is_not_notified_of_own_action(
    db, grievance, admin, make_user, caps_for
):
    other_admin = make_user(Role.SUPER_ADMIN)
    grievance_status_service.change_status(db, caps_for(admin), grievance, GrievanceStatus.ESCALATED)

    assert _notifications_for(db, admin) == []
    assert len(_notifications_for(db, other_admin)) == 1


def test_deactivated_officer_is_skipped(db, grievance, student, hostel_officer, hostel_head, admin):
    directory_service.deactivate_user(db, hostel_head.id, admin.id)
    db.commit()

    recipients = notification_service.compute_recipients(
        db, NotificationEvent.COMMENT_ADDED, grievance, student.id
    )
    assert recipients == [hostel_officer.id]


def test_status_change_notification_links_to_student_view(
    db, grievance, student, hostel_officer, caps_for
):
    grievance_status_service.change_status(
        db, caps_for(hostel_officer), grievance, GrievanceStatus.RESOLVED
    )

    [note] = _notifications_for(db, student)
    assert note.type == NotificationType.GRIEVANCE_STATUS_CHANGED.value
    assert note.link == f"/grievance/{grievance.ticket_id}"
    assert "Resolved" in note.message
    assert note.grievance_id == grievance.id
    assert note.is_read is False


def test_student_reply_links_officers_to_officer_view(
    db, grievance, student, hostel_officer, caps_for
):
    ledger_service.add_comment(db, caps_for(student), grievance, "Please hurry")

    [note] = _notifications_for(db, hostel_officer)
    assert note.type == NotificationType.GRIEVANCE_STUDENT_REPLY.value
    assert note.link == f"/officer/grievance/{grievance.ticket_id}"


def test_unread_count_and_mark_read(db, grievance, student, hostel_officer, caps_for):
    caps = caps_for(hostel_officer)
    ledger_service.add_comment(db, caps, grievance, "first")
    ledger_service.add_comment(db, caps, grievance, "second")

    assert notification_service.get_unread_count(db, student.id) == 2
    first = notification_service.get_notifications(db, student.id)[0]
    notification_service.mark_read(db, first.id, student.id)
    assert notification_service.get_unread_count(db, student.id) == 1

    assert notification_service.mark_all_read(db, student.id) == 1
    assert notification_service.get_unread_count(db, student.id) == 0


def test_mark_read_is_committed(db, grievance, student, hostel_officer, caps_for):
    ledger_service.add_comment(db, caps_for(hostel_officer), grievance, "hi")
    ledger_service.add_comment(db, caps_for(hostel_officer), grievance, "again")
    first = notification_service.get_notifications(db, student.id)[0]

    notification_service.mark_read(db, first.id, student.id)
    db.rollback()
    assert notification_service.get_unread_count(db, student.id) == 1

    notification_service.mark_all_read(db, student.id)
    db.rollback()
    assert notification_service.get_unread_count(db, student.id) == 0


def test_mark_read_ignores_other_users_notifications(
    db, grievance, student, hostel_officer, caps_for
):
    ledger_service.add_comment(db, caps_for(hostel_officer), grievance, "hi")
    note = notification_service.get_notifications(db, student.id)[0]

    assert notification_service.mark_read(db, note.id, hostel_officer.id) is None
    assert notification_service.get_unread_count(db, student.id) == 1
