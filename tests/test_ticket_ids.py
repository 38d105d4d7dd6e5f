"""Ticket id format and collision retry."""

import re
from datetime import datetime

import pytest

from grievance_api.core.config import settings
from grievance_api.core.errors import Conflict
from grievance_api.schemas.grievance import GrievanceCreate
from grievance_api.services import grievance_service


def test_ticket_id_format():
    ticket = grievance_service.generate_ticket_id(datetime(2025, 3, 7, 12, 0))
    assert re.fullmatch(r"GRM250307\d{4}", ticket)
    assert 1000 <= int(ticket[-4:]) <= 9999


def _data(title="t"):
    return GrievanceCreate(title=title, description="d", category="Academic")


def test_collision_draws_a_new_ticket(db, student, monkeypatch):
    first = grievance_service.create_grievance(db, student.id, _data("first"))
    tickets = iter([first.ticket_id, "GRM2501011111"])
    monkeypatch.setattr(grievance_service, "generate_ticket_id", lambda: next(tickets))

    second = grievance_service.create_grievance(db, student.id, _data("second"))

    assert second.ticket_id == "GRM2501011111"
    assert second.active_assignment.department.name == "Academic"


def test_gives_up_after_max_attempts(db, student, monkeypatch):
    first = grievance_service.create_grievance(db, student.id, _data())
    monkeypatch.setattr(grievance_service, "generate_ticket_id", lambda: first.ticket_id)
    monkeypatch.setattr(settings, "TICKET_ID_MAX_ATTEMPTS", 3)

    with pytest.raises(Conflict):
        grievance_service.create_grievance(db, student.id, _data())

    assert len(grievance_service.list_my_grievances(db, student.id)) == 1


def test_new_grievance_has_one_active_assignment(db, student):
    grievance = grievance_service.create_grievance(db, student.id, _data())
    assert len(grievance.assignments) == 1
    assert grievance.assignments[0].is_active is True
    assert grievance.status == "Submitted"
