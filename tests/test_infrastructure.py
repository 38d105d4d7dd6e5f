"""Unit of work and structured logging helpers."""

import pytest

from grievance_api.core.structured_logging import build_log_context, format_log_context
from grievance_api.core.unit_of_work import UnitOfWork
from grievance_api.db.models import Department
from grievance_api.services import directory_service


def test_unit_of_work_commits_and_runs_callbacks(db):
    ran = []
    with UnitOfWork(db) as uow:
        db.add(Department(name="Sports"))
        uow.after_commit(lambda: ran.append("done"))

    assert uow.committed
    assert ran == ["done"]
    assert "Sports" in {d.name for d in directory_service.list_departments(db)}


def test_unit_of_work_rolls_back_and_skips_callbacks(db):
    ran = []
    with pytest.raises(ValueError):
        with UnitOfWork(db) as uow:
            db.add(Department(name="Sports"))
            db.flush()
            uow.after_commit(lambda: ran.append("done"))
            raise ValueError("boom")

    assert ran == []
    assert "Sports" not in {d.name for d in directory_service.list_departments(db)}


def test_failing_callback_does_not_undo_commit(db, caplog):
    def boom():
        raise RuntimeError("push failed")

    with UnitOfWork(db) as uow:
        db.add(Department(name="Sports"))
        uow.after_commit(boom)

    assert "after_commit callback failed" in caplog.text
    assert "Sports" in {d.name for d in directory_service.list_departments(db)}


def test_build_log_context_keeps_only_provided_fields():
    context = build_log_context(user_id="u1", ticket_id=None, request_id="r1")
    assert context == {"user_id": "u1", "request_id": "r1"}
    assert format_log_context(context) == "user_id=u1 request_id=r1"
