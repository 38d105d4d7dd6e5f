"""Transactional unit of work for multi-step writes.

Every write path (submission, status change, comment with auto-reopen,
reassignment) runs inside one UnitOfWork: either every statement commits or
the session is rolled back. Side effects that must only happen for committed
data (real-time pushes, emails) are registered with after_commit().
"""

from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Usage:
        with UnitOfWork(db) as uow:
            ...mutate...
            uow.after_commit(lambda: ...)
    """

    def __init__(self, db: Session):
        self.db = db
        self._after_commit: list[Callable[[], None]] = []
        self.committed = False

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.db.rollback()
            return False

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.committed = True
        for callback in self._after_commit:
            try:
                callback()
            except Exception:
                logger.exception("after_commit callback failed")
        return False

    def after_commit(self, callback: Callable[[], None]) -> None:
        self._after_commit.append(callback)
