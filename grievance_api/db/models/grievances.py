"""Grievance, department assignment, ledger and attachment models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grievance_api.db.base import Base, utcnow
from grievance_api.db.enums import GrievanceStatus

if TYPE_CHECKING:
    from grievance_api.db.models.auth import Department, User


class Grievance(Base):
    """
    A grievance raised by a student.

    The owning department is not a column here: it lives in
    GrievanceAssignment so a grievance can be re-routed without rewriting it.
    """

    __tablename__ = "grievances"
    __table_args__ = (
        Index("idx_grievances_submitter", "submitted_by_id", "created_at"),
        Index("idx_grievances_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(
        String(50),
        default=GrievanceStatus.SUBMITTED.value,
        server_default=GrievanceStatus.SUBMITTED.value,
        nullable=False,
    )
    submitted_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    submitted_by: Mapped["User"] = relationship(back_populates="grievances")
    assignments: Mapped[list["GrievanceAssignment"]] = relationship(
        back_populates="grievance",
        cascade="all, delete-orphan",
        order_by="GrievanceAssignment.id",
    )
    updates: Mapped[list["GrievanceUpdate"]] = relationship(
        back_populates="grievance",
        cascade="all, delete-orphan",
        order_by="GrievanceUpdate.id",
    )
    attachments: Mapped[list["Attachment"]] = relationship(
        back_populates="grievance",
        cascade="all, delete-orphan",
        order_by="Attachment.created_at",
    )

    @property
    def active_assignment(self) -> "GrievanceAssignment | None":
        for assignment in self.assignments:
            if assignment.is_active:
                return assignment
        return None

    @property
    def department_id(self) -> int | None:
        assignment = self.active_assignment
        return assignment.department_id if assignment else None


class GrievanceAssignment(Base):
    """Routing of a grievance to a department. Exactly one row is active."""

    __tablename__ = "grievance_assignments"
    __table_args__ = (
        Index(
            "uq_grievance_assignments_active",
            "grievance_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
        Index("idx_grievance_assignments_department", "department_id", "is_active"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    grievance_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("grievances.id", ondelete="CASCADE"), nullable=False
    )
    department_id: Mapped[int] = mapped_column(
        ForeignKey("departments.id", ondelete="RESTRICT"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(default=True, server_default=text("true"))
    assigned_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    assigned_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    unassigned_at: Mapped[datetime | None] = mapped_column(nullable=True)

    grievance: Mapped["Grievance"] = relationship(back_populates="assignments")
    department: Mapped["Department"] = relationship()


class GrievanceUpdate(Base):
    """
    Ledger entry: a comment or a status change. Append-only.

    author_role is captured when the entry is written, so the label shown next
    to an old entry reflects the role the author acted under at the time.
    """

    __tablename__ = "grievance_updates"
    __table_args__ = (Index("idx_grievance_updates_timeline", "grievance_id", "created_at", "id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    grievance_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("grievances.id", ondelete="CASCADE"), nullable=False
    )
    updated_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    author_role: Mapped[str] = mapped_column(String(50), nullable=False)
    update_type: Mapped[str] = mapped_column(String(20), nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    from_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    to_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    grievance: Mapped["Grievance"] = relationship(back_populates="updates")
    author: Mapped["User"] = relationship()


class Attachment(Base):
    """File metadata linked to a grievance. Never mutated after creation."""

    __tablename__ = "attachments"
    __table_args__ = (Index("idx_attachments_grievance", "grievance_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    grievance_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("grievances.id", ondelete="CASCADE"), nullable=False
    )
    update_id: Mapped[int | None] = mapped_column(
        ForeignKey("grievance_updates.id", ondelete="SET NULL"), nullable=True
    )
    uploaded_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # File metadata
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(512), nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    grievance: Mapped["Grievance"] = relationship(back_populates="attachments")
