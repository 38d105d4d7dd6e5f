"""Users, departments and role assignments (the directory)."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grievance_api.db.base import Base, utcnow

if TYPE_CHECKING:
    from grievance_api.db.models.grievances import Grievance


class User(Base):
    """
    Portal user.

    Roles live in UserDepartmentRole; a user may be a student everywhere and a
    nodal officer in one department at the same time. Deactivation is a soft
    delete: history authored by the user is preserved.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, server_default=text("true"))
    # Bumped to revoke every outstanding session token
    token_version: Mapped[int] = mapped_column(
        Integer, default=1, server_default=text("1"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    role_assignments: Mapped[list["UserDepartmentRole"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    grievances: Mapped[list["Grievance"]] = relationship(back_populates="submitted_by")


class Department(Base):
    """Organizational unit that owns categories and officers. Reference data."""

    __tablename__ = "departments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    categories: Mapped[list["DepartmentCategory"]] = relationship(
        back_populates="department", cascade="all, delete-orphan"
    )


class DepartmentCategory(Base):
    """Grievance category routed to a department (matched case-insensitively)."""

    __tablename__ = "department_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    department_id: Mapped[int] = mapped_column(
        ForeignKey("departments.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    department: Mapped["Department"] = relationship(back_populates="categories")


Index(
    "uq_department_categories_name_lower",
    func.lower(DepartmentCategory.name),
    unique=True,
)


class UserDepartmentRole(Base):
    """
    One (role, department) assignment held by a user.

    department_id is NULL for global roles (student, super_admin).
    """

    __tablename__ = "user_department_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "role", "department_id", name="uq_user_role_department"),
        # NULL department ids are distinct under the constraint above
        Index(
            "uq_user_role_global",
            "user_id",
            "role",
            unique=True,
            postgresql_where=text("department_id IS NULL"),
            sqlite_where=text("department_id IS NULL"),
        ),
        Index("idx_udr_department_role", "department_id", "role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    department_id: Mapped[int | None] = mapped_column(
        ForeignKey("departments.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    user: Mapped["User"] = relationship(back_populates="role_assignments")
    department: Mapped["Department | None"] = relationship()
