"""Baseline migration - directory, grievances, ledger and notifications

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19

Creates the full portal schema and seeds the default departments.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_baseline"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DEFAULT_DEPARTMENTS = ["Academic", "Hostel", "Administration", "Library", "Accounts"]


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=None if nullable else sa.func.now(),
        nullable=nullable,
    )


def upgrade() -> None:
    # ==========================================================================
    # Directory
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("token_version", sa.Integer(), server_default="1", nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    departments = op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_departments"),
        sa.UniqueConstraint("name", name="uq_departments_name"),
    )
    op.create_table(
        "department_categories",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column(
            "department_id",
            sa.Integer(),
            sa.ForeignKey(
                "departments.id",
                ondelete="CASCADE",
                name="fk_department_categories_department_id_departments",
            ),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_department_categories"),
    )
    op.create_index(
        "uq_department_categories_name_lower",
        "department_categories",
        [sa.text("lower(name)")],
        unique=True,
    )
    op.create_table(
        "user_department_roles",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey(
                "users.id", ondelete="CASCADE", name="fk_user_department_roles_user_id_users"
            ),
            nullable=False,
        ),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column(
            "department_id",
            sa.Integer(),
            sa.ForeignKey(
                "departments.id",
                ondelete="CASCADE",
                name="fk_user_department_roles_department_id_departments",
            ),
            nullable=True,
        ),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_user_department_roles"),
        sa.UniqueConstraint("user_id", "role", "department_id", name="uq_user_role_department"),
    )
    op.create_index(
        "uq_user_role_global",
        "user_department_roles",
        ["user_id", "role"],
        unique=True,
        postgresql_where=sa.text("department_id IS NULL"),
        sqlite_where=sa.text("department_id IS NULL"),
    )
    op.create_index("idx_udr_department_role", "user_department_roles", ["department_id", "role"])

    # ==========================================================================
    # Grievances
    # ==========================================================================
    op.create_table(
        "grievances",
        sa.Column("id", sa.Uuid()),
        sa.Column("ticket_id", sa.String(20), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("status", sa.String(50), server_default="Submitted", nullable=False),
        sa.Column(
            "submitted_by_id",
            sa.Uuid(),
            sa.ForeignKey(
                "users.id", ondelete="RESTRICT", name="fk_grievances_submitted_by_id_users"
            ),
            nullable=False,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_grievances"),
        sa.UniqueConstraint("ticket_id", name="uq_grievances_ticket_id"),
    )
    op.create_index("idx_grievances_submitter", "grievances", ["submitted_by_id", "created_at"])
    op.create_index("idx_grievances_status", "grievances", ["status"])

    op.create_table(
        "grievance_assignments",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column(
            "grievance_id",
            sa.Uuid(),
            sa.ForeignKey(
                "grievances.id",
                ondelete="CASCADE",
                name="fk_grievance_assignments_grievance_id_grievances",
            ),
            nullable=False,
        ),
        sa.Column(
            "department_id",
            sa.Integer(),
            sa.ForeignKey(
                "departments.id",
                ondelete="RESTRICT",
                name="fk_grievance_assignments_department_id_departments",
            ),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column(
            "assigned_by_user_id",
            sa.Uuid(),
            sa.ForeignKey(
                "users.id",
                ondelete="SET NULL",
                name="fk_grievance_assignments_assigned_by_user_id_users",
            ),
            nullable=True,
        ),
        _timestamp("assigned_at"),
        _timestamp("unassigned_at", nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_grievance_assignments"),
    )
    # Exactly one active department per grievance
    op.create_index(
        "uq_grievance_assignments_active",
        "grievance_assignments",
        ["grievance_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active"),
    )
    op.create_index(
        "idx_grievance_assignments_department",
        "grievance_assignments",
        ["department_id", "is_active"],
    )

    op.create_table(
        "grievance_updates",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column(
            "grievance_id",
            sa.Uuid(),
            sa.ForeignKey(
                "grievances.id",
                ondelete="CASCADE",
                name="fk_grievance_updates_grievance_id_grievances",
            ),
            nullable=False,
        ),
        sa.Column(
            "updated_by_id",
            sa.Uuid(),
            sa.ForeignKey(
                "users.id", ondelete="RESTRICT", name="fk_grievance_updates_updated_by_id_users"
            ),
            nullable=False,
        ),
        sa.Column("author_role", sa.String(50), nullable=False),
        sa.Column("update_type", sa.String(20), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("from_status", sa.String(50), nullable=True),
        sa.Column("to_status", sa.String(50), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_grievance_updates"),
    )
    op.create_index(
        "idx_grievance_updates_timeline",
        "grievance_updates",
        ["grievance_id", "created_at", "id"],
    )

    op.create_table(
        "attachments",
        sa.Column("id", sa.Uuid()),
        sa.Column(
            "grievance_id",
            sa.Uuid(),
            sa.ForeignKey(
                "grievances.id", ondelete="CASCADE", name="fk_attachments_grievance_id_grievances"
            ),
            nullable=False,
        ),
        sa.Column(
            "update_id",
            sa.Integer(),
            sa.ForeignKey(
                "grievance_updates.id",
                ondelete="SET NULL",
                name="fk_attachments_update_id_grievance_updates",
            ),
            nullable=True,
        ),
        sa.Column(
            "uploaded_by_id",
            sa.Uuid(),
            sa.ForeignKey(
                "users.id", ondelete="SET NULL", name="fk_attachments_uploaded_by_id_users"
            ),
            nullable=True,
        ),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("storage_path", sa.String(512), nullable=False),
        sa.Column("content_type", sa.String(100), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_attachments"),
    )
    op.create_index("idx_attachments_grievance", "attachments", ["grievance_id", "created_at"])

    # ==========================================================================
    # Notifications
    # ==========================================================================
    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid()),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_notifications_user_id_users"),
            nullable=False,
        ),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link", sa.String(255), nullable=True),
        sa.Column(
            "grievance_id",
            sa.Uuid(),
            sa.ForeignKey(
                "grievances.id",
                ondelete="CASCADE",
                name="fk_notifications_grievance_id_grievances",
            ),
            nullable=True,
        ),
        sa.Column("is_read", sa.Boolean(), server_default=sa.false(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_notifications"),
    )
    op.create_index(
        "idx_notif_user_unread", "notifications", ["user_id", "is_read", "created_at"]
    )
    op.create_index("idx_notif_grievance", "notifications", ["grievance_id"])

    # ==========================================================================
    # Reference data
    # ==========================================================================
    op.bulk_insert(departments, [{"name": name} for name in DEFAULT_DEPARTMENTS])
    op.execute(
        """
        INSERT INTO department_categories (department_id, name)
        SELECT id, name FROM departments
        """
    )


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("attachments")
    op.drop_table("grievance_updates")
    op.drop_table("grievance_assignments")
    op.drop_table("grievances")
    op.drop_table("user_department_roles")
    op.drop_table("department_categories")
    op.drop_table("departments")
    op.drop_table("users")
