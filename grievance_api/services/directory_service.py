"""Role/department directory: departments, categories, users and role assignments."""

from __future__ import annotations

import logging
from uuid import UUID

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from grievance_api.core.access import Capabilities, capabilities_from_assignments
from grievance_api.core.errors import Conflict, InvalidCategory, NotFound, ValidationError
from grievance_api.db.enums import DEPARTMENT_SCOPED_ROLES, Role
from grievance_api.db.models import Department, DepartmentCategory, User, UserDepartmentRole

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)

# Department name -> categories routed to it
DEFAULT_DEPARTMENTS: dict[str, list[str]] = {
    "Academic": ["Academic"],
    "Hostel": ["Hostel"],
    "Administration": ["Administration"],
    "Library": ["Library"],
    "Accounts": ["Accounts"],
}


# =============================================================================
# Departments
# =============================================================================


def seed_departments(db: Session, departments: dict[str, list[str]] | None = None) -> int:
    """Create missing departments/categories. Returns how many rows were added."""
    created = 0
    for name, categories in (departments or DEFAULT_DEPARTMENTS).items():
        department = db.execute(
            select(Department).where(Department.name == name)
        ).scalar_one_or_none()
        if not department:
            department = Department(name=name)
            db.add(department)
            db.flush()
            created += 1
        for category in categories:
            existing = db.execute(
                select(DepartmentCategory).where(
                    func.lower(DepartmentCategory.name) == category.lower()
                )
            ).scalar_one_or_none()
            if not existing:
                db.add(DepartmentCategory(department_id=department.id, name=category))
                created += 1
    db.flush()
    return created


def list_departments(db: Session) -> list[Department]:
    return list(
        db.execute(
            select(Department).options(selectinload(Department.categories)).order_by(Department.name)
        ).scalars()
    )


def get_department(db: Session, department_id: int) -> Department | None:
    return db.get(Department, department_id)


def resolve_department_for_category(db: Session, category: str) -> tuple[Department, str]:
    """
    Find the department owning a category (case-insensitive).

    Returns the department and the canonical category name.
    Raises InvalidCategory for unknown categories.
    """
    normalized = (category or "").strip().lower()
    row = db.execute(
        select(DepartmentCategory)
        .options(selectinload(DepartmentCategory.department))
        .where(func.lower(DepartmentCategory.name) == normalized)
    ).scalar_one_or_none()
    if not row:
        raise InvalidCategory(f"Unknown grievance category '{category}'")
    return row.department, row.name


# =============================================================================
# Users
# =============================================================================


def get_user(db: Session, user_id: UUID) -> User | None:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    ).scalar_one_or_none()


def list_users(db: Session) -> list[User]:
    return list(
        db.execute(
            select(User)
            .options(selectinload(User.role_assignments).selectinload(UserDepartmentRole.department))
            .order_by(User.created_at.desc())
        ).scalars()
    )


def create_user(
    db: Session,
    email: str,
    full_name: str,
    role: Role | None = None,
    department_id: int | None = None,
) -> User:
    """Create a user, optionally with an initial role assignment."""
    try:
        email = _email_adapter.validate_python(email.strip()).lower()
    except PydanticValidationError:
        raise ValidationError(f"Invalid email address: {email.strip()}")
    if get_user_by_email(db, email):
        raise Conflict(f"User with email {email} already exists")

    user = User(email=email, full_name=full_name.strip())
    db.add(user)
    db.flush()

    if role is not None and role != Role.STUDENT:
        assign_role(db, user.id, role, department_id)
    return user


def set_user_active(db: Session, user_id: UUID, is_active: bool, actor_id: UUID) -> User:
    """Deactivate (soft delete) or reactivate a user."""
    if not is_active and user_id == actor_id:
        raise ValidationError("You cannot deactivate your own account.")

    user = get_user(db, user_id)
    if not user:
        raise NotFound("User not found.")

    user.is_active = is_active
    if not is_active:
        # Outstanding tokens die with the account
        user.token_version += 1
    db.flush()
    logger.info("User %s active=%s by %s", user_id, is_active, actor_id)
    return user


def revoke_sessions(db: Session, user: User) -> int:
    user.token_version += 1
    db.flush()
    return user.token_version


# =============================================================================
# Role assignments
# =============================================================================


def get_role_assignments(db: Session, user_id: UUID) -> list[UserDepartmentRole]:
    return list(
        db.execute(
            select(UserDepartmentRole)
            .options(selectinload(UserDepartmentRole.department))
            .where(UserDepartmentRole.user_id == user_id)
            .order_by(UserDepartmentRole.id)
        ).scalars()
    )


def resolve_capabilities(db: Session, user_id: UUID) -> Capabilities:
    """Fresh capability snapshot for one request."""
    return capabilities_from_assignments(user_id, get_role_assignments(db, user_id))


def role_payload(assignments: list[UserDepartmentRole]) -> list[dict]:
    """Role list embedded in session tokens and /auth/me."""
    return [
        {
            "role_name": a.role,
            "department_id": a.department_id,
            "department_name": a.department.name if a.department else None,
        }
        for a in assignments
    ]


def assign_role(
    db: Session,
    user_id: UUID,
    role: Role,
    department_id: int | None = None,
) -> UserDepartmentRole:
    """
    Grant a role. Department-scoped roles need a department; global roles
    ignore it. Duplicate assignments raise Conflict.
    """
    if not get_user(db, user_id):
        raise NotFound("User not found.")

    if role in DEPARTMENT_SCOPED_ROLES:
        if department_id is None:
            raise ValidationError(f"Role '{role.value}' requires a department")
        if not get_department(db, department_id):
            raise NotFound("Department not found.")
    else:
        department_id = None

    department_filter = (
        UserDepartmentRole.department_id.is_(None)
        if department_id is None
        else UserDepartmentRole.department_id == department_id
    )
    existing = db.execute(
        select(UserDepartmentRole).where(
            UserDepartmentRole.user_id == user_id,
            UserDepartmentRole.role == role.value,
            department_filter,
        )
    ).scalar_one_or_none()
    if existing:
        raise Conflict("User already has this role for this department.")

    assignment = UserDepartmentRole(user_id=user_id, role=role.value, department_id=department_id)
    try:
        with db.begin_nested():
            db.add(assignment)
            db.flush()
    except IntegrityError:
        raise Conflict("User already has this role for this department.")
    logger.info("Assigned role %s (department=%s) to user %s", role.value, department_id, user_id)
    return assignment


def revoke_role(db: Session, assignment_id: int) -> None:
    assignment = db.get(UserDepartmentRole, assignment_id)
    if not assignment:
        raise NotFound("Role assignment not found.")
    db.delete(assignment)
    db.flush()


def list_department_officers(db: Session, department_id: int) -> list[UUID]:
    """Active users holding nodal_officer/department_head in a department."""
    rows = db.execute(
        select(UserDepartmentRole.user_id)
        .join(User, User.id == UserDepartmentRole.user_id)
        .where(
            UserDepartmentRole.department_id == department_id,
            UserDepartmentRole.role.in_([r.value for r in DEPARTMENT_SCOPED_ROLES]),
            User.is_active.is_(True),
        )
        .distinct()
    ).scalars()
    return list(rows)


def list_super_admins(db: Session) -> list[UUID]:
    rows = db.execute(
        select(UserDepartmentRole.user_id)
        .join(User, User.id == UserDepartmentRole.user_id)
        .where(
            UserDepartmentRole.role == Role.SUPER_ADMIN.value,
            User.is_active.is_(True),
        )
        .distinct()
    ).scalars()
    return list(rows)


def deactivate_user(db: Session, user_id: UUID, actor_id: UUID) -> User:
    return set_user_active(db, user_id, False, actor_id)


def reactivate_user(db: Session, user_id: UUID, actor_id: UUID) -> User:
    return set_user_active(db, user_id, True, actor_id)
