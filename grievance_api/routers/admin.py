"""
Admin Router - user, role and department management plus portal-wide views.

Every endpoint requires super_admin.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from grievance_api.core.deps import get_db, require_super_admin
from grievance_api.core.unit_of_work import UnitOfWork
from grievance_api.db.enums import GrievanceStatus, Role
from grievance_api.db.models import User
from grievance_api.routers.departments import department_reads
from grievance_api.routers.grievances import to_list_item
from grievance_api.schemas.admin import (
    AssignRoleRequest,
    DepartmentRead,
    RoleAssignmentCreated,
    UserCreate,
    UserRead,
)
from grievance_api.schemas.auth import RoleAssignmentRead, UserSession
from grievance_api.schemas.grievance import GrievanceListItem, ReassignRequest
from grievance_api.services import directory_service, grievance_service

router = APIRouter()


def to_user_read(user: User) -> UserRead:
    return UserRead(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        is_active=user.is_active,
        created_at=user.created_at,
        roles=[
            RoleAssignmentRead(**r)
            for r in directory_service.role_payload(user.role_assignments)
        ],
    )


# =============================================================================
# Users
# =============================================================================


@router.get("/users", response_model=list[UserRead])
def list_users(
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    return [to_user_read(u) for u in directory_service.list_users(db)]


@router.post("/users", response_model=UserRead, status_code=201)
def create_user(
    data: UserCreate,
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    with UnitOfWork(db):
        user = directory_service.create_user(
            db, data.email, data.full_name, role=data.role, department_id=data.department_id
        )
    db.refresh(user)
    return to_user_read(user)


@router.put("/users/{user_id}/deactivate", response_model=UserRead)
def deactivate_user(
    user_id: UUID,
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    with UnitOfWork(db):
        user = directory_service.deactivate_user(db, user_id, session.user_id)
    return to_user_read(user)


@router.put("/users/{user_id}/reactivate", response_model=UserRead)
def reactivate_user(
    user_id: UUID,
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    with UnitOfWork(db):
        user = directory_service.reactivate_user(db, user_id, session.user_id)
    return to_user_read(user)


# =============================================================================
# Roles and departments
# =============================================================================


@router.get("/roles", response_model=list[str])
def list_roles(session: UserSession = Depends(require_super_admin)):
    return [role.value for role in Role]


@router.post("/assign-role", response_model=RoleAssignmentCreated, status_code=201)
def assign_role(
    data: AssignRoleRequest,
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    with UnitOfWork(db):
        assignment = directory_service.assign_role(
            db, data.user_id, data.role, data.department_id
        )
    return RoleAssignmentCreated.model_validate(assignment)


@router.delete("/role-assignments/{assignment_id}", status_code=204)
def revoke_role(
    assignment_id: int,
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    with UnitOfWork(db):
        directory_service.revoke_role(db, assignment_id)


@router.get("/departments", response_model=list[DepartmentRead])
def list_departments(
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    return department_reads(db)


# =============================================================================
# Grievances
# =============================================================================


@router.get("/grievances/filter", response_model=list[GrievanceListItem])
def filter_grievances(
    status: GrievanceStatus | None = Query(None),
    category: str | None = Query(None),
    department_id: int | None = Query(None),
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    grievances = grievance_service.filter_grievances(
        db, status=status, category=category, department_id=department_id
    )
    return [to_list_item(g) for g in grievances]


@router.put("/grievances/{ticket_id}/assignment", response_model=GrievanceListItem)
def reassign_grievance(
    ticket_id: str,
    data: ReassignRequest,
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    """Route a grievance to another department."""
    grievance = grievance_service.get_grievance_by_ticket(db, ticket_id)
    grievance_service.reassign_department(db, grievance, data.department_id, session.user_id)
    return to_list_item(grievance_service.get_grievance_by_ticket(db, ticket_id))


@router.get("/analytics")
def portal_analytics(
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    return grievance_service.portal_analytics(db)
