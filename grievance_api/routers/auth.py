"""Session introspection."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from grievance_api.core.deps import get_current_user, get_db
from grievance_api.db.models import User
from grievance_api.schemas.auth import MeResponse, RoleAssignmentRead
from grievance_api.services import directory_service

router = APIRouter()


@router.get("/me", response_model=MeResponse)
def get_me(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current user with the roles they hold right now."""
    roles = directory_service.role_payload(directory_service.get_role_assignments(db, user.id))
    return MeResponse(
        user_id=user.id,
        email=user.email,
        full_name=user.full_name,
        is_active=user.is_active,
        roles=[RoleAssignmentRead(**r) for r in roles],
    )
