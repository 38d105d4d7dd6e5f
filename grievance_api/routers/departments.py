"""Department reference data (public to any signed-in user)."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from grievance_api.core.deps import get_current_session, get_db
from grievance_api.schemas.admin import DepartmentRead
from grievance_api.schemas.auth import UserSession
from grievance_api.services import directory_service

router = APIRouter()


def department_reads(db: Session) -> list[DepartmentRead]:
    return [
        DepartmentRead(id=d.id, name=d.name, categories=[c.name for c in d.categories])
        for d in directory_service.list_departments(db)
    ]


@router.get("", response_model=list[DepartmentRead])
def list_departments(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return department_reads(db)
