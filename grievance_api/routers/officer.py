"""Officer dashboard: grievances of the officer's departments plus status counts."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from grievance_api.core.deps import get_db, require_officer
from grievance_api.routers.grievances import to_list_item
from grievance_api.schemas.auth import UserSession
from grievance_api.schemas.grievance import OfficerDashboard
from grievance_api.services import grievance_service

router = APIRouter()


@router.get("/grievances", response_model=OfficerDashboard)
def officer_dashboard(
    session: UserSession = Depends(require_officer),
    db: Session = Depends(get_db),
):
    """Super admins see every grievance; officers see their departments only."""
    grievances = grievance_service.list_for_officer(db, session.capabilities)
    return OfficerDashboard(
        grievances=[to_list_item(g) for g in grievances],
        analytics=grievance_service.status_analytics(grievances),
    )
