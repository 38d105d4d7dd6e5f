"""SQLAlchemy ORM models, re-exported so callers import from one place."""

from grievance_api.db.models.auth import (
    Department,
    DepartmentCategory,
    User,
    UserDepartmentRole,
)
from grievance_api.db.models.grievances import (
    Attachment,
    Grievance,
    GrievanceAssignment,
    GrievanceUpdate,
)
from grievance_api.db.models.notifications import Notification

__all__ = [
    "Attachment",
    "Department",
    "DepartmentCategory",
    "Grievance",
    "GrievanceAssignment",
    "GrievanceUpdate",
    "Notification",
    "User",
    "UserDepartmentRole",
]
