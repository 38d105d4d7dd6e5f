"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from grievance_api.core.access import Capabilities


class RoleAssignmentRead(BaseModel):
    """One role held by a user, as carried in tokens and /auth/me."""
    role_name: str
    department_id: int | None = None
    department_name: str | None = None


class UserSession(BaseModel):
    """
    Full session context for authenticated requests.

    Returned by the get_current_session dependency. capabilities is resolved
    from the database on every request.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    user_id: UUID
    email: str
    full_name: str
    capabilities: Capabilities


class MeResponse(BaseModel):
    """Response schema for GET /auth/me endpoint."""
    user_id: UUID
    email: str
    full_name: str
    is_active: bool
    roles: list[RoleAssignmentRead]
