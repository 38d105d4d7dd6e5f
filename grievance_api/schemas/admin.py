"""Schemas for user, role and department administration."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from grievance_api.db.enums import Role
from grievance_api.schemas.auth import RoleAssignmentRead


class UserCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)
    role: Role | None = None
    department_id: int | None = None


class UserRead(BaseModel):
    id: UUID
    email: str
    full_name: str
    is_active: bool
    created_at: datetime
    roles: list[RoleAssignmentRead] = []


class AssignRoleRequest(BaseModel):
    user_id: UUID
    role: Role
    department_id: int | None = None


class RoleAssignmentCreated(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: UUID
    role: str
    department_id: int | None


class DepartmentRead(BaseModel):
    id: int
    name: str
    categories: list[str]
