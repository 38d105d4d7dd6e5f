"""Grievance access control - centralized permission checks.

Access is decided per request from a Capabilities snapshot built from a fresh
read of the user's role assignments (never from the token payload):

- Owner (submitter): read; write limited to comments (which may trigger the
  clarification reopen). No status changes.
- nodal_officer / department_head of the grievance's assigned department:
  read + write + status changes.
- super_admin: read + write + status changes everywhere.
- Anyone else: nothing. Reads raise NotAuthorized, writes raise Forbidden.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol
from uuid import UUID

from grievance_api.core.errors import Forbidden, NotAuthorized
from grievance_api.db.enums import DEPARTMENT_SCOPED_ROLES, Role


class _Assignment(Protocol):
    role: str
    department_id: int | None


class _GrievanceLike(Protocol):
    submitted_by_id: UUID

    @property
    def department_id(self) -> int | None: ...


@dataclass(frozen=True)
class Capabilities:
    """What a user may do, resolved once per request."""

    user_id: UUID
    is_super_admin: bool = False
    officer_department_ids: frozenset[int] = frozenset()
    head_department_ids: frozenset[int] = frozenset()

    @property
    def is_officer(self) -> bool:
        """Any officer-level standing (nodal, head, or admin)."""
        return self.is_super_admin or bool(self.officer_department_ids)

    def is_officer_for(self, department_id: int | None) -> bool:
        return department_id is not None and department_id in self.officer_department_ids


def capabilities_from_assignments(
    user_id: UUID, assignments: Iterable[_Assignment]
) -> Capabilities:
    """Fold role assignments into a Capabilities snapshot."""
    is_super_admin = False
    officer_departments: set[int] = set()
    head_departments: set[int] = set()

    for assignment in assignments:
        if not Role.has_value(assignment.role):
            continue
        role = Role(assignment.role)
        if role == Role.SUPER_ADMIN:
            is_super_admin = True
        elif role in DEPARTMENT_SCOPED_ROLES and assignment.department_id is not None:
            officer_departments.add(assignment.department_id)
            if role == Role.DEPARTMENT_HEAD:
                head_departments.add(assignment.department_id)

    return Capabilities(
        user_id=user_id,
        is_super_admin=is_super_admin,
        officer_department_ids=frozenset(officer_departments),
        head_department_ids=frozenset(head_departments),
    )


@dataclass(frozen=True)
class AccessDecision:
    read: bool
    write: bool
    can_change_status: bool
    is_owner: bool


NO_ACCESS = AccessDecision(read=False, write=False, can_change_status=False, is_owner=False)


def can_access(caps: Capabilities, grievance: _GrievanceLike) -> AccessDecision:
    """Pure decision function: no side effects, no caching."""
    is_owner = grievance.submitted_by_id == caps.user_id
    is_staff = caps.is_super_admin or caps.is_officer_for(grievance.department_id)

    if is_staff:
        return AccessDecision(read=True, write=True, can_change_status=True, is_owner=is_owner)
    if is_owner:
        return AccessDecision(read=True, write=True, can_change_status=False, is_owner=True)
    return NO_ACCESS


def check_read(caps: Capabilities, grievance: _GrievanceLike) -> AccessDecision:
    """Raise NotAuthorized unless the user may read the grievance."""
    decision = can_access(caps, grievance)
    if not decision.read:
        raise NotAuthorized()
    return decision


def check_comment(caps: Capabilities, grievance: _GrievanceLike) -> AccessDecision:
    """Raise Forbidden unless the user may append a comment."""
    decision = can_access(caps, grievance)
    if not decision.write:
        raise Forbidden("You are not authorized to comment on this grievance")
    return decision


def check_status_change(caps: Capabilities, grievance: _GrievanceLike) -> AccessDecision:
    """Raise Forbidden unless the user may transition the grievance."""
    decision = can_access(caps, grievance)
    if not decision.can_change_status:
        raise Forbidden("Only officers of the assigned department can change the status")
    return decision


def role_label_for(
    caps: Capabilities, grievance: _GrievanceLike, status_change: bool = False
) -> str:
    """
    Role the user acts under on this grievance (snapshotted into the ledger).

    The submitter comments as a student. Status changes are only made under a
    staff role, so they carry that label even on the actor's own grievance.
    """
    department_id = grievance.department_id
    if not status_change and grievance.submitted_by_id == caps.user_id:
        return Role.STUDENT.value
    if department_id is not None and department_id in caps.head_department_ids:
        return Role.DEPARTMENT_HEAD.value
    if caps.is_officer_for(department_id):
        return Role.NODAL_OFFICER.value
    if caps.is_super_admin:
        return Role.SUPER_ADMIN.value
    return Role.STUDENT.value
