"""Enums for roles, grievance statuses, ledger entries and notifications."""

from enum import Enum


class Role(str, Enum):
    """
    Portal roles. A user holds a set of these, not a single one.

    - STUDENT: global and implicit; anyone may submit a grievance
    - NODAL_OFFICER: first-line staff, scoped to one department
    - DEPARTMENT_HEAD: elevated officer, same scope as a nodal officer
    - SUPER_ADMIN: global; manages users, roles and analytics
    """

    STUDENT = "student"
    NODAL_OFFICER = "nodal_officer"
    DEPARTMENT_HEAD = "department_head"
    SUPER_ADMIN = "super_admin"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


DEPARTMENT_SCOPED_ROLES = frozenset({Role.NODAL_OFFICER, Role.DEPARTMENT_HEAD})


class GrievanceStatus(str, Enum):
    """Lifecycle states of a grievance. Values are the display labels."""

    SUBMITTED = "Submitted"
    IN_PROGRESS = "In Progress"
    AWAITING_CLARIFICATION = "Awaiting Clarification"
    RESOLVED = "Resolved"
    REJECTED = "Rejected"
    ESCALATED = "Escalated"


TERMINAL_STATUSES = frozenset({GrievanceStatus.RESOLVED, GrievanceStatus.REJECTED})


class UpdateType(str, Enum):
    """Ledger entry kinds."""

    COMMENT = "Comment"
    STATUS_CHANGE = "StatusChange"


class NotificationEvent(str, Enum):
    """Events the dispatcher fans out."""

    COMMENT_ADDED = "comment_added"
    STATUS_CHANGED = "status_changed"


class NotificationType(str, Enum):
    """Types of in-app notifications."""

    GRIEVANCE_COMMENT = "grievance_comment"
    GRIEVANCE_STUDENT_REPLY = "grievance_student_reply"
    GRIEVANCE_STATUS_CHANGED = "grievance_status_changed"
    GRIEVANCE_CLARIFICATION_REQUESTED = "grievance_clarification_requested"
    GRIEVANCE_ESCALATED = "grievance_escalated"
