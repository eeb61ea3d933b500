"""Common module: shared utilities for LeaveDesk."""

from leavedesk.common.audit import AuditTrail, TimestampMixin, create_audit_entry, utcnow
from leavedesk.common.constants import (
    ACTIVE_LEAVE_STATUSES,
    DATE_FORMAT,
    MANAGER_ROLES,
    ExportFormat,
    LeaveStatus,
    TeamRole,
    TimeRange,
    UserRole,
)
from leavedesk.common.exceptions import (
    AppException,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)

__all__ = [
    # Audit
    "AuditTrail",
    "TimestampMixin",
    "create_audit_entry",
    "utcnow",
    # Constants / Enums
    "ExportFormat",
    "LeaveStatus",
    "TeamRole",
    "TimeRange",
    "UserRole",
    "ACTIVE_LEAVE_STATUSES",
    "DATE_FORMAT",
    "MANAGER_ROLES",
    # Exceptions
    "AppException",
    "ForbiddenException",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
]
