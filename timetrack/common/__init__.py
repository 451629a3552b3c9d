"""Common module — shared utilities for ZMI Time."""

from timetrack.common.audit import AuditLog, create_audit_entry, snapshot
from timetrack.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    MIN_REASON_LENGTH,
    PERMISSIONS,
    TENANT_HEADER,
    UserRole,
)
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import (
    AppException,
    BadRequestException,
    ConflictError,
    ForbiddenException,
    InUseError,
    InvalidStateError,
    MonthClosedError,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)
from timetrack.common.filters import apply_filters, apply_search, apply_sorting
from timetrack.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Audit
    "AuditLog",
    "create_audit_entry",
    "snapshot",
    # Constants / Enums
    "UserRole",
    "PERMISSIONS",
    "TENANT_HEADER",
    "MIN_REASON_LENGTH",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Context
    "RequestContext",
    # Exceptions
    "AppException",
    "BadRequestException",
    "ConflictError",
    "ForbiddenException",
    "InUseError",
    "InvalidStateError",
    "MonthClosedError",
    "NotFoundException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_search",
    "apply_sorting",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
