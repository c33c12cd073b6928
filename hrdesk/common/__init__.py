"""Common module — shared utilities for hrdesk."""

from hrdesk.common.constants import (
    DEFAULT_PAGE_SIZE,
    EMPLOYEE_CODE_PREFIX,
    LEAVE_ALLOTMENTS,
    MAX_PAGE_SIZE,
    EmploymentStatus,
    LeaveStatus,
    LeaveType,
    UserRole,
)
from hrdesk.common.exceptions import (
    AppException,
    AuthenticationException,
    ConflictError,
    ForbiddenException,
    InvalidStateTransitionException,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)
from hrdesk.common.filters import apply_filters, apply_search, apply_sorting
from hrdesk.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Constants / Enums
    "EmploymentStatus",
    "LeaveStatus",
    "LeaveType",
    "UserRole",
    "LEAVE_ALLOTMENTS",
    "EMPLOYEE_CODE_PREFIX",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "AuthenticationException",
    "ConflictError",
    "ForbiddenException",
    "InvalidStateTransitionException",
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
