"""Common module: shared utilities for the time-off service."""

from timeoff.common.constants import (
    ACTIVE_LEAVE_STATUSES,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    WEEKEND_DAYS,
    LeaveStatus,
)
from timeoff.common.exceptions import (
    AppException,
    ConflictError,
    InsufficientBalance,
    InvalidDateRange,
    InvalidLeaveType,
    InvalidTransition,
    NotFoundException,
    OverlappingRequest,
    PersistenceConflict,
    ValidationException,
    register_exception_handlers,
)
from timeoff.common.filters import apply_date_window, ilike_any
from timeoff.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Constants / Enums
    "ACTIVE_LEAVE_STATUSES",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "WEEKEND_DAYS",
    "LeaveStatus",
    # Exceptions
    "AppException",
    "ConflictError",
    "InsufficientBalance",
    "InvalidDateRange",
    "InvalidLeaveType",
    "InvalidTransition",
    "NotFoundException",
    "OverlappingRequest",
    "PersistenceConflict",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_date_window",
    "ilike_any",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
