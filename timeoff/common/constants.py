"""Enums and constants for the time-off service: matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


# Statuses that hold calendar days and count against overlap checks
ACTIVE_LEAVE_STATUSES: tuple[LeaveStatus, ...] = (
    LeaveStatus.pending,
    LeaveStatus.approved,
)


# ── Misc constants ──────────────────────────────────────────────────

WEEKEND_DAYS: frozenset[int] = frozenset({5, 6})   # Sat, Sun (date.weekday())
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
EMPLOYEE_ID_PREFIX = "E"
FIRST_EMPLOYEE_NUMBER = 1001
