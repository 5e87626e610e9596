"""Leave Pydantic v2 schemas: request / response validation.

Naming conventions:
  - *Create / *Request  → request bodies (write)
  - *Out                → response bodies (read)
  - *Brief              → compact embedded representations
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from timeoff.common.constants import LeaveStatus
from timeoff.employees.schemas import EmployeeBrief


# ═════════════════════════════════════════════════════════════════════
# Leave Type
# ═════════════════════════════════════════════════════════════════════


class LeaveTypeBrief(BaseModel):
    """Minimal leave type info embedded in leave responses."""

    model_config = ConfigDict(from_attributes=True)

    code: str
    description: str


class LeaveTypeOut(BaseModel):
    """Full leave type representation."""

    model_config = ConfigDict(from_attributes=True)

    code: str
    description: str
    max_days_per_request: Optional[int] = None
    created_at: datetime


class LeaveTypeCreate(BaseModel):
    """Reference-data seeding payload."""

    code: str = Field(..., min_length=1, max_length=10)
    description: str = Field(..., min_length=1, max_length=200)
    max_days_per_request: Optional[int] = Field(None, ge=1)


# ═════════════════════════════════════════════════════════════════════
# Leave Balance
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceOut(BaseModel):
    """Balance for a single leave type with read-time projections."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    leave_type_code: str
    accrued_days: int
    used_days: int
    available_days: int

    # Computed by the service, not stored
    pending_days: int = 0
    bookable_days: int = 0


class AvailableBalanceOut(BaseModel):
    employee_id: str
    leave_type_code: str
    available_days: int


class BalanceGrantRequest(BaseModel):
    """External accrual input: the total days granted for the pair."""

    accrued_days: int = Field(..., ge=0)


# ═════════════════════════════════════════════════════════════════════
# Leave Request: Create
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for submitting a leave request.

    Date ordering is checked by the lifecycle, not here, so that it is
    reported as an invalid date range.
    """

    employee_id: str = Field(..., min_length=1, max_length=20)
    leave_type_code: str = Field(..., min_length=1, max_length=10)
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    reason: Optional[str] = Field(None, max_length=1000, description="Reason for leave")


# ═════════════════════════════════════════════════════════════════════
# Leave Request: Response
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Full leave request response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: str
    leave_type_code: str
    start_date: date
    end_date: date
    days_requested: int
    reason: Optional[str] = None
    status: LeaveStatus
    submitted_at: datetime
    decided_by: Optional[str] = None
    decided_at: Optional[datetime] = None
    decision_comment: Optional[str] = None

    # Enriched by service
    employee: Optional[EmployeeBrief] = None
    leave_type: Optional[LeaveTypeBrief] = None


class LeaveDecisionOut(BaseModel):
    """One entry of a request's decision history."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    leave_request_id: uuid.UUID
    actor_id: Optional[str] = None
    status: LeaveStatus
    comment: Optional[str] = None
    decided_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Leave Approve / Reject / Cancel
# ═════════════════════════════════════════════════════════════════════


class LeaveApproveRequest(BaseModel):
    """Payload for approving a leave request."""

    approver_id: str = Field(..., min_length=1, max_length=20)
    comment: Optional[str] = Field(None, max_length=500)


class LeaveRejectRequest(BaseModel):
    """Payload for rejecting a leave request."""

    approver_id: str = Field(..., min_length=1, max_length=20)
    comment: Optional[str] = Field(None, max_length=500)


class LeaveCancelRequest(BaseModel):
    """Payload for cancelling a leave request."""

    actor_id: str = Field(..., min_length=1, max_length=20)
    comment: Optional[str] = Field(None, max_length=500)


# ═════════════════════════════════════════════════════════════════════
# Preview
# ═════════════════════════════════════════════════════════════════════


class BusinessDaysPreview(BaseModel):
    """Expected day count shown before submission."""

    start_date: date
    end_date: date
    business_days: int
