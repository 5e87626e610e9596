"""Leave router: submit, approve/reject/cancel, listings, balances, leave types.

Authentication is handled upstream; acting employee ids arrive in the body.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.common.constants import LeaveStatus
from timeoff.common.pagination import PaginatedResponse, PaginationParams
from timeoff.common.rate_limit import limiter
from timeoff.config import settings
from timeoff.database import get_db
from timeoff.leave.schemas import (
    AvailableBalanceOut,
    BalanceGrantRequest,
    BusinessDaysPreview,
    LeaveApproveRequest,
    LeaveBalanceOut,
    LeaveCancelRequest,
    LeaveDecisionOut,
    LeaveRejectRequest,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveTypeCreate,
    LeaveTypeOut,
)
from timeoff.leave.service import LeaveService

router = APIRouter(prefix="", tags=["leave"])


# ── POST /requests ──────────────────────────────────────────────────

@router.post("/requests", response_model=LeaveRequestOut, status_code=201)
@limiter.limit(settings.RATE_LIMIT_SUBMIT)
async def create_leave_request(
    request: Request,
    body: LeaveRequestCreate,
    db: AsyncSession = Depends(get_db),
):
    """Submit a leave request. Validates range, leave type, balance and overlap."""
    return await LeaveService.create(
        db,
        body.employee_id,
        body.leave_type_code,
        body.start_date,
        body.end_date,
        body.reason,
    )


# ── GET /requests ───────────────────────────────────────────────────

@router.get("/requests", response_model=PaginatedResponse[LeaveRequestOut])
async def list_leave_requests(
    employee_id: Optional[str] = Query(None),
    manager_id: Optional[str] = Query(None, description="Requests of this manager's direct reports"),
    status: Optional[LeaveStatus] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """List requests for an employee or a manager's team, newest first."""
    return await LeaveService.list_requests(
        db,
        employee_id=employee_id,
        manager_id=manager_id,
        status=status,
        from_date=from_date,
        to_date=to_date,
        search=search,
        params=pagination,
    )


# ── GET /requests/{id} ──────────────────────────────────────────────

@router.get("/requests/{request_id}", response_model=LeaveRequestOut)
async def get_leave_request(
    request_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_request(db, request_id)


# ── GET /requests/{id}/decisions ────────────────────────────────────

@router.get("/requests/{request_id}/decisions", response_model=list[LeaveDecisionOut])
async def get_leave_decisions(
    request_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Full approve/reject/cancel history of a request, oldest first."""
    return await LeaveService.get_decisions(db, request_id)


# ── PUT /requests/{id}/approve ──────────────────────────────────────

@router.put("/requests/{request_id}/approve", response_model=LeaveRequestOut)
async def approve_leave_request(
    request_id: uuid.UUID,
    body: LeaveApproveRequest,
    db: AsyncSession = Depends(get_db),
):
    """Approve a pending leave request. Deducts from balance."""
    return await LeaveService.approve(db, request_id, body.approver_id, body.comment)


# ── PUT /requests/{id}/reject ───────────────────────────────────────

@router.put("/requests/{request_id}/reject", response_model=LeaveRequestOut)
async def reject_leave_request(
    request_id: uuid.UUID,
    body: LeaveRejectRequest,
    db: AsyncSession = Depends(get_db),
):
    """Reject a pending leave request."""
    return await LeaveService.reject(db, request_id, body.approver_id, body.comment)


# ── PUT /requests/{id}/cancel ───────────────────────────────────────

@router.put("/requests/{request_id}/cancel", response_model=LeaveRequestOut)
async def cancel_leave_request(
    request_id: uuid.UUID,
    body: LeaveCancelRequest,
    db: AsyncSession = Depends(get_db),
):
    """Cancel a pending or approved request. Restores balance if it was approved."""
    return await LeaveService.cancel(db, request_id, body.actor_id, body.comment)


# ── GET /preview ────────────────────────────────────────────────────

@router.get("/preview", response_model=BusinessDaysPreview)
async def preview_business_days(
    start_date: date = Query(...),
    end_date: date = Query(...),
):
    """Business days a request over the range would consume."""
    return LeaveService.preview_days(start_date, end_date)


# ── GET /balances/{employee_id} ─────────────────────────────────────

@router.get("/balances/{employee_id}", response_model=list[LeaveBalanceOut])
async def get_balances(
    employee_id: str,
    db: AsyncSession = Depends(get_db),
):
    """All balances of an employee with pending and bookable projections."""
    return await LeaveService.get_balances(db, employee_id)


# ── GET /balances/{employee_id}/{code} ──────────────────────────────

@router.get("/balances/{employee_id}/{leave_type_code}", response_model=AvailableBalanceOut)
async def get_available_balance(
    employee_id: str,
    leave_type_code: str,
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_available_balance(db, employee_id, leave_type_code)


# ── PUT /balances/{employee_id}/{code} ──────────────────────────────

@router.put("/balances/{employee_id}/{leave_type_code}", response_model=LeaveBalanceOut)
async def grant_balance(
    employee_id: str,
    leave_type_code: str,
    body: BalanceGrantRequest,
    db: AsyncSession = Depends(get_db),
):
    """Set the accrued days for an employee and leave type."""
    return await LeaveService.grant_balance(
        db, employee_id, leave_type_code, body.accrued_days,
    )


# ── GET /types ──────────────────────────────────────────────────────

@router.get("/types", response_model=list[LeaveTypeOut])
async def get_leave_types(db: AsyncSession = Depends(get_db)):
    """List leave types."""
    return await LeaveService.get_leave_types(db)


# ── POST /types ─────────────────────────────────────────────────────

@router.post("/types", response_model=LeaveTypeOut, status_code=201)
async def create_leave_type(
    body: LeaveTypeCreate,
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.create_leave_type(db, body)
