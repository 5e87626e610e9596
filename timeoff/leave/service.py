"""Leave service layer: request lifecycle, balances and decision history.

Business logic:
  - Creation with fail-fast validation (dates → business days → leave type
    → balance → overlap)
  - Approve / reject / cancel through the transition table, with ledger
    debit on approval and credit when an approved request is cancelled
  - Every write runs as one serialized unit per employee (see
    ``timeoff.common.locking``) and commits or rolls back as a whole
  - Read side: request listing for an employee or a manager's reports,
    balances, decision history, business-day preview
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from timeoff.common.constants import LeaveStatus
from timeoff.common.exceptions import (
    ConflictError,
    InsufficientBalance,
    InvalidDateRange,
    InvalidLeaveType,
    NotFoundException,
    OverlappingRequest,
    ValidationException,
)
from timeoff.common.filters import apply_date_window, ilike_any
from timeoff.common.locking import serialized
from timeoff.common.pagination import PaginationParams, paginate
from timeoff.employees.models import Employee
from timeoff.leave.calendar import DateLike, business_days_inclusive, normalize_date
from timeoff.leave.decisions import DecisionLog
from timeoff.leave.ledger import BalanceLedger
from timeoff.leave.models import LeaveRequest, LeaveType
from timeoff.leave.overlap import OverlapIndex
from timeoff.leave.schemas import (
    AvailableBalanceOut,
    BusinessDaysPreview,
    LeaveBalanceOut,
    LeaveDecisionOut,
    LeaveRequestOut,
    LeaveTypeCreate,
    LeaveTypeOut,
)
from timeoff.leave.transitions import ensure_transition

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations: lifecycle transitions, balances, queries."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _lock_employee(
        db: AsyncSession,
        employee_id: str,
    ) -> Employee:
        """Load the employee row FOR UPDATE; serializes writers across processes."""
        result = await db.execute(
            select(Employee)
            .where(Employee.employee_id == employee_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundException("Employee", employee_id)
        return employee

    @staticmethod
    async def _ensure_employee(db: AsyncSession, employee_id: str) -> None:
        found = await db.execute(
            select(Employee.employee_id).where(Employee.employee_id == employee_id)
        )
        if found.scalar() is None:
            raise NotFoundException("Employee", employee_id)

    @staticmethod
    async def _get_leave_type(
        db: AsyncSession,
        code: str,
    ) -> Optional[LeaveType]:
        result = await db.execute(select(LeaveType).where(LeaveType.code == code))
        return result.scalars().first()

    @staticmethod
    async def _load_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> LeaveRequest:
        query = (
            select(LeaveRequest)
            .where(LeaveRequest.id == request_id)
            .options(
                selectinload(LeaveRequest.employee),
                selectinload(LeaveRequest.leave_type),
            )
        )
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(query)
        leave_req = result.scalars().first()
        if leave_req is None:
            raise NotFoundException("LeaveRequest", str(request_id))
        return leave_req

    @staticmethod
    async def _owner_of(db: AsyncSession, request_id: uuid.UUID) -> str:
        """Employee id owning a request; the lock key for its transitions."""
        result = await db.execute(
            select(LeaveRequest.employee_id).where(LeaveRequest.id == request_id)
        )
        owner = result.scalar()
        if owner is None:
            raise NotFoundException("LeaveRequest", str(request_id))
        return owner

    @staticmethod
    def _build_request_response(req: LeaveRequest) -> LeaveRequestOut:
        """Build LeaveRequestOut from ORM; relationships must be loaded."""
        return LeaveRequestOut.model_validate(req)

    @staticmethod
    def _validate_dates(
        employee_id: Optional[str],
        leave_type_code: Optional[str],
        start_date: Optional[DateLike],
        end_date: Optional[DateLike],
    ) -> tuple[date, date, int]:
        """Steps 1–2 of creation: presence, ordering, non-empty range."""
        missing = [
            name
            for name, value in (
                ("employee_id", employee_id),
                ("leave_type_code", leave_type_code),
                ("start_date", start_date),
                ("end_date", end_date),
            )
            if value is None or (isinstance(value, str) and not value.strip())
        ]
        if missing:
            raise ValidationException({name: ["Field is required."] for name in missing})

        start = normalize_date(start_date)
        end = normalize_date(end_date)
        if start > end:
            raise InvalidDateRange("Start date cannot be after end date.")

        days = business_days_inclusive(start, end)
        if days == 0:
            raise InvalidDateRange(
                "No business days found in the selected range "
                "(all days are weekends)."
            )
        return start, end, days

    # ─────────────────────────────────────────────────────────────────
    # Create
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create(
        db: AsyncSession,
        employee_id: str,
        leave_type_code: str,
        start_date: DateLike,
        end_date: DateLike,
        reason: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Submit a leave request in ``pending`` status.

        Validation order (first failure wins):
          1. required fields, start <= end        → InvalidDateRange
          2. at least one business day            → InvalidDateRange
          3. employee exists                      → NotFound
             leave type exists, within its cap    → InvalidLeaveType
          4. days fit the bookable balance        → InsufficientBalance
          5. no pending/approved overlap          → OverlappingRequest
        No balance is debited until approval.
        """
        start, end, days = LeaveService._validate_dates(
            employee_id, leave_type_code, start_date, end_date,
        )

        async def _work(session: AsyncSession) -> LeaveRequestOut:
            employee = await LeaveService._lock_employee(session, employee_id)

            # ── Leave type ──────────────────────────────────────────
            leave_type = await LeaveService._get_leave_type(session, leave_type_code)
            if leave_type is None:
                raise InvalidLeaveType(f"Unknown leave type '{leave_type_code}'.")
            if (
                leave_type.max_days_per_request is not None
                and days > leave_type.max_days_per_request
            ):
                raise InvalidLeaveType(
                    f"{leave_type.code} allows at most "
                    f"{leave_type.max_days_per_request} day(s) per request; "
                    f"{days} requested."
                )

            # ── Balance ─────────────────────────────────────────────
            bookable = await BalanceLedger.bookable(
                session, employee_id, leave_type_code,
            )
            if days > bookable:
                raise InsufficientBalance(available=max(bookable, 0), requested=days)

            # ── Overlap ─────────────────────────────────────────────
            conflicts = await OverlapIndex.find_overlapping(
                session, employee_id, start, end,
            )
            if conflicts:
                raise OverlappingRequest([str(c.id) for c in conflicts])

            leave_request = LeaveRequest(
                employee_id=employee_id,
                leave_type_code=leave_type_code,
                start_date=start,
                end_date=end,
                days_requested=days,
                reason=reason,
                status=LeaveStatus.pending,
                submitted_at=datetime.now(timezone.utc),
                employee=employee,
                leave_type=leave_type,
            )
            session.add(leave_request)
            await session.flush()
            return LeaveService._build_request_response(leave_request)

        result = await serialized(db, employee_id, _work)
        logger.info(
            "Leave request %s submitted by %s: %s %s..%s (%d day(s))",
            result.id, employee_id, leave_type_code, start, end, days,
        )
        return result

    # ─────────────────────────────────────────────────────────────────
    # Approve / Reject / Cancel
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _decide(
        db: AsyncSession,
        request_id: uuid.UUID,
        actor_id: Optional[str],
        target: LeaveStatus,
        comment: Optional[str],
    ) -> LeaveRequestOut:
        """Apply one transition as a single serialized unit of work."""
        owner = await LeaveService._owner_of(db, request_id)

        async def _work(session: AsyncSession) -> LeaveRequestOut:
            await LeaveService._lock_employee(session, owner)
            leave_req = await LeaveService._load_request(
                session, request_id, for_update=True,
            )
            previous = leave_req.status
            ensure_transition(previous, target)

            now = datetime.now(timezone.utc)
            leave_req.status = target
            leave_req.decided_by = actor_id
            leave_req.decided_at = now
            leave_req.decision_comment = comment

            if target == LeaveStatus.approved:
                await BalanceLedger.debit(
                    session,
                    leave_req.employee_id,
                    leave_req.leave_type_code,
                    leave_req.days_requested,
                )
            elif target == LeaveStatus.cancelled and previous == LeaveStatus.approved:
                await BalanceLedger.credit(
                    session,
                    leave_req.employee_id,
                    leave_req.leave_type_code,
                    leave_req.days_requested,
                )

            await session.flush()
            await DecisionLog.append(
                session,
                leave_request=leave_req,
                actor_id=actor_id,
                status=target,
                comment=comment,
                decided_at=now,
            )
            return LeaveService._build_request_response(leave_req)

        result = await serialized(db, owner, _work)
        logger.info(
            "Leave request %s moved to %s by %s", request_id, target.value, actor_id,
        )
        return result

    @staticmethod
    async def approve(
        db: AsyncSession,
        request_id: uuid.UUID,
        approver_id: str,
        comment: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Approve a pending request and debit its days from the balance."""
        return await LeaveService._decide(
            db, request_id, approver_id, LeaveStatus.approved, comment,
        )

    @staticmethod
    async def reject(
        db: AsyncSession,
        request_id: uuid.UUID,
        approver_id: str,
        comment: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Reject a pending request. No balance change."""
        return await LeaveService._decide(
            db, request_id, approver_id, LeaveStatus.rejected, comment,
        )

    @staticmethod
    async def cancel(
        db: AsyncSession,
        request_id: uuid.UUID,
        actor_id: str,
        comment: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Cancel a pending or approved request; approved days are credited back."""
        return await LeaveService._decide(
            db, request_id, actor_id, LeaveStatus.cancelled, comment,
        )

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_request(
        db: AsyncSession,
        request_id: uuid.UUID,
    ) -> LeaveRequestOut:
        leave_req = await LeaveService._load_request(db, request_id)
        return LeaveService._build_request_response(leave_req)

    @staticmethod
    async def get_decisions(
        db: AsyncSession,
        request_id: uuid.UUID,
    ) -> list[LeaveDecisionOut]:
        """Decision history of a request, oldest first."""
        await LeaveService._owner_of(db, request_id)
        entries = await DecisionLog.history(db, request_id)
        return [LeaveDecisionOut.model_validate(e) for e in entries]

    @staticmethod
    async def list_requests(
        db: AsyncSession,
        *,
        employee_id: Optional[str] = None,
        manager_id: Optional[str] = None,
        status: Optional[LeaveStatus] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        search: Optional[str] = None,
        params: Optional[PaginationParams] = None,
    ) -> dict:
        """List leave requests for one employee or a manager's direct reports.

        Date filters keep requests whose range intersects the window.
        ``search`` matches employee name/id/email, leave type code or
        description, and the request reason.
        """
        if not employee_id and not manager_id:
            raise ValidationException(
                {"scope": ["Provide employee_id or manager_id."]}
            )
        if params is None:
            params = PaginationParams(page=1, page_size=50, sort=None)

        query = (
            select(LeaveRequest)
            .options(
                selectinload(LeaveRequest.employee),
                selectinload(LeaveRequest.leave_type),
            )
            .order_by(LeaveRequest.submitted_at.desc())
        )

        if employee_id:
            query = query.where(LeaveRequest.employee_id == employee_id)
        if manager_id:
            query = query.where(
                LeaveRequest.employee_id.in_(
                    select(Employee.employee_id).where(Employee.manager_id == manager_id)
                )
            )
        if status:
            query = query.where(LeaveRequest.status == status)
        query = apply_date_window(
            query, LeaveRequest.start_date, LeaveRequest.end_date, from_date, to_date,
        )

        employee_match = ilike_any(
            search,
            [Employee.first_name, Employee.last_name, Employee.employee_id, Employee.email],
        )
        if employee_match is not None:
            type_match = ilike_any(search, [LeaveType.code, LeaveType.description])
            reason_match = ilike_any(search, [LeaveRequest.reason])
            query = query.where(
                LeaveRequest.employee_id.in_(
                    select(Employee.employee_id).where(employee_match)
                )
                | LeaveRequest.leave_type_code.in_(
                    select(LeaveType.code).where(type_match)
                )
                | reason_match
            )

        rows, meta = await paginate(db, query, params, model=LeaveRequest)
        return {
            "data": [LeaveService._build_request_response(r) for r in rows],
            "meta": meta,
        }

    # ─────────────────────────────────────────────────────────────────
    # Balances
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_available_balance(
        db: AsyncSession,
        employee_id: str,
        leave_type_code: str,
    ) -> AvailableBalanceOut:
        """Accrued minus used; 0 when the pair has no balance row."""
        await LeaveService._ensure_employee(db, employee_id)
        if await LeaveService._get_leave_type(db, leave_type_code) is None:
            raise NotFoundException("LeaveType", leave_type_code)

        available = await BalanceLedger.available(db, employee_id, leave_type_code)
        return AvailableBalanceOut(
            employee_id=employee_id,
            leave_type_code=leave_type_code,
            available_days=available,
        )

    @staticmethod
    async def get_balances(
        db: AsyncSession,
        employee_id: str,
    ) -> list[LeaveBalanceOut]:
        """All balances of an employee with pending and bookable projections."""
        await LeaveService._ensure_employee(db, employee_id)

        output: list[LeaveBalanceOut] = []
        for row, pending in await BalanceLedger.balances_for(db, employee_id):
            out = LeaveBalanceOut.model_validate(row)
            out.pending_days = pending
            out.bookable_days = row.available_days - pending
            output.append(out)
        return output

    @staticmethod
    async def grant_balance(
        db: AsyncSession,
        employee_id: str,
        leave_type_code: str,
        accrued_days: int,
    ) -> LeaveBalanceOut:
        """Record the accrued total for a pair (external accrual input)."""

        async def _work(session: AsyncSession) -> LeaveBalanceOut:
            await LeaveService._lock_employee(session, employee_id)
            if await LeaveService._get_leave_type(session, leave_type_code) is None:
                raise NotFoundException("LeaveType", leave_type_code)

            row = await BalanceLedger.grant(
                session, employee_id, leave_type_code, accrued_days,
            )
            pending = await BalanceLedger.pending_days(
                session, employee_id, leave_type_code,
            )
            out = LeaveBalanceOut.model_validate(row)
            out.pending_days = pending
            out.bookable_days = row.available_days - pending
            return out

        return await serialized(db, employee_id, _work)

    # ─────────────────────────────────────────────────────────────────
    # Leave Types
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_leave_types(db: AsyncSession) -> list[LeaveTypeOut]:
        result = await db.execute(select(LeaveType).order_by(LeaveType.code))
        return [LeaveTypeOut.model_validate(lt) for lt in result.scalars().all()]

    @staticmethod
    async def create_leave_type(
        db: AsyncSession,
        data: LeaveTypeCreate,
    ) -> LeaveTypeOut:
        code = data.code.strip().upper()
        if await LeaveService._get_leave_type(db, code) is not None:
            raise ConflictError("code", code)

        leave_type = LeaveType(
            code=code,
            description=data.description,
            max_days_per_request=data.max_days_per_request,
        )
        db.add(leave_type)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("code", code)
        return LeaveTypeOut.model_validate(leave_type)

    # ─────────────────────────────────────────────────────────────────
    # Preview
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def preview_days(start_date: DateLike, end_date: DateLike) -> BusinessDaysPreview:
        """Business days a request over the range would consume."""
        start = normalize_date(start_date)
        end = normalize_date(end_date)
        return BusinessDaysPreview(
            start_date=start,
            end_date=end,
            business_days=business_days_inclusive(start, end),
        )
