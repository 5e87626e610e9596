"""Balance ledger: sole owner of accrued/used day counts.

Policy: ``used_days`` moves only when a request is approved (debit) or an
approved request is cancelled (credit). Pending requests do not touch the
row, but they hold days: a new request may only book what is left after
them (``bookable``), which keeps every later approval within ``accrued``.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.common.constants import LeaveStatus
from timeoff.common.exceptions import InsufficientBalance, ValidationException
from timeoff.leave.models import LeaveBalance, LeaveRequest

logger = logging.getLogger(__name__)


class BalanceLedger:
    """Async balance bookkeeping per (employee, leave type)."""

    # ─────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_row(
        db: AsyncSession,
        employee_id: str,
        leave_type_code: str,
        *,
        for_update: bool = False,
    ) -> Optional[LeaveBalance]:
        query = select(LeaveBalance).where(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type_code == leave_type_code,
        )
        if for_update:
            # populate_existing: a retried unit must see the committed row
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def available(
        db: AsyncSession,
        employee_id: str,
        leave_type_code: str,
    ) -> int:
        """``accrued - used`` for the pair; 0 when no balance was granted."""
        row = await BalanceLedger.get_row(db, employee_id, leave_type_code)
        return row.available_days if row else 0

    @staticmethod
    async def pending_days(
        db: AsyncSession,
        employee_id: str,
        leave_type_code: str,
    ) -> int:
        """Sum of days_requested over the pair's pending requests."""
        result = await db.execute(
            select(func.coalesce(func.sum(LeaveRequest.days_requested), 0)).where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.leave_type_code == leave_type_code,
                LeaveRequest.status == LeaveStatus.pending,
            )
        )
        return int(result.scalar_one())

    @staticmethod
    async def bookable(
        db: AsyncSession,
        employee_id: str,
        leave_type_code: str,
    ) -> int:
        """Days a new request may still claim: available minus pending."""
        available = await BalanceLedger.available(db, employee_id, leave_type_code)
        pending = await BalanceLedger.pending_days(db, employee_id, leave_type_code)
        return available - pending

    @staticmethod
    async def balances_for(
        db: AsyncSession,
        employee_id: str,
    ) -> list[tuple[LeaveBalance, int]]:
        """All balance rows of an employee paired with their pending days."""
        rows = (
            await db.execute(
                select(LeaveBalance)
                .where(LeaveBalance.employee_id == employee_id)
                .order_by(LeaveBalance.leave_type_code)
            )
        ).scalars().all()

        pending_result = await db.execute(
            select(
                LeaveRequest.leave_type_code,
                func.sum(LeaveRequest.days_requested),
            )
            .where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.status == LeaveStatus.pending,
            )
            .group_by(LeaveRequest.leave_type_code)
        )
        pending_by_type = {code: int(total) for code, total in pending_result.all()}

        return [(row, pending_by_type.get(row.leave_type_code, 0)) for row in rows]

    # ─────────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def debit(
        db: AsyncSession,
        employee_id: str,
        leave_type_code: str,
        days: int,
    ) -> LeaveBalance:
        """Consume *days* on approval. Refuses to push used past accrued."""
        row = await BalanceLedger.get_row(
            db, employee_id, leave_type_code, for_update=True,
        )
        if row is None:
            raise InsufficientBalance(available=0, requested=days)
        if row.used_days + days > row.accrued_days:
            raise InsufficientBalance(available=row.available_days, requested=days)

        row.used_days += days
        await db.flush()
        logger.debug(
            "Debited %d day(s) from %s/%s (used=%d, accrued=%d)",
            days, employee_id, leave_type_code, row.used_days, row.accrued_days,
        )
        return row

    @staticmethod
    async def credit(
        db: AsyncSession,
        employee_id: str,
        leave_type_code: str,
        days: int,
    ) -> Optional[LeaveBalance]:
        """Return *days* after an approved request is cancelled."""
        row = await BalanceLedger.get_row(
            db, employee_id, leave_type_code, for_update=True,
        )
        if row is None:
            logger.warning(
                "No balance row for %s/%s while crediting %d day(s)",
                employee_id, leave_type_code, days,
            )
            return None

        if days > row.used_days:
            logger.warning(
                "Credit of %d day(s) exceeds used=%d for %s/%s; clamping to zero",
                days, row.used_days, employee_id, leave_type_code,
            )
            row.used_days = 0
        else:
            row.used_days -= days
        await db.flush()
        return row

    @staticmethod
    async def grant(
        db: AsyncSession,
        employee_id: str,
        leave_type_code: str,
        accrued_days: int,
    ) -> LeaveBalance:
        """Set the accrued total for a pair, creating the row if needed."""
        if accrued_days < 0:
            raise ValidationException(
                {"accrued_days": ["Accrued days cannot be negative."]}
            )

        row = await BalanceLedger.get_row(
            db, employee_id, leave_type_code, for_update=True,
        )
        if row is None:
            row = LeaveBalance(
                employee_id=employee_id,
                leave_type_code=leave_type_code,
                accrued_days=accrued_days,
                used_days=0,
            )
            db.add(row)
        else:
            if accrued_days < row.used_days:
                raise ValidationException(
                    {"accrued_days": [
                        f"Accrued days cannot be set below the {row.used_days} "
                        "day(s) already used."
                    ]}
                )
            row.accrued_days = accrued_days

        await db.flush()
        logger.info(
            "Granted %s/%s accrued=%d", employee_id, leave_type_code, accrued_days,
        )
        return row
