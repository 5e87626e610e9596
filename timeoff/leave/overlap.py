"""Overlap detection between a candidate range and an employee's live requests."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional, Sequence

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.common.constants import ACTIVE_LEAVE_STATUSES
from timeoff.leave.models import LeaveRequest


class OverlapIndex:
    """Pending and approved requests block their dates; nothing else does."""

    @staticmethod
    def _conflicts(
        employee_id: str,
        start: date,
        end: date,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> Select:
        query = select(LeaveRequest).where(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status.in_(ACTIVE_LEAVE_STATUSES),
            LeaveRequest.start_date <= end,
            LeaveRequest.end_date >= start,
        )
        if exclude_id is not None:
            query = query.where(LeaveRequest.id != exclude_id)
        return query

    @staticmethod
    async def has_overlap(
        db: AsyncSession,
        employee_id: str,
        start: date,
        end: date,
        *,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        query = OverlapIndex._conflicts(employee_id, start, end, exclude_id)
        result = await db.execute(select(query.exists()))
        return bool(result.scalar())

    @staticmethod
    async def find_overlapping(
        db: AsyncSession,
        employee_id: str,
        start: date,
        end: date,
        *,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> Sequence[LeaveRequest]:
        query = OverlapIndex._conflicts(employee_id, start, end, exclude_id)
        result = await db.execute(query.order_by(LeaveRequest.start_date))
        return result.scalars().all()
