"""Append-only log of approve / reject / cancel decisions."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.common.constants import LeaveStatus
from timeoff.leave.models import LeaveDecision, LeaveRequest


class DecisionLog:
    """Full decision history per request; the request row keeps only the latest."""

    @staticmethod
    async def append(
        db: AsyncSession,
        *,
        leave_request: LeaveRequest,
        actor_id: Optional[str],
        status: LeaveStatus,
        comment: Optional[str],
        decided_at: datetime,
    ) -> LeaveDecision:
        """
        Create and flush a decision entry.

        Args:
            db: Async SQLAlchemy session (the caller's unit of work).
            leave_request: The request the decision applies to.
            actor_id: Employee who decided; None when unknown.
            status: Status the request moved to.
            comment: Free-text remark from the actor.
            decided_at: Timestamp shared with the request's decision fields.
        """
        entry = LeaveDecision(
            leave_request_id=leave_request.id,
            actor_id=actor_id,
            status=status,
            comment=comment,
            decided_at=decided_at,
        )
        db.add(entry)
        await db.flush()
        return entry

    @staticmethod
    async def history(
        db: AsyncSession,
        leave_request_id: uuid.UUID,
    ) -> Sequence[LeaveDecision]:
        """Decisions for one request, oldest first."""
        result = await db.execute(
            select(LeaveDecision)
            .where(LeaveDecision.leave_request_id == leave_request_id)
            .order_by(LeaveDecision.decided_at.asc())
        )
        return result.scalars().all()
