"""Leave ORM models: LeaveType, LeaveBalance, LeaveRequest, LeaveDecision."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timeoff.common.constants import LeaveStatus
from timeoff.database import Base
from timeoff.employees.models import Employee


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeaveType(Base):
    __tablename__ = "leave_types"

    code: Mapped[str] = mapped_column(sa.String(10), primary_key=True)
    description: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    max_days_per_request: Mapped[Optional[int]] = mapped_column(sa.Integer)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow
    )

    # Relationships
    balances: Mapped[list[LeaveBalance]] = relationship(back_populates="leave_type")
    requests: Mapped[list[LeaveRequest]] = relationship(back_populates="leave_type")


class LeaveBalance(Base):
    __tablename__ = "leave_balances"
    __table_args__ = (
        sa.UniqueConstraint(
            "employee_id", "leave_type_code", name="uq_leave_balance"
        ),
        sa.CheckConstraint("used_days >= 0", name="ck_leave_balance_used_non_negative"),
        sa.CheckConstraint(
            "used_days <= accrued_days", name="ck_leave_balance_used_within_accrued"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[str] = mapped_column(
        sa.String(20), sa.ForeignKey("employees.employee_id"), nullable=False
    )
    leave_type_code: Mapped[str] = mapped_column(
        sa.String(10), sa.ForeignKey("leave_types.code"), nullable=False
    )
    accrued_days: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    used_days: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    # Bumped on every UPDATE; a mismatch raises StaleDataError (lost update)
    version: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    employee: Mapped[Employee] = relationship()
    leave_type: Mapped[LeaveType] = relationship(back_populates="balances")

    @property
    def available_days(self) -> int:
        return self.accrued_days - self.used_days


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.Index("ix_leave_requests_employee_status", "employee_id", "status"),
        sa.CheckConstraint("start_date <= end_date", name="ck_leave_request_dates"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[str] = mapped_column(
        sa.String(20), sa.ForeignKey("employees.employee_id"), nullable=False
    )
    leave_type_code: Mapped[str] = mapped_column(
        sa.String(10), sa.ForeignKey("leave_types.code"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    days_requested: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status"),
        nullable=False,
        default=LeaveStatus.pending,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow
    )
    decided_by: Mapped[Optional[str]] = mapped_column(sa.String(20))
    decided_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    decision_comment: Mapped[Optional[str]] = mapped_column(sa.Text)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    employee: Mapped[Employee] = relationship(foreign_keys=[employee_id])
    leave_type: Mapped[LeaveType] = relationship(back_populates="requests")
    decisions: Mapped[list[LeaveDecision]] = relationship(
        back_populates="leave_request", order_by="LeaveDecision.decided_at"
    )


class LeaveDecision(Base):
    """One row per approve / reject / cancel; never updated or deleted."""

    __tablename__ = "leave_decisions"
    __table_args__ = (
        sa.Index("ix_leave_decisions_request", "leave_request_id", "decided_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    leave_request_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("leave_requests.id"), nullable=False
    )
    actor_id: Mapped[Optional[str]] = mapped_column(sa.String(20))
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status"), nullable=False
    )
    comment: Mapped[Optional[str]] = mapped_column(sa.Text)
    decided_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow
    )

    # Relationships
    leave_request: Mapped[LeaveRequest] = relationship(back_populates="decisions")

    def __repr__(self) -> str:
        return (
            f"<LeaveDecision {self.status.value} on {self.leave_request_id}"
            f" by {self.actor_id}>"
        )


@event.listens_for(LeaveDecision, "before_update")
def _refuse_decision_update(mapper, connection, target: LeaveDecision) -> None:
    raise ValueError("Leave decisions are append-only and cannot be modified.")


@event.listens_for(LeaveDecision, "before_delete")
def _refuse_decision_delete(mapper, connection, target: LeaveDecision) -> None:
    raise ValueError("Leave decisions are append-only and cannot be deleted.")
