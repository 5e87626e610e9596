"""Employee ORM model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timeoff.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Employee(Base):
    __tablename__ = "employees"

    employee_id: Mapped[str] = mapped_column(sa.String(20), primary_key=True)
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    department: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    manager_id: Mapped[Optional[str]] = mapped_column(
        sa.String(20), sa.ForeignKey("employees.employee_id"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    manager: Mapped[Optional[Employee]] = relationship(
        remote_side=[employee_id], back_populates="reports"
    )
    reports: Mapped[list[Employee]] = relationship(back_populates="manager")

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Employee {self.employee_id} {self.display_name!r}>"
