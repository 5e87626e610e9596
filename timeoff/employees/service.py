"""Employee service layer: registration, lookup, name/manager updates.

Uses:
  - ``serialized()`` from timeoff.common.locking for id generation
  - ``NotFoundException / ConflictError / ValidationException`` from
    timeoff.common.exceptions
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.common.constants import EMPLOYEE_ID_PREFIX, FIRST_EMPLOYEE_NUMBER
from timeoff.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from timeoff.common.locking import serialized
from timeoff.config import settings
from timeoff.employees.models import Employee
from timeoff.employees.schemas import EmployeeCreate, EmployeeOut, EmployeeUpdate

logger = logging.getLogger(__name__)

# Registrations share one lock so generated ids never collide in-process
_REGISTRATION_KEY = "employee-registration"


# ═════════════════════════════════════════════════════════════════════
# EmployeeService
# ═════════════════════════════════════════════════════════════════════


class EmployeeService:
    """Async operations on employee records."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    async def _get(db: AsyncSession, employee_id: str) -> Employee:
        result = await db.execute(
            select(Employee).where(Employee.employee_id == employee_id)
        )
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundException("Employee", employee_id)
        return employee

    @staticmethod
    async def _next_employee_id(db: AsyncSession) -> str:
        """Next ``E<n>`` id after the highest numeric one in use."""
        result = await db.execute(
            select(Employee.employee_id).where(
                Employee.employee_id.like(f"{EMPLOYEE_ID_PREFIX}%")
            )
        )
        numbers = [
            int(eid[len(EMPLOYEE_ID_PREFIX):])
            for eid in result.scalars().all()
            if eid[len(EMPLOYEE_ID_PREFIX):].isdigit()
        ]
        next_number = max(numbers) + 1 if numbers else FIRST_EMPLOYEE_NUMBER
        return f"{EMPLOYEE_ID_PREFIX}{next_number:04d}"

    @staticmethod
    async def _check_manager(
        db: AsyncSession,
        employee_id: Optional[str],
        manager_id: str,
    ) -> None:
        """Manager must exist and must not make the reporting line circular."""
        if employee_id is not None and manager_id == employee_id:
            raise ValidationException(
                {"manager_id": ["An employee cannot be their own manager."]}
            )

        manager = await EmployeeService._get(db, manager_id)
        seen: set[str] = set()
        current: Optional[Employee] = manager
        while current is not None and current.manager_id is not None:
            if current.manager_id == employee_id:
                raise ValidationException(
                    {"manager_id": ["Reporting line would become circular."]}
                )
            if current.manager_id in seen:
                break
            seen.add(current.manager_id)
            current = await db.get(Employee, current.manager_id)

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        data: EmployeeCreate,
    ) -> EmployeeOut:
        """Register an employee; generates the next ``E<n>`` id when omitted."""

        async def _work(session: AsyncSession) -> EmployeeOut:
            existing = await session.execute(
                select(Employee.employee_id).where(Employee.email == data.email)
            )
            if existing.scalar() is not None:
                raise ConflictError("email", data.email)

            employee_id = data.employee_id or await EmployeeService._next_employee_id(session)
            if await session.get(Employee, employee_id) is not None:
                raise ConflictError("employee_id", employee_id)

            if data.manager_id:
                await EmployeeService._check_manager(session, employee_id, data.manager_id)

            employee = Employee(
                employee_id=employee_id,
                first_name=data.first_name,
                last_name=data.last_name,
                email=data.email,
                department=data.department or settings.DEFAULT_DEPARTMENT,
                manager_id=data.manager_id or None,
            )
            session.add(employee)
            try:
                await session.flush()
            except IntegrityError as exc:
                err = str(exc.orig)
                if "email" in err:
                    raise ConflictError("email", data.email)
                raise ConflictError("employee_id", employee_id)
            return EmployeeOut.model_validate(employee)

        created = await serialized(db, _REGISTRATION_KEY, _work)
        logger.info("Registered employee %s", created.employee_id)
        return created

    # ── Read ────────────────────────────────────────────────────────

    @staticmethod
    async def get_employee(db: AsyncSession, employee_id: str) -> EmployeeOut:
        return EmployeeOut.model_validate(await EmployeeService._get(db, employee_id))

    @staticmethod
    async def get_direct_reports(
        db: AsyncSession,
        manager_id: str,
    ) -> Sequence[EmployeeOut]:
        """Return direct reports for a manager."""
        await EmployeeService._get(db, manager_id)
        result = await db.execute(
            select(Employee)
            .where(Employee.manager_id == manager_id)
            .order_by(Employee.first_name, Employee.last_name)
        )
        return [EmployeeOut.model_validate(e) for e in result.scalars().all()]

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        employee_id: str,
        data: EmployeeUpdate,
    ) -> EmployeeOut:
        """Partial update of name and manager fields."""

        async def _work(session: AsyncSession) -> EmployeeOut:
            employee = await EmployeeService._get(session, employee_id)
            changes = data.model_dump(exclude_unset=True)

            if changes.get("manager_id"):
                await EmployeeService._check_manager(
                    session, employee_id, changes["manager_id"],
                )

            for field, value in changes.items():
                if field == "manager_id":
                    value = value or None
                elif value is None or not value.strip():
                    raise ValidationException({field: ["must not be blank"]})
                else:
                    value = value.strip()
                setattr(employee, field, value)

            await session.flush()
            return EmployeeOut.model_validate(employee)

        return await serialized(db, employee_id, _work)
