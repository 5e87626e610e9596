"""Employees router: registration, lookup, name/manager updates, direct reports."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.database import get_db
from timeoff.employees.schemas import EmployeeCreate, EmployeeOut, EmployeeUpdate
from timeoff.employees.service import EmployeeService

router = APIRouter(prefix="", tags=["employees"])


# ── POST /employees ─────────────────────────────────────────────────

@router.post("", response_model=EmployeeOut, status_code=201)
async def create_employee(
    body: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
):
    """Register an employee. Generates the next ``E<n>`` id when none is given."""
    return await EmployeeService.create_employee(db, body)


# ── GET /employees/{id} ─────────────────────────────────────────────

@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(
    employee_id: str,
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.get_employee(db, employee_id)


# ── PATCH /employees/{id} ───────────────────────────────────────────

@router.patch("/{employee_id}", response_model=EmployeeOut)
async def update_employee(
    employee_id: str,
    body: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update name or manager. Other fields are fixed at registration."""
    return await EmployeeService.update_employee(db, employee_id, body)


# ── GET /employees/{id}/direct-reports ──────────────────────────────

@router.get("/{employee_id}/direct-reports", response_model=list[EmployeeOut])
async def get_direct_reports(
    employee_id: str,
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.get_direct_reports(db, employee_id)
