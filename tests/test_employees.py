"""Employee registry tests: id generation, uniqueness, reporting lines, API."""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from timeoff.config import settings
from timeoff.employees.schemas import EmployeeCreate, EmployeeUpdate
from timeoff.employees.service import EmployeeService
from tests.conftest import seed_employee


def _create(**overrides) -> EmployeeCreate:
    data = dict(first_name="Ada", last_name="Lovelace", email="ada@acme.io")
    data.update(overrides)
    return EmployeeCreate(**data)


class TestEmployeeService:

    async def test_first_generated_id(self, db: AsyncSession):
        result = await EmployeeService.create_employee(db, _create())

        assert result.employee_id == "E1001"
        assert result.display_name == "Ada Lovelace"
        assert result.department == settings.DEFAULT_DEPARTMENT

    async def test_ids_increment(self, db: AsyncSession):
        first = await EmployeeService.create_employee(db, _create())
        second = await EmployeeService.create_employee(
            db, _create(first_name="Alan", last_name="Turing", email="alan@acme.io"),
        )

        assert first.employee_id == "E1001"
        assert second.employee_id == "E1002"

    async def test_generated_id_follows_highest(self, db: AsyncSession):
        await seed_employee(db, employee_id="E1041")

        result = await EmployeeService.create_employee(db, _create())
        assert result.employee_id == "E1042"

    async def test_explicit_id_kept(self, db: AsyncSession):
        result = await EmployeeService.create_employee(db, _create(employee_id="E7"))
        assert result.employee_id == "E7"

    async def test_duplicate_email(self, db: AsyncSession):
        await EmployeeService.create_employee(db, _create())

        with pytest.raises(ConflictError):
            await EmployeeService.create_employee(
                db, _create(first_name="Other", email="ADA@acme.io"),
            )

    async def test_duplicate_explicit_id(self, db: AsyncSession):
        await seed_employee(db, employee_id="E1001")

        with pytest.raises(ConflictError):
            await EmployeeService.create_employee(db, _create(employee_id="E1001"))

    async def test_unknown_manager(self, db: AsyncSession):
        with pytest.raises(NotFoundException):
            await EmployeeService.create_employee(db, _create(manager_id="E9999"))

    async def test_direct_reports(self, db: AsyncSession):
        boss = await seed_employee(db, employee_id="E1001", first_name="Boss")
        await seed_employee(db, employee_id="E1002", first_name="Zed", manager_id=boss)
        await seed_employee(db, employee_id="E1003", first_name="Amy", manager_id=boss)
        await seed_employee(db, employee_id="E1004", first_name="Solo")

        reports = await EmployeeService.get_direct_reports(db, boss)

        assert [r.first_name for r in reports] == ["Amy", "Zed"]

    async def test_update_name_and_manager(self, db: AsyncSession):
        boss = await seed_employee(db, employee_id="E1001")
        emp = await seed_employee(db, employee_id="E1002")

        result = await EmployeeService.update_employee(
            db, emp, EmployeeUpdate(first_name="  Grace ", manager_id=boss),
        )

        assert result.first_name == "Grace"
        assert result.manager_id == boss

    async def test_clear_manager(self, db: AsyncSession):
        boss = await seed_employee(db, employee_id="E1001")
        emp = await seed_employee(db, employee_id="E1002", manager_id=boss)

        result = await EmployeeService.update_employee(
            db, emp, EmployeeUpdate(manager_id=""),
        )
        assert result.manager_id is None

    async def test_own_manager_refused(self, db: AsyncSession):
        emp = await seed_employee(db, employee_id="E1001")

        with pytest.raises(ValidationException):
            await EmployeeService.update_employee(db, emp, EmployeeUpdate(manager_id=emp))

    async def test_circular_reporting_refused(self, db: AsyncSession):
        top = await seed_employee(db, employee_id="E1001")
        mid = await seed_employee(db, employee_id="E1002", manager_id=top)
        low = await seed_employee(db, employee_id="E1003", manager_id=mid)

        with pytest.raises(ValidationException) as exc_info:
            await EmployeeService.update_employee(db, top, EmployeeUpdate(manager_id=low))
        assert "manager_id" in exc_info.value.errors

    async def test_blank_name_refused(self, db: AsyncSession):
        emp = await seed_employee(db, employee_id="E1001")

        with pytest.raises(ValidationException):
            await EmployeeService.update_employee(db, emp, EmployeeUpdate(last_name="   "))


class TestEmployeeAPI:

    async def test_register_and_fetch(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/employees",
            json={"first_name": "Ada", "last_name": "Lovelace", "email": "Ada@Acme.io"},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["employee_id"] == "E1001"
        assert body["email"] == "ada@acme.io"

        resp = await client.get("/api/v1/employees/E1001")
        assert resp.status_code == 200
        assert resp.json()["display_name"] == "Ada Lovelace"

    async def test_unknown_employee_is_problem_detail(self, client: AsyncClient):
        resp = await client.get("/api/v1/employees/E9999")

        assert resp.status_code == 404
        assert resp.headers["content-type"].startswith("application/problem+json")
        assert resp.json()["type"].endswith("/not-found")

    async def test_invalid_email_rejected(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/employees",
            json={"first_name": "Ada", "last_name": "Lovelace", "email": "not-an-email"},
        )

        assert resp.status_code == 422
        assert "email" in resp.json()["errors"]

    async def test_duplicate_email_conflict(self, client: AsyncClient):
        payload = {"first_name": "Ada", "last_name": "Lovelace", "email": "ada@acme.io"}
        assert (await client.post("/api/v1/employees", json=payload)).status_code == 201

        resp = await client.post("/api/v1/employees", json=payload)
        assert resp.status_code == 409
        assert resp.json()["type"].endswith("/conflict")

    async def test_patch_and_direct_reports(self, client: AsyncClient):
        for first, email in (("Boss", "boss@acme.io"), ("Kim", "kim@acme.io")):
            await client.post(
                "/api/v1/employees",
                json={"first_name": first, "last_name": "Lee", "email": email},
            )

        resp = await client.patch("/api/v1/employees/E1002", json={"manager_id": "E1001"})
        assert resp.status_code == 200
        assert resp.json()["manager_id"] == "E1001"

        resp = await client.get("/api/v1/employees/E1001/direct-reports")
        assert [e["employee_id"] for e in resp.json()] == ["E1002"]
