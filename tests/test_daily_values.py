"""Daily values — range recalculation and per-employee listing."""

from __future__ import annotations

import pytest

from timetrack.employees.models import Employee
from timetrack.tenants.models import Tenant
from tests.conftest import _make_employee, _make_tenant

RECALC = "/api/v1/daily-values/recalculate"


@pytest.fixture
async def second_employee(db, tenant, tariff) -> Employee:
    obj = Employee(**_make_employee(
        tenant.id, personnel_number="1002", first_name="Hans", tariff_id=tariff.id,
    ))
    db.add(obj)
    await db.commit()
    return obj


class TestRecalculateRange:

    async def test_whole_week_for_every_employee(self, client, admin_headers, employee, second_employee):
        resp = await client.post(RECALC, json={"from": "2025-03-03", "to": "2025-03-09"}, headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["processed_days"] == 14
        assert data["failed_days"] == 0
        assert data["errors"] == []

    async def test_single_employee(self, client, admin_headers, employee, second_employee):
        resp = await client.post(
            RECALC,
            json={"from": "2025-03-03", "to": "2025-03-09", "employee_id": str(employee.id)},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["processed_days"] == 7

        days = (await client.get(
            f"/api/v1/employees/{employee.id}/daily-values",
            params={"from": "2025-03-03", "to": "2025-03-09"},
            headers=admin_headers,
        )).json()["data"]
        assert len(days) == 7

        others = (await client.get(
            f"/api/v1/employees/{second_employee.id}/daily-values",
            params={"from": "2025-03-03", "to": "2025-03-09"},
            headers=admin_headers,
        )).json()["data"]
        assert others == []

    async def test_to_before_from(self, client, admin_headers, employee):
        resp = await client.post(RECALC, json={"from": "2025-03-09", "to": "2025-03-03"}, headers=admin_headers)
        assert resp.status_code == 422

    async def test_range_longer_than_a_year(self, client, admin_headers, employee):
        resp = await client.post(RECALC, json={"from": "2024-01-01", "to": "2025-03-01"}, headers=admin_headers)
        assert resp.status_code == 422

    async def test_closed_month_days_are_reported(self, client, admin_headers, employee):
        month = f"/api/v1/employees/{employee.id}/months/2025/3"
        await client.post(f"{month}/recalculate", headers=admin_headers)
        resp = await client.post(
            f"{month}/close", json={"reason": "Payroll run March 2025"}, headers=admin_headers,
        )
        assert resp.status_code == 200

        resp = await client.post(
            RECALC,
            json={"from": "2025-03-28", "to": "2025-04-02", "employee_id": str(employee.id)},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["processed_days"] == 2
        assert data["failed_days"] == 4
        assert [e["date"] for e in data["errors"]] == ["2025-03-28", "2025-03-29", "2025-03-30", "2025-03-31"]
        assert all(e["employee_id"] == str(employee.id) for e in data["errors"])

    async def test_manager_cannot_recalculate(self, client, manager_headers):
        resp = await client.post(RECALC, json={"from": "2025-03-03", "to": "2025-03-03"}, headers=manager_headers)
        assert resp.status_code == 403


class TestEmployeeListing:

    async def test_employee_of_other_tenant(self, client, db, admin_headers):
        other = Tenant(**_make_tenant(name="Other AG"))
        db.add(other)
        await db.commit()
        stranger = Employee(**_make_employee(other.id, personnel_number="9001"))
        db.add(stranger)
        await db.commit()

        resp = await client.get(
            f"/api/v1/employees/{stranger.id}/daily-values",
            params={"from": "2025-03-01", "to": "2025-03-31"},
            headers=admin_headers,
        )
        assert resp.status_code == 404

    async def test_unknown_employee(self, client, admin_headers):
        resp = await client.get(
            "/api/v1/employees/00000000-0000-0000-0000-000000000001/daily-values",
            params={"from": "2025-03-01", "to": "2025-03-31"},
            headers=admin_headers,
        )
        assert resp.status_code == 404
