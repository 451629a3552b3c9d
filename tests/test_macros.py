"""Macros — assignments, manual and scheduled execution."""

from __future__ import annotations

from datetime import date

import pytest

from timetrack.macros.service import is_due

MARCH = "/api/v1/employees/{employee_id}/months/2025/3"


@pytest.fixture
async def weekly_macro(client, admin_headers) -> dict:
    resp = await client.post(
        "/api/v1/macros",
        json={
            "name": "Weekly reminder",
            "macro_type": "weekly",
            "action_type": "log_message",
            "action_params": {"message": "Check open bookings"},
        },
        headers=admin_headers,
    )
    assert resp.status_code == 201
    return resp.json()


async def _book(client, headers, employee, day: str, come: int, go: int) -> None:
    for direction, time in (("in", come), ("out", go)):
        resp = await client.post(
            f"/api/v1/employees/{employee.id}/bookings",
            json={"booking_date": day, "direction": direction, "time": time},
            headers=headers,
        )
        assert resp.status_code == 201


class TestIsDue:

    def test_weekly_uses_sunday_zero(self):
        assert is_due("weekly", 0, date(2025, 3, 2))
        assert is_due("weekly", 1, date(2025, 3, 3))
        assert not is_due("weekly", 1, date(2025, 3, 4))

    def test_monthly_clamps_to_month_end(self):
        assert is_due("monthly", 31, date(2025, 2, 28))
        assert is_due("monthly", 15, date(2025, 2, 15))
        assert not is_due("monthly", 31, date(2025, 3, 30))


class TestMacroCrud:

    async def test_create_defaults(self, weekly_macro):
        assert weekly_macro["is_active"] is True
        assert weekly_macro["assignments"] == []

    async def test_duplicate_name(self, client, admin_headers, weekly_macro):
        resp = await client.post(
            "/api/v1/macros",
            json={"name": "Weekly reminder", "macro_type": "monthly", "action_type": "log_message"},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    async def test_assignment_needs_one_target(self, client, admin_headers, weekly_macro, employee, tariff):
        resp = await client.post(
            f"/api/v1/macros/{weekly_macro['id']}/assignments",
            json={"employee_id": str(employee.id), "tariff_id": str(tariff.id), "execution_day": 1},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    async def test_weekly_execution_day_range(self, client, admin_headers, weekly_macro, employee):
        resp = await client.post(
            f"/api/v1/macros/{weekly_macro['id']}/assignments",
            json={"employee_id": str(employee.id), "execution_day": 7},
            headers=admin_headers,
        )
        assert resp.status_code == 422
        assert "execution_day" in resp.json()["errors"]

    async def test_add_and_remove_assignment(self, client, admin_headers, weekly_macro, employee):
        resp = await client.post(
            f"/api/v1/macros/{weekly_macro['id']}/assignments",
            json={"employee_id": str(employee.id), "execution_day": 1},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assignment_id = resp.json()["id"]

        macro = (await client.get(f"/api/v1/macros/{weekly_macro['id']}", headers=admin_headers)).json()
        assert [a["id"] for a in macro["assignments"]] == [assignment_id]

        resp = await client.delete(
            f"/api/v1/macros/{weekly_macro['id']}/assignments/{assignment_id}",
            headers=admin_headers,
        )
        assert resp.status_code == 204

        macro = (await client.get(f"/api/v1/macros/{weekly_macro['id']}", headers=admin_headers)).json()
        assert macro["assignments"] == []

    async def test_manager_cannot_manage_macros(self, client, manager_headers):
        resp = await client.get("/api/v1/macros", headers=manager_headers)
        assert resp.status_code == 403


class TestExecution:

    async def test_manual_log_message(self, client, admin_headers, weekly_macro, employee):
        await client.post(
            f"/api/v1/macros/{weekly_macro['id']}/assignments",
            json={"employee_id": str(employee.id), "execution_day": 1},
            headers=admin_headers,
        )

        resp = await client.post(
            f"/api/v1/macros/{weekly_macro['id']}/execute",
            json={"date": "2025-03-03"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "completed"
        assert data["trigger_type"] == "manual"
        assert data["result"]["message"] == "Check open bookings"
        assert data["result"]["employees"] == 1

        listing = (await client.get(
            f"/api/v1/macros/{weekly_macro['id']}/executions", headers=admin_headers,
        )).json()
        assert listing["meta"]["total"] == 1

    async def test_inactive_macro_not_executed(self, client, admin_headers, weekly_macro):
        await client.patch(
            f"/api/v1/macros/{weekly_macro['id']}", json={"is_active": False}, headers=admin_headers,
        )
        resp = await client.post(f"/api/v1/macros/{weekly_macro['id']}/execute", headers=admin_headers)
        assert resp.status_code == 422

    async def test_recalculate_action_covers_tariff(self, client, admin_headers, employee, tariff):
        macro = (await client.post(
            "/api/v1/macros",
            json={"name": "Recalc", "macro_type": "monthly", "action_type": "recalculate_target_hours"},
            headers=admin_headers,
        )).json()
        await client.post(
            f"/api/v1/macros/{macro['id']}/assignments",
            json={"tariff_id": str(tariff.id), "execution_day": 3},
            headers=admin_headers,
        )

        resp = await client.post(
            f"/api/v1/macros/{macro['id']}/execute",
            json={"date": "2025-03-03"},
            headers=admin_headers,
        )
        assert resp.json()["result"]["processed"] == 1

        # Monday the 3rd has a plan but no bookings
        days = (await client.get(
            f"/api/v1/employees/{employee.id}/daily-values",
            params={"from": "2025-03-01", "to": "2025-03-03"},
            headers=admin_headers,
        )).json()["data"]
        monday = [d for d in days if d["value_date"] == "2025-03-03"]
        assert monday[0]["error_codes"] == ["NO_BOOKINGS"]

    async def test_execute_due(self, client, admin_headers, weekly_macro, employee):
        await client.post(
            f"/api/v1/macros/{weekly_macro['id']}/assignments",
            json={"employee_id": str(employee.id), "execution_day": 1},
            headers=admin_headers,
        )

        resp = await client.post("/api/v1/macros/execute-due", json={"date": "2025-03-04"}, headers=admin_headers)
        assert resp.json()["executed"] == 0

        resp = await client.post("/api/v1/macros/execute-due", json={"date": "2025-03-03"}, headers=admin_headers)
        assert resp.json()["executed"] == 1
        assert resp.json()["data"][0]["trigger_type"] == "scheduled"


class TestMonthlyBalanceActions:

    @pytest.fixture
    async def booked_day(self, client, admin_headers, employee):
        """One hour of overtime on Monday 2025-03-03."""
        await _book(client, admin_headers, employee, "2025-03-03", 480, 1020)

    async def _run(self, client, headers, employee, action_type: str, on: str) -> dict:
        macro = (await client.post(
            "/api/v1/macros",
            json={"name": action_type, "macro_type": "monthly", "action_type": action_type},
            headers=headers,
        )).json()
        await client.post(
            f"/api/v1/macros/{macro['id']}/assignments",
            json={"employee_id": str(employee.id), "execution_day": 15},
            headers=headers,
        )
        resp = await client.post(f"/api/v1/macros/{macro['id']}/execute", json={"date": on}, headers=headers)
        assert resp.status_code == 200
        return resp.json()["result"]

    async def test_carry_forward_computes_month(self, client, admin_headers, employee, booked_day):
        result = await self._run(client, admin_headers, employee, "carry_forward_balance", "2025-03-15")
        assert result["processed"] == 1

        month = (await client.get(MARCH.format(employee_id=employee.id), headers=admin_headers)).json()
        assert month["flextime_end"] == 60

    async def test_reset_without_month_is_skipped(self, client, admin_headers, employee):
        result = await self._run(client, admin_headers, employee, "reset_flextime", "2025-03-15")
        assert result["processed"] == 0
        assert result["skipped"] == 1

    async def test_reset_zeroes_balance(self, client, admin_headers, employee, booked_day):
        url = MARCH.format(employee_id=employee.id)
        await client.post(f"{url}/recalculate", headers=admin_headers)

        result = await self._run(client, admin_headers, employee, "reset_flextime", "2025-03-15")
        assert result["processed"] == 1

        month = (await client.get(url, headers=admin_headers)).json()
        assert month["flextime_end"] == 0
        assert month["flextime_reset_at"] is not None

    async def test_reset_survives_later_bookings(self, client, admin_headers, employee, booked_day):
        url = MARCH.format(employee_id=employee.id)
        await client.post(f"{url}/recalculate", headers=admin_headers)
        await self._run(client, admin_headers, employee, "reset_flextime", "2025-03-15")

        # Refreshes the open month through the day recalculation
        await _book(client, admin_headers, employee, "2025-03-04", 480, 960)
        month = (await client.get(url, headers=admin_headers)).json()
        assert month["work_days"] == 2
        assert month["flextime_end"] == 0

        resp = await client.post(f"{url}/recalculate", headers=admin_headers)
        assert resp.json()["flextime_end"] == 0

        april = (await client.post(
            f"/api/v1/employees/{employee.id}/months/2025/4/recalculate", headers=admin_headers,
        )).json()
        assert april["flextime_start"] == 0

    async def test_reset_on_first_targets_previous_month(self, client, admin_headers, employee, booked_day):
        url = MARCH.format(employee_id=employee.id)
        await client.post(f"{url}/recalculate", headers=admin_headers)

        macro = (await client.post(
            "/api/v1/macros",
            json={"name": "Reset", "macro_type": "monthly", "action_type": "reset_flextime"},
            headers=admin_headers,
        )).json()
        await client.post(
            f"/api/v1/macros/{macro['id']}/assignments",
            json={"employee_id": str(employee.id), "execution_day": 1},
            headers=admin_headers,
        )
        resp = await client.post(
            f"/api/v1/macros/{macro['id']}/execute", json={"date": "2025-04-01"}, headers=admin_headers,
        )
        assert resp.json()["result"]["processed"] == 1

        month = (await client.get(url, headers=admin_headers)).json()
        assert month["flextime_end"] == 0
