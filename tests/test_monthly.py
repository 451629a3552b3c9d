"""Monthly evaluation — aggregation, carryover cascade, close/reopen, batch runs, export."""

from __future__ import annotations

import pytest

MONTH = "/api/v1/employees/{employee_id}/months/2025/3"
REASON = {"reason": "Payroll run March 2025"}


@pytest.fixture
async def booked_day(client, admin_headers, employee):
    """One worked day in March 2025: 08:00–17:00 on Monday the 3rd."""
    for direction, time in (("in", 480), ("out", 1020)):
        resp = await client.post(
            f"/api/v1/employees/{employee.id}/bookings",
            json={"booking_date": "2025-03-03", "direction": direction, "time": time},
            headers=admin_headers,
        )
        assert resp.status_code == 201


def _url(employee, suffix: str = "") -> str:
    return MONTH.format(employee_id=employee.id) + suffix


# ═════════════════════════════════════════════════════════════════════
# Calculation
# ═════════════════════════════════════════════════════════════════════


class TestRecalculate:

    async def test_month_not_computed_yet(self, client, admin_headers, employee):
        resp = await client.get(_url(employee), headers=admin_headers)
        assert resp.status_code == 404

    async def test_aggregates_daily_values(self, client, admin_headers, employee, booked_day):
        resp = await client.post(_url(employee, "/recalculate"), headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_net_time"] == 540
        assert data["total_target_time"] == 480
        assert data["total_overtime"] == 60
        assert data["flextime_start"] == 0
        assert data["flextime_change"] == 60
        assert data["flextime_end"] == 60
        assert data["work_days"] == 1
        assert data["is_closed"] is False

    async def test_future_month_rejected(self, client, admin_headers, employee):
        resp = await client.post(
            f"/api/v1/employees/{employee.id}/months/2199/1/recalculate",
            headers=admin_headers,
        )
        assert resp.status_code == 422
        assert "month" in resp.json()["errors"]

    async def test_invalid_month(self, client, admin_headers, employee):
        resp = await client.post(
            f"/api/v1/employees/{employee.id}/months/2025/13/recalculate",
            headers=admin_headers,
        )
        assert resp.status_code == 422

    async def test_new_booking_refreshes_open_month(self, client, admin_headers, employee, booked_day):
        await client.post(_url(employee, "/recalculate"), headers=admin_headers)
        for direction, time in (("in", 480), ("out", 960)):
            await client.post(
                f"/api/v1/employees/{employee.id}/bookings",
                json={"booking_date": "2025-03-04", "direction": direction, "time": time},
                headers=admin_headers,
            )

        data = (await client.get(_url(employee), headers=admin_headers)).json()
        assert data["total_net_time"] == 1020
        assert data["work_days"] == 2
        assert data["flextime_end"] == 60

    async def test_cascade_carries_balance_forward(self, client, admin_headers, employee, booked_day):
        resp = await client.post(_url(employee, "/recalculate-cascade"), headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["processed"] >= 2
        assert resp.json()["failed"] == 0

        april = (await client.get(
            f"/api/v1/employees/{employee.id}/months/2025/4", headers=admin_headers,
        )).json()
        assert april["flextime_start"] == 60
        assert april["flextime_end"] == 60

        overview = (await client.get(
            f"/api/v1/employees/{employee.id}/months/2025", headers=admin_headers,
        )).json()
        assert [m["month"] for m in overview["data"]][:2] == [3, 4]

    async def test_approved_vacation_counted(self, client, admin_headers, employee):
        vacation = (await client.post(
            "/api/v1/absence-types",
            json={"code": "UL", "name": "Vacation", "category": "vacation"},
            headers=admin_headers,
        )).json()
        created = (await client.post(
            f"/api/v1/employees/{employee.id}/absences",
            json={"absence_type_id": vacation["id"], "from": "2025-03-10", "to": "2025-03-11"},
            headers=admin_headers,
        )).json()
        for absence in created["data"]:
            await client.post(f"/api/v1/absences/{absence['id']}/approve", headers=admin_headers)

        data = (await client.post(_url(employee, "/recalculate"), headers=admin_headers)).json()
        assert data["vacation_taken"] == 2.0
        assert data["total_net_time"] == 960
        assert data["flextime_end"] == 0


# ═════════════════════════════════════════════════════════════════════
# Close / reopen
# ═════════════════════════════════════════════════════════════════════


class TestCloseReopen:

    async def test_close_requires_reason(self, client, admin_headers, employee, booked_day):
        await client.post(_url(employee, "/recalculate"), headers=admin_headers)

        resp = await client.post(_url(employee, "/close"), json={"reason": "short"}, headers=admin_headers)
        assert resp.status_code == 422
        assert "reason" in resp.json()["errors"]

    async def test_close_locks_month(self, client, admin_headers, employee, booked_day):
        await client.post(_url(employee, "/recalculate"), headers=admin_headers)

        resp = await client.post(_url(employee, "/close"), json=REASON, headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["is_closed"] is True
        assert data["close_reason"] == REASON["reason"]
        assert data["closed_at"] is not None

        resp = await client.post(
            f"/api/v1/employees/{employee.id}/bookings",
            json={"booking_date": "2025-03-05", "direction": "in", "time": 480},
            headers=admin_headers,
        )
        assert resp.status_code == 409
        assert resp.json()["type"].endswith("month-closed")

        resp = await client.post(_url(employee, "/recalculate"), headers=admin_headers)
        assert resp.status_code == 409

    async def test_close_twice(self, client, admin_headers, employee, booked_day):
        await client.post(_url(employee, "/recalculate"), headers=admin_headers)
        await client.post(_url(employee, "/close"), json=REASON, headers=admin_headers)

        resp = await client.post(_url(employee, "/close"), json=REASON, headers=admin_headers)
        assert resp.status_code == 409

    async def test_reopen_allows_changes(self, client, admin_headers, employee, booked_day):
        await client.post(_url(employee, "/recalculate"), headers=admin_headers)
        await client.post(_url(employee, "/close"), json=REASON, headers=admin_headers)

        resp = await client.post(
            _url(employee, "/reopen"),
            json={"reason": "Late correction from team lead"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["is_closed"] is False
        assert resp.json()["reopen_reason"] == "Late correction from team lead"

        resp = await client.post(
            f"/api/v1/employees/{employee.id}/bookings",
            json={"booking_date": "2025-03-05", "direction": "in", "time": 480},
            headers=admin_headers,
        )
        assert resp.status_code == 201

    async def test_reopen_open_month(self, client, admin_headers, employee, booked_day):
        await client.post(_url(employee, "/recalculate"), headers=admin_headers)
        resp = await client.post(_url(employee, "/reopen"), json=REASON, headers=admin_headers)
        assert resp.status_code == 409

    async def test_manager_cannot_close(self, client, admin_headers, manager_headers, employee, booked_day):
        await client.post(_url(employee, "/recalculate"), headers=admin_headers)
        resp = await client.post(_url(employee, "/close"), json=REASON, headers=manager_headers)
        assert resp.status_code == 403

    async def test_batch_close(self, client, admin_headers, employee, booked_day):
        resp = await client.post(
            "/api/v1/monthly-values/batch-close",
            json={"year": 2025, "month": 3, **REASON},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["processed"] == 1

        resp = await client.post(
            "/api/v1/monthly-values/batch-close",
            json={"year": 2025, "month": 3, **REASON},
            headers=admin_headers,
        )
        assert resp.json()["skipped"] == 1

        listing = (await client.get(
            "/api/v1/monthly-values", params={"is_closed": True}, headers=admin_headers,
        )).json()
        assert listing["meta"]["total"] == 1


# ═════════════════════════════════════════════════════════════════════
# Export
# ═════════════════════════════════════════════════════════════════════


class TestExport:

    async def test_csv_download(self, client, admin_headers, employee, booked_day):
        await client.post(_url(employee, "/recalculate"), headers=admin_headers)

        resp = await client.get(_url(employee, "/export.csv"), headers=admin_headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "monthly-evaluation-2025-03.csv" in resp.headers["content-disposition"]
        lines = resp.text.splitlines()
        assert lines[0].startswith("Date,Day,Target")
        assert lines[3].startswith("03.03,Mon,8:00,9:00,0:00,9:00,1:00")
        assert "Summary" in resp.text

    async def test_print_view(self, client, employee_headers, employee):
        resp = await client.get(_url(employee, "/print"), headers=employee_headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "Erika Muster" in resp.text
