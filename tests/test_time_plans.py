"""Time plan master data — day plans, tariffs, holidays, employees and
per-date day plan assignments.
"""

from __future__ import annotations

from sqlalchemy import select

from timetrack.common.audit import AuditLog


# ═════════════════════════════════════════════════════════════════════
# Day plans
# ═════════════════════════════════════════════════════════════════════


def _day_plan_body(**overrides) -> dict:
    body = {
        "code": "FLEX",
        "name": "Flextime",
        "plan_type": "flextime",
        "come_from": 420,
        "come_to": 540,
        "go_from": 900,
        "go_to": 1140,
        "core_start": 540,
        "core_end": 900,
        "regular_hours": 480,
        "breaks": [
            {"break_type": "minimum", "duration": 30, "after_work_minutes": 360},
        ],
    }
    body.update(overrides)
    return body


class TestDayPlans:

    async def test_create_with_breaks(self, client, admin_headers):
        resp = await client.post("/api/v1/day-plans", json=_day_plan_body(), headers=admin_headers)
        assert resp.status_code == 201
        data = resp.json()
        assert data["plan_type"] == "flextime"
        assert data["no_booking_behavior"] == "error"
        assert len(data["breaks"]) == 1
        assert data["breaks"][0]["break_type"] == "minimum"

    async def test_fixed_break_needs_window(self, client, admin_headers):
        body = _day_plan_body(breaks=[{"break_type": "fixed", "duration": 30}])
        resp = await client.post("/api/v1/day-plans", json=body, headers=admin_headers)
        assert resp.status_code == 422

    async def test_duplicate_code_conflicts(self, client, admin_headers, day_plan):
        resp = await client.post(
            "/api/v1/day-plans",
            json=_day_plan_body(code=day_plan.code),
            headers=admin_headers,
        )
        assert resp.status_code == 409
        assert "code" in resp.json()["errors"]

    async def test_code_is_immutable(self, client, admin_headers, day_plan):
        resp = await client.patch(
            f"/api/v1/day-plans/{day_plan.id}",
            json={"code": "OTHER"},
            headers=admin_headers,
        )
        assert resp.status_code == 422
        assert resp.json()["errors"]["code"] == ["cannot be changed after creation"]

        # Resending the current code is fine
        resp = await client.patch(
            f"/api/v1/day-plans/{day_plan.id}",
            json={"code": day_plan.code, "name": "Renamed"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "Renamed"

    async def test_update_replaces_breaks(self, client, admin_headers):
        created = (await client.post("/api/v1/day-plans", json=_day_plan_body(), headers=admin_headers)).json()
        resp = await client.patch(
            f"/api/v1/day-plans/{created['id']}",
            json={
                "breaks": [
                    {"break_type": "fixed", "start_time": 720, "end_time": 750, "duration": 30},
                    {"break_type": "variable", "duration": 15, "sort_order": 1},
                ],
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert [b["break_type"] for b in resp.json()["breaks"]] == ["fixed", "variable"]

    async def test_copy(self, client, admin_headers):
        created = (await client.post("/api/v1/day-plans", json=_day_plan_body(), headers=admin_headers)).json()
        resp = await client.post(
            f"/api/v1/day-plans/{created['id']}/copy",
            json={"code": "FLEX2", "name": "Flextime (copy)"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        copy = resp.json()
        assert copy["id"] != created["id"]
        assert copy["core_start"] == 540
        assert len(copy["breaks"]) == 1

    async def test_delete_referenced_by_tariff(self, client, admin_headers, tariff, day_plan):
        resp = await client.delete(f"/api/v1/day-plans/{day_plan.id}", headers=admin_headers)
        assert resp.status_code == 409
        assert "tariffs" in resp.json()["detail"]

    async def test_changes_are_audited(self, client, db, admin_headers):
        created = (await client.post("/api/v1/day-plans", json=_day_plan_body(), headers=admin_headers)).json()

        result = await db.execute(select(AuditLog).where(AuditLog.entity_type == "day_plan"))
        entries = result.scalars().all()
        assert len(entries) == 1
        assert entries[0].action == "create"
        assert str(entries[0].entity_id) == created["id"]


# ═════════════════════════════════════════════════════════════════════
# Tariffs
# ═════════════════════════════════════════════════════════════════════


class TestTariffs:

    async def test_create_with_week_plan(self, client, admin_headers, day_plan):
        resp = await client.post(
            "/api/v1/tariffs",
            json={
                "code": "PT20",
                "name": "Part time",
                "day_plan_monday_id": str(day_plan.id),
                "day_plan_tuesday_id": str(day_plan.id),
                "credit_type": "after_threshold",
                "flextime_threshold": 60,
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["credit_type"] == "after_threshold"
        assert data["day_plan_wednesday_id"] is None

    async def test_unknown_day_plan_rejected(self, client, admin_headers, tenant):
        resp = await client.post(
            "/api/v1/tariffs",
            json={
                "code": "BAD",
                "name": "Broken",
                "day_plan_friday_id": "00000000-0000-0000-0000-000000000001",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 422
        assert "day_plan_friday_id" in resp.json()["errors"]

    async def test_delete_in_use(self, client, admin_headers, employee, tariff):
        resp = await client.delete(f"/api/v1/tariffs/{tariff.id}", headers=admin_headers)
        assert resp.status_code == 409
        assert "employees" in resp.json()["detail"]

    async def test_delete_unused(self, client, admin_headers, tariff):
        resp = await client.delete(f"/api/v1/tariffs/{tariff.id}", headers=admin_headers)
        assert resp.status_code == 204

        resp = await client.get(f"/api/v1/tariffs/{tariff.id}", headers=admin_headers)
        assert resp.status_code == 404


# ═════════════════════════════════════════════════════════════════════
# Holidays
# ═════════════════════════════════════════════════════════════════════


class TestHolidays:

    async def test_duplicate_date_conflicts(self, client, admin_headers):
        body = {"holiday_date": "2025-05-01", "name": "Labour Day"}
        assert (await client.post("/api/v1/holidays", json=body, headers=admin_headers)).status_code == 201

        resp = await client.post("/api/v1/holidays", json={**body, "name": "Again"}, headers=admin_headers)
        assert resp.status_code == 409
        assert "holiday_date" in resp.json()["errors"]

    async def test_list_by_year(self, client, admin_headers):
        for day, name in [("2024-12-25", "Christmas"), ("2025-01-01", "New Year"), ("2025-12-25", "Christmas")]:
            await client.post("/api/v1/holidays", json={"holiday_date": day, "name": name}, headers=admin_headers)

        resp = await client.get("/api/v1/holidays", params={"year": 2025}, headers=admin_headers)
        assert resp.status_code == 200
        dates = [h["holiday_date"] for h in resp.json()["data"]]
        assert dates == ["2025-01-01", "2025-12-25"]

    async def test_category_range(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/holidays",
            json={"holiday_date": "2025-05-01", "name": "Labour Day", "category": 4},
            headers=admin_headers,
        )
        assert resp.status_code == 422


# ═════════════════════════════════════════════════════════════════════
# Employees
# ═════════════════════════════════════════════════════════════════════


class TestEmployees:

    async def test_create_and_full_name(self, client, admin_headers, tariff):
        resp = await client.post(
            "/api/v1/employees",
            json={
                "personnel_number": "2001",
                "first_name": "Max",
                "last_name": "Mustermann",
                "entry_date": "2025-01-01",
                "tariff_id": str(tariff.id),
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["full_name"] == "Max Mustermann"

    async def test_duplicate_personnel_number(self, client, admin_headers, employee):
        resp = await client.post(
            "/api/v1/employees",
            json={
                "personnel_number": employee.personnel_number,
                "first_name": "Other",
                "last_name": "Person",
                "entry_date": "2025-01-01",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 409
        assert "personnel_number" in resp.json()["errors"]

    async def test_exit_before_entry_rejected(self, client, admin_headers, employee):
        resp = await client.patch(
            f"/api/v1/employees/{employee.id}",
            json={"exit_date": "2023-12-31"},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    async def test_manager_cannot_list_employees(self, client, manager_headers):
        resp = await client.get("/api/v1/employees", headers=manager_headers)
        assert resp.status_code == 403

    async def test_delete_unused_employee(self, client, admin_headers, employee):
        resp = await client.delete(f"/api/v1/employees/{employee.id}", headers=admin_headers)
        assert resp.status_code == 204

        resp = await client.get(f"/api/v1/employees/{employee.id}", headers=admin_headers)
        assert resp.status_code == 404

    async def test_delete_with_bookings(self, client, admin_headers, employee):
        await client.post(
            f"/api/v1/employees/{employee.id}/bookings",
            json={"booking_date": "2025-03-03", "direction": "in", "time": 480},
            headers=admin_headers,
        )

        resp = await client.delete(f"/api/v1/employees/{employee.id}", headers=admin_headers)
        assert resp.status_code == 409
        assert "bookings" in resp.json()["detail"]

    async def test_delete_with_absences(self, client, admin_headers, employee):
        absence_type = (await client.post(
            "/api/v1/absence-types",
            json={"code": "UL", "name": "Vacation", "category": "vacation"},
            headers=admin_headers,
        )).json()
        resp = await client.post(
            f"/api/v1/employees/{employee.id}/absences",
            json={"absence_type_id": absence_type["id"], "from": "2025-03-03", "to": "2025-03-03"},
            headers=admin_headers,
        )
        assert resp.status_code == 201

        resp = await client.delete(f"/api/v1/employees/{employee.id}", headers=admin_headers)
        assert resp.status_code == 409
        assert "absences" in resp.json()["detail"]

    async def test_delete_with_daily_values(self, client, admin_headers, employee):
        await client.post(
            "/api/v1/daily-values/recalculate",
            json={"from": "2025-03-03", "to": "2025-03-03", "employee_id": str(employee.id)},
            headers=admin_headers,
        )

        resp = await client.delete(f"/api/v1/employees/{employee.id}", headers=admin_headers)
        assert resp.status_code == 409
        assert "daily values" in resp.json()["detail"]


# ═════════════════════════════════════════════════════════════════════
# Day plan assignments
# ═════════════════════════════════════════════════════════════════════


class TestDayPlanAssignments:

    async def test_off_day_assignment_recalculates(self, client, admin_headers, employee):
        # 2025-03-04 is a Tuesday on the standard tariff
        resp = await client.put(
            f"/api/v1/employees/{employee.id}/day-plans/2025-03-04",
            json={"day_plan_id": None, "notes": "Compensation day"},
            headers=admin_headers,
        )
        assert resp.status_code == 200

        resp = await client.get(
            f"/api/v1/employees/{employee.id}/daily-values",
            params={"from": "2025-03-04", "to": "2025-03-04"},
            headers=admin_headers,
        )
        [value] = resp.json()["data"]
        assert value["target_time"] == 0
        assert "OFF_DAY" in value["warnings"]

    async def test_assignment_overrides_weekend(self, client, admin_headers, employee, day_plan):
        # 2025-03-08 is a Saturday without a tariff plan
        resp = await client.put(
            f"/api/v1/employees/{employee.id}/day-plans/2025-03-08",
            json={"day_plan_id": str(day_plan.id)},
            headers=admin_headers,
        )
        assert resp.status_code == 200

        resp = await client.get(
            f"/api/v1/employees/{employee.id}/daily-values",
            params={"from": "2025-03-08", "to": "2025-03-08"},
            headers=admin_headers,
        )
        [value] = resp.json()["data"]
        assert value["target_time"] == 480
        assert value["error_codes"] == ["NO_BOOKINGS"]

        resp = await client.get(
            f"/api/v1/employees/{employee.id}/day-plans",
            params={"from": "2025-03-01", "to": "2025-03-31"},
            headers=admin_headers,
        )
        assert [a["plan_date"] for a in resp.json()["data"]] == ["2025-03-08"]
