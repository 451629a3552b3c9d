"""Bookings and time clock — CRUD, automatic daily recalculation, scope checks."""

from __future__ import annotations

from timetrack.employees.models import Employee
from tests.conftest import _make_employee

DAY = "2025-03-03"  # Monday


async def _book(client, headers, employee_id, direction: str, time: int, **extra):
    return await client.post(
        f"/api/v1/employees/{employee_id}/bookings",
        json={"booking_date": DAY, "direction": direction, "time": time, **extra},
        headers=headers,
    )


async def _daily_value(client, headers, employee_id, day: str = DAY) -> dict:
    resp = await client.get(
        f"/api/v1/employees/{employee_id}/daily-values",
        params={"from": day, "to": day},
        headers=headers,
    )
    assert resp.status_code == 200
    [value] = resp.json()["data"]
    return value


# ── Booking CRUD ────────────────────────────────────────────────────


async def test_create_booking_keeps_original_time(client, admin_headers, employee):
    resp = await _book(client, admin_headers, employee.id, "in", 480)
    assert resp.status_code == 201
    data = resp.json()
    assert data["original_time"] == 480
    assert data["edited_time"] == 480
    assert data["category"] == "work"
    assert data["source"] == "web"


async def test_single_booking_flags_missing_go(client, admin_headers, employee):
    await _book(client, admin_headers, employee.id, "in", 480)

    value = await _daily_value(client, admin_headers, employee.id)
    assert value["has_error"] is True
    assert "MISSING_GO" in value["error_codes"]
    assert value["status"] == "error"


async def test_booking_pair_calculates_day(client, admin_headers, employee):
    await _book(client, admin_headers, employee.id, "in", 480)
    await _book(client, admin_headers, employee.id, "out", 1020)

    value = await _daily_value(client, admin_headers, employee.id)
    assert value["has_error"] is False
    assert value["gross_time"] == 540
    assert value["net_time"] == 540
    assert value["target_time"] == 480
    assert value["overtime"] == 60
    assert value["balance"] == 60
    assert value["first_come"] == 480
    assert value["last_go"] == 1020
    assert value["booking_count"] == 2


async def test_recorded_break_is_deducted(client, admin_headers, employee):
    await _book(client, admin_headers, employee.id, "in", 480)
    await _book(client, admin_headers, employee.id, "out", 720, category="break")
    await _book(client, admin_headers, employee.id, "in", 750, category="break")
    await _book(client, admin_headers, employee.id, "out", 1020)

    value = await _daily_value(client, admin_headers, employee.id)
    assert value["break_time"] == 30
    assert value["net_time"] == 510


async def test_correction_changes_edited_time_only(client, admin_headers, employee):
    await _book(client, admin_headers, employee.id, "in", 480)
    out = (await _book(client, admin_headers, employee.id, "out", 1020)).json()

    resp = await client.patch(
        f"/api/v1/bookings/{out['id']}",
        json={"edited_time": 960},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["original_time"] == 1020
    assert resp.json()["edited_time"] == 960

    value = await _daily_value(client, admin_headers, employee.id)
    assert value["net_time"] == 480
    assert value["overtime"] == 0


async def test_delete_booking_recalculates(client, admin_headers, employee):
    await _book(client, admin_headers, employee.id, "in", 480)
    out = (await _book(client, admin_headers, employee.id, "out", 1020)).json()

    resp = await client.delete(f"/api/v1/bookings/{out['id']}", headers=admin_headers)
    assert resp.status_code == 204

    value = await _daily_value(client, admin_headers, employee.id)
    assert value["error_codes"] == ["MISSING_GO"]


async def test_time_out_of_range(client, admin_headers, employee):
    resp = await _book(client, admin_headers, employee.id, "in", 1440)
    assert resp.status_code == 422
    assert resp.json()["errors"]


async def test_booking_on_unknown_employee(client, admin_headers, tenant):
    resp = await _book(client, admin_headers, "00000000-0000-0000-0000-000000000001", "in", 480)
    assert resp.status_code == 404


async def test_list_bookings_by_range(client, admin_headers, employee):
    await _book(client, admin_headers, employee.id, "in", 480)
    await client.post(
        f"/api/v1/employees/{employee.id}/bookings",
        json={"booking_date": "2025-03-04", "direction": "in", "time": 480},
        headers=admin_headers,
    )

    resp = await client.get(
        f"/api/v1/employees/{employee.id}/bookings",
        params={"from": DAY, "to": DAY},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["meta"]["total"] == 1


# ── Scope ───────────────────────────────────────────────────────────


async def test_employee_books_own_time(client, employee_headers, employee):
    resp = await _book(client, employee_headers, employee.id, "in", 480)
    assert resp.status_code == 201


async def test_employee_cannot_touch_colleague(client, db, tenant, employee_headers):
    colleague = Employee(**_make_employee(tenant.id, personnel_number="1002", first_name="Hans"))
    db.add(colleague)
    await db.commit()

    resp = await _book(client, employee_headers, colleague.id, "in", 480)
    assert resp.status_code == 403

    resp = await client.get(f"/api/v1/employees/{colleague.id}/bookings", headers=employee_headers)
    assert resp.status_code == 403


async def test_manager_reads_but_cannot_write_others(client, manager_headers, employee):
    resp = await client.get(f"/api/v1/employees/{employee.id}/bookings", headers=manager_headers)
    assert resp.status_code == 200

    resp = await _book(client, manager_headers, employee.id, "in", 480)
    assert resp.status_code == 403


# ── Time clock ──────────────────────────────────────────────────────


async def test_clock_state_machine(client, employee_headers, employee):
    url = f"/api/v1/employees/{employee.id}/clock"

    status = (await client.get(url, headers=employee_headers)).json()
    assert status["state"] == "clocked_out"
    assert status["allowed_actions"] == ["clock_in"]

    resp = await client.post(url, json={"action": "clock_in"}, headers=employee_headers)
    assert resp.status_code == 201
    assert resp.json()["state"] == "clocked_in"
    assert resp.json()["booking"]["source"] == "clock"

    resp = await client.post(url, json={"action": "clock_in"}, headers=employee_headers)
    assert resp.status_code == 422
    assert "action" in resp.json()["errors"]

    resp = await client.post(url, json={"action": "break_start"}, headers=employee_headers)
    assert resp.json()["state"] == "on_break"

    status = (await client.get(url, headers=employee_headers)).json()
    assert status["allowed_actions"] == ["break_end"]

    resp = await client.post(url, json={"action": "break_end"}, headers=employee_headers)
    assert resp.json()["state"] == "clocked_in"

    resp = await client.post(url, json={"action": "clock_out"}, headers=employee_headers)
    assert resp.status_code == 201
    assert resp.json()["state"] == "clocked_out"

    status = (await client.get(url, headers=employee_headers)).json()
    assert len(status["bookings"]) == 4


async def test_clock_out_without_clock_in(client, employee_headers, employee):
    resp = await client.post(
        f"/api/v1/employees/{employee.id}/clock",
        json={"action": "clock_out"},
        headers=employee_headers,
    )
    assert resp.status_code == 422
