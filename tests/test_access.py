"""Access control — zones, profiles and employee access assignments."""

from __future__ import annotations

import pytest


@pytest.fixture
async def zone(client, admin_headers) -> dict:
    resp = await client.post(
        "/api/v1/access-zones",
        json={"code": "LAB", "name": "Laboratory"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
async def profile(client, admin_headers, zone) -> dict:
    resp = await client.post(
        "/api/v1/access-profiles",
        json={"code": "RND", "name": "Research", "zone_ids": [zone["id"]]},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    return resp.json()


async def test_zone_code_immutable(client, admin_headers, zone):
    resp = await client.patch(
        f"/api/v1/access-zones/{zone['id']}", json={"code": "LAB2"}, headers=admin_headers,
    )
    assert resp.status_code == 422
    assert "code" in resp.json()["errors"]


async def test_zone_in_use_by_profile(client, admin_headers, zone, profile):
    resp = await client.delete(f"/api/v1/access-zones/{zone['id']}", headers=admin_headers)
    assert resp.status_code == 409
    assert "access profiles" in resp.json()["detail"]


async def test_profile_zone_list(client, admin_headers, zone, profile):
    assert profile["zone_ids"] == [zone["id"]]

    other = (await client.post(
        "/api/v1/access-zones", json={"code": "GATE", "name": "Main gate"}, headers=admin_headers,
    )).json()
    resp = await client.patch(
        f"/api/v1/access-profiles/{profile['id']}",
        json={"zone_ids": [other["id"]]},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["zone_ids"] == [other["id"]]

    # The first zone is no longer referenced
    resp = await client.delete(f"/api/v1/access-zones/{zone['id']}", headers=admin_headers)
    assert resp.status_code == 204


async def test_profile_unknown_zone(client, admin_headers):
    resp = await client.post(
        "/api/v1/access-profiles",
        json={"code": "BAD", "name": "Broken", "zone_ids": ["00000000-0000-0000-0000-000000000001"]},
        headers=admin_headers,
    )
    assert resp.status_code == 422
    assert "zone_ids" in resp.json()["errors"]


async def test_assignment_lifecycle(client, admin_headers, employee, profile):
    resp = await client.post(
        "/api/v1/access-assignments",
        json={
            "employee_id": str(employee.id),
            "profile_id": profile["id"],
            "valid_from": "2025-01-01",
            "valid_to": "2025-12-31",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 201
    assignment = resp.json()

    listing = (await client.get(
        "/api/v1/access-assignments", params={"employee_id": str(employee.id)}, headers=admin_headers,
    )).json()
    assert listing["meta"]["total"] == 1

    resp = await client.delete(f"/api/v1/access-profiles/{profile['id']}", headers=admin_headers)
    assert resp.status_code == 409

    resp = await client.patch(
        f"/api/v1/access-assignments/{assignment['id']}",
        json={"valid_to": "2024-06-30"},
        headers=admin_headers,
    )
    assert resp.status_code == 422


async def test_assignment_unknown_employee(client, admin_headers, profile):
    resp = await client.post(
        "/api/v1/access-assignments",
        json={"employee_id": "00000000-0000-0000-0000-000000000001", "profile_id": profile["id"]},
        headers=admin_headers,
    )
    assert resp.status_code == 422
    assert "employee_id" in resp.json()["errors"]


async def test_assignment_dates_validated(client, admin_headers, employee, profile):
    resp = await client.post(
        "/api/v1/access-assignments",
        json={
            "employee_id": str(employee.id),
            "profile_id": profile["id"],
            "valid_from": "2025-06-01",
            "valid_to": "2025-05-31",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 422


async def test_employee_cannot_manage_access(client, employee_headers):
    resp = await client.get("/api/v1/access-zones", headers=employee_headers)
    assert resp.status_code == 403
