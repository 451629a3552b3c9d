"""Accounts and export interfaces — CRUD and the ordered account mapping."""

from __future__ import annotations

import pytest


@pytest.fixture
async def accounts(client, admin_headers) -> list[str]:
    ids = []
    for code, name in (("OT", "Overtime"), ("NB", "Night bonus"), ("SB", "Sunday bonus"), ("HB", "Holiday bonus")):
        resp = await client.post(
            "/api/v1/accounts",
            json={"code": code, "name": name, "account_type": "bonus"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        ids.append(resp.json()["id"])
    return ids


@pytest.fixture
async def interface(client, admin_headers) -> dict:
    resp = await client.post(
        "/api/v1/export-interfaces",
        json={"interface_number": 1, "name": "Payroll", "mandant_number": "4711"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    return resp.json()


async def _set(client, headers, interface_id, account_ids):
    return await client.put(
        f"/api/v1/export-interfaces/{interface_id}/accounts",
        json={"account_ids": account_ids},
        headers=headers,
    )


async def _move(client, headers, interface_id, selected, direction):
    return await client.post(
        f"/api/v1/export-interfaces/{interface_id}/accounts/move",
        json={"selected": selected, "direction": direction},
        headers=headers,
    )


# ── Accounts ────────────────────────────────────────────────────────


async def test_account_code_unique(client, admin_headers, accounts):
    resp = await client.post(
        "/api/v1/accounts",
        json={"code": "OT", "name": "Duplicate"},
        headers=admin_headers,
    )
    assert resp.status_code == 409


async def test_account_defaults(client, admin_headers):
    resp = await client.post("/api/v1/accounts", json={"code": "FLEX", "name": "Flextime"}, headers=admin_headers)
    data = resp.json()
    assert data["account_type"] == "day"
    assert data["unit"] == "minutes"
    assert data["is_payroll_relevant"] is True


async def test_account_in_use_cannot_be_deleted(client, admin_headers, accounts, interface):
    await _set(client, admin_headers, interface["id"], [accounts[0]])

    resp = await client.delete(f"/api/v1/accounts/{accounts[0]}", headers=admin_headers)
    assert resp.status_code == 409
    assert "export interfaces" in resp.json()["detail"]

    resp = await client.delete(f"/api/v1/accounts/{accounts[1]}", headers=admin_headers)
    assert resp.status_code == 204


# ── Interfaces ──────────────────────────────────────────────────────


async def test_interface_number_unique(client, admin_headers, interface):
    resp = await client.post(
        "/api/v1/export-interfaces",
        json={"interface_number": 1, "name": "Other"},
        headers=admin_headers,
    )
    assert resp.status_code == 409
    assert "interface_number" in resp.json()["errors"]


async def test_interface_number_positive(client, admin_headers):
    resp = await client.post(
        "/api/v1/export-interfaces",
        json={"interface_number": 0, "name": "Zero"},
        headers=admin_headers,
    )
    assert resp.status_code == 422


async def test_delete_with_mapped_accounts(client, admin_headers, accounts, interface):
    await _set(client, admin_headers, interface["id"], accounts[:2])

    resp = await client.delete(f"/api/v1/export-interfaces/{interface['id']}", headers=admin_headers)
    assert resp.status_code == 409

    resp = await client.delete(
        f"/api/v1/export-interfaces/{interface['id']}",
        params={"force": True},
        headers=admin_headers,
    )
    assert resp.status_code == 204

    # Links are gone with the interface, so accounts are free again
    resp = await client.delete(f"/api/v1/accounts/{accounts[0]}", headers=admin_headers)
    assert resp.status_code == 204


async def test_manager_cannot_manage_interfaces(client, manager_headers):
    resp = await client.get("/api/v1/export-interfaces", headers=manager_headers)
    assert resp.status_code == 403


# ── Account mapping ─────────────────────────────────────────────────


async def test_set_accounts_keeps_order(client, admin_headers, accounts, interface):
    order = [accounts[2], accounts[0], accounts[3]]
    resp = await _set(client, admin_headers, interface["id"], order)
    assert resp.status_code == 200
    assert resp.json()["account_ids"] == order
    assert [a["code"] for a in resp.json()["accounts"]] == ["SB", "OT", "HB"]

    resp = await client.get(f"/api/v1/export-interfaces/{interface['id']}/accounts", headers=admin_headers)
    assert resp.json()["account_ids"] == order

    resp = await client.get(f"/api/v1/export-interfaces/{interface['id']}", headers=admin_headers)
    assert resp.json()["account_ids"] == order


async def test_set_accounts_replaces_list(client, admin_headers, accounts, interface):
    await _set(client, admin_headers, interface["id"], accounts)
    resp = await _set(client, admin_headers, interface["id"], [accounts[1]])
    assert resp.json()["account_ids"] == [accounts[1]]

    resp = await _set(client, admin_headers, interface["id"], [])
    assert resp.json()["account_ids"] == []


async def test_set_accounts_rejects_duplicates_and_unknown(client, admin_headers, accounts, interface):
    resp = await _set(client, admin_headers, interface["id"], [accounts[0], accounts[0]])
    assert resp.status_code == 422

    resp = await _set(client, admin_headers, interface["id"], ["00000000-0000-0000-0000-000000000001"])
    assert resp.status_code == 422
    assert "account_ids" in resp.json()["errors"]


async def test_move_up_and_down(client, admin_headers, accounts, interface):
    a, b, c, d = accounts
    await _set(client, admin_headers, interface["id"], [a, b, c, d])

    resp = await _move(client, admin_headers, interface["id"], [c], "up")
    assert resp.json()["account_ids"] == [a, c, b, d]

    resp = await _move(client, admin_headers, interface["id"], [a, c], "down")
    assert resp.json()["account_ids"] == [b, a, c, d]

    # The first entry cannot move further up
    resp = await _move(client, admin_headers, interface["id"], [b], "up")
    assert resp.json()["account_ids"] == [b, a, c, d]

    resp = await client.get(f"/api/v1/export-interfaces/{interface['id']}/accounts", headers=admin_headers)
    assert resp.json()["account_ids"] == [b, a, c, d]


async def test_move_unassigned_account(client, admin_headers, accounts, interface):
    await _set(client, admin_headers, interface["id"], accounts[:2])

    resp = await _move(client, admin_headers, interface["id"], [accounts[3]], "up")
    assert resp.status_code == 422
    assert "selected" in resp.json()["errors"]
