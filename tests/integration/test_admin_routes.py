from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from portfolio_dashboard.api import dependencies
from portfolio_dashboard.domain.services.admin_gate import AdminGate
from tests.fakes import ADMIN_PASSWORD, ADMIN_SECRET


async def _create(client, headers, name):
    return await client.post("/admin/investors", json={"name": name}, headers=headers)


async def _investors(client):
    resp = await client.get("/portfolio")
    assert resp.status_code == 200
    return resp.json()["investors"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_login_sets_day_scoped_cookie(client):
    bad = await client.post("/admin/login", json={"password": "wrong"})
    assert bad.status_code == 401
    assert bad.json() == {"error": "Invalid password"}

    resp = await client.post("/admin/login", json={"password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    cookie = resp.headers["set-cookie"]
    assert cookie.startswith("admin_token=")
    assert "HttpOnly" in cookie
    assert "Max-Age=" in cookie

    # The client keeps the cookie for later requests
    session = await client.get("/admin/session")
    assert session.json() == {"isAdmin": True}


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "zone, expires",
    [
        ("America/New_York", "tue, 11 jun 2024 04:00:00 gmt"),
        ("UTC", "tue, 11 jun 2024 00:00:00 gmt"),
        ("Asia/Kolkata", "mon, 10 jun 2024 18:30:00 gmt"),
    ],
)
async def test_login_cookie_expires_at_local_midnight(app, client, zone, expires):
    tz = ZoneInfo(zone)
    gate = AdminGate(
        secret_key=ADMIN_SECRET,
        password=ADMIN_PASSWORD,
        tz=tz,
        clock=FixedClock(datetime(2024, 6, 10, 21, 15, tzinfo=tz)),
    )
    app.dependency_overrides[dependencies.admin_gate_dependency] = lambda: gate

    resp = await client.post("/admin/login", json={"password": ADMIN_PASSWORD})

    assert resp.status_code == 200
    cookie = resp.headers["set-cookie"]
    # 21:15 local leaves 2h45m of the day
    assert "Max-Age=9900" in cookie
    assert f"expires={expires}" in cookie.lower()

    token = cookie.split(";")[0].split("=", 1)[1]
    session = await client.get("/admin/session", headers={dependencies.ADMIN_HEADER: token})
    assert session.json() == {"isAdmin": True}


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("zone", ["America/New_York", None])
async def test_login_on_the_live_clock(app, client, zone):
    tz = ZoneInfo(zone) if zone else None
    gate = AdminGate(secret_key=ADMIN_SECRET, password=ADMIN_PASSWORD, tz=tz)
    app.dependency_overrides[dependencies.admin_gate_dependency] = lambda: gate

    resp = await client.post("/admin/login", json={"password": ADMIN_PASSWORD})

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert "expires=" in resp.headers["set-cookie"].lower()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_session_and_logout(client, admin_headers):
    assert (await client.get("/admin/session")).json() == {"isAdmin": False}
    assert (await client.get("/admin/session", headers=admin_headers)).json() == {"isAdmin": True}

    resp = await client.post("/admin/logout")
    assert resp.status_code == 200
    assert "Max-Age=0" in resp.headers["set-cookie"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_writes_require_admin(client):
    assert (await client.post("/admin/investors", json={"name": "Ada"})).status_code == 401
    assert (await client.patch("/admin/investors/ada", json={"name": "Ada"})).status_code == 401
    assert (await client.delete("/admin/investors/ada")).status_code == 401
    resp = await client.post(
        "/admin/investors/ada/allocations",
        json={"symbol": "AAPL", "invested": 1, "shares": 1},
        headers={"X-Admin-Token": "forged"},
    )
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}
    assert await _investors(client) == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_rename_delete_investor(client, admin_headers):
    resp = await _create(client, admin_headers, "Ada Lovelace")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "slug": "ada-lovelace"}

    resp = await client.patch("/admin/investors/ada-lovelace", json={"name": "Ada L."}, headers=admin_headers)
    assert resp.json() == {"ok": True, "slug": "ada-l."}

    resp = await client.delete("/admin/investors/ada-l.", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert await _investors(client) == []

    resp = await client.delete("/admin/investors/ada-l.", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Investor not found."}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_duplicate_investor_is_conflict_and_store_unchanged(client, admin_headers):
    await _create(client, admin_headers, "Ada Lovelace")

    resp = await _create(client, admin_headers, "ada lovelace")

    assert resp.status_code == 409
    assert "error" in resp.json()
    assert [i["name"] for i in await _investors(client)] == ["Ada Lovelace"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_blank_name_is_bad_request(client, admin_headers):
    resp = await _create(client, admin_headers, "  ")
    assert resp.status_code == 400
    resp = await client.post("/admin/investors", headers=admin_headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_allocation_crud(client, admin_headers):
    await _create(client, admin_headers, "Ada")

    resp = await client.post(
        "/admin/investors/ada/allocations",
        json={"symbol": "aapl", "amount": 1000, "shares": 8, "dateInvested": "2023-01-01"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    allocation = resp.json()["allocation"]
    assert allocation["symbol"] == "AAPL"
    assert allocation["invested"] == 1000
    assert allocation["shares"] == 8
    assert allocation["dateInvested"] == "2023-01-01"
    allocation_id = allocation["id"]

    resp = await client.patch(
        "/admin/investors/ada/allocations",
        json={"id": allocation_id, "invested": 1200},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["allocation"]["invested"] == 1200

    [ada] = await _investors(client)
    assert ada["totalInvested"] == 1200
    assert ada["holdings"][0]["id"] == allocation_id
    assert ada["holdings"][0]["allocationIndex"] == 0

    resp = await client.request(
        "DELETE",
        "/admin/investors/ada/allocations",
        json={"allocationIndex": "0"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    [ada] = await _investors(client)
    assert ada["holdings"] == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_invalid_allocations_are_rejected(client, admin_headers):
    await _create(client, admin_headers, "Ada")

    resp = await client.post(
        "/admin/investors/ada/allocations",
        json={"symbol": "ZZZZ", "invested": 100, "shares": 1},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Ticker is not valid. Please enter a real company symbol."}

    resp = await client.post(
        "/admin/investors/ada/allocations",
        json={"symbol": "AAPL", "invested": -5, "shares": 1},
        headers=admin_headers,
    )
    assert resp.status_code == 400

    resp = await client.post(
        "/admin/investors/nobody/allocations",
        json={"symbol": "AAPL", "invested": 5, "shares": 1},
        headers=admin_headers,
    )
    assert resp.status_code == 404

    resp = await client.patch(
        "/admin/investors/ada/allocations",
        json={"id": "missing", "shares": 2},
        headers=admin_headers,
    )
    assert resp.status_code == 404

    [ada] = await _investors(client)
    assert ada["holdings"] == []
