"""
Unit tests for concentrator lookup endpoints.

The correlator is replaced by a mock; concentrators and SNMP profiles
live in an in-memory database.
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from linkwatch.api.endpoints.lookups import router
from linkwatch.core.types import CorporateLinkInfo, PppoeSessionInfo
from linkwatch.db.base import get_async_session
from linkwatch.db.models import Concentrator, SnmpProfile
from linkwatch.topology.correlator import get_session_correlator


# ── Helpers ──────────────────────────────────────────────────────


def _create_app(db_sessionmaker, correlator) -> FastAPI:
    app = FastAPI()
    app.include_router(router)

    async def _session():
        async with db_sessionmaker() as session:
            yield session

    app.dependency_overrides[get_async_session] = _session
    app.dependency_overrides[get_session_correlator] = lambda: correlator
    return app


@pytest.fixture
def correlator() -> MagicMock:
    mock = MagicMock()
    mock.lookup_pppoe_sessions = AsyncMock(return_value={})
    mock.lookup_corporate_link = AsyncMock(return_value=None)
    return mock


@pytest_asyncio.fixture
async def concentrator_id(db_sessionmaker) -> int:
    async with db_sessionmaker() as session:
        profile = SnmpProfile(name="bras", version="2c", community="s3cret")
        session.add(profile)
        await session.flush()
        concentrator = Concentrator(
            name="bras-01", vendor="mikrotik", ip_address="10.0.0.1",
            snmp_profile_id=profile.id,
        )
        session.add(concentrator)
        await session.commit()
        return concentrator.id


@pytest_asyncio.fixture
async def client(db_sessionmaker, correlator):
    app = _create_app(db_sessionmaker, correlator)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ── PPPoE ────────────────────────────────────────────────────────


class TestPppoeLookup:

    @pytest.mark.asyncio
    async def test_returns_located_sessions(self, client, correlator, concentrator_id):
        correlator.lookup_pppoe_sessions.return_value = {
            "client01": PppoeSessionInfo(
                username="client01", ip_address="100.64.10.5", if_index=17,
            ),
        }

        resp = await client.post(
            f"/concentrators/{concentrator_id}/pppoe-lookup",
            json={"usernames": ["client01", "client02"]},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["concentrator_id"] == concentrator_id
        assert data["requested"] == 2
        assert data["found"] == 1
        assert data["sessions"][0]["ip_address"] == "100.64.10.5"
        assert data["sessions"][0]["if_index"] == 17

        concentrator, usernames, credentials = correlator.lookup_pppoe_sessions.await_args.args
        assert concentrator.name == "bras-01"
        assert usernames == ["client01", "client02"]
        assert credentials.community == "s3cret"

    @pytest.mark.asyncio
    async def test_unknown_concentrator(self, client):
        resp = await client.post(
            "/concentrators/999/pppoe-lookup", json={"usernames": ["client01"]},
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_empty_username_list_rejected(self, client, concentrator_id):
        resp = await client.post(
            f"/concentrators/{concentrator_id}/pppoe-lookup", json={"usernames": []},
        )
        assert resp.status_code == 422


# ── Corporate ────────────────────────────────────────────────────


class TestCorporateLookup:

    @pytest.mark.asyncio
    async def test_found(self, client, correlator, concentrator_id):
        correlator.lookup_corporate_link.return_value = CorporateLinkInfo(
            vlan_interface="vlan100",
            if_index=15,
            ip_address="10.20.30.2",
            mac_address="4c:5e:0c:11:22:33",
            ip_block="191.52.254.164",
        )

        resp = await client.post(
            f"/concentrators/{concentrator_id}/corporate-lookup",
            json={"vlan_interface": "vlan100"},
        )

        assert resp.status_code == 200
        assert resp.json() == {
            "vlan_interface": "vlan100",
            "if_index": 15,
            "ip_address": "10.20.30.2",
            "mac_address": "4c:5e:0c:11:22:33",
            "ip_block": "191.52.254.164",
        }

    @pytest.mark.asyncio
    async def test_not_found(self, client, concentrator_id):
        resp = await client.post(
            f"/concentrators/{concentrator_id}/corporate-lookup",
            json={"vlan_interface": "vlan404"},
        )
        assert resp.status_code == 404
        assert "vlan404" in resp.json()["detail"]
