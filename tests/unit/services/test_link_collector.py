"""
Unit tests for the Collector.

Runs full sweeps against an in-memory database with the prober and SNMP
samplers replaced by mocks.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from linkwatch.core.enums import EventType, LinkStatus
from linkwatch.core.types import CounterSample, PingResult, ResourceUsage
from linkwatch.db.models import EquipmentVendor, Link, SnmpProfile
from linkwatch.repositories.link import EventRepository, LinkRepository, MetricRepository
from linkwatch.services.collector import Collector

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

HEALTHY = PingResult(latency=12.0, packet_loss=0.0, success=True)
DOWN = PingResult.failed()


# ── Helpers ──────────────────────────────────────────────────────


async def _seed(session_context) -> dict[str, int]:
    async with session_context() as session:
        profile = SnmpProfile(name="core", version="2c", community="public")
        vendor = EquipmentVendor(
            name="Mikrotik", slug="mikrotik", cpu_oid="1.3.6.1.2.1.25.3.3.1.2.1",
        )
        session.add_all([profile, vendor])
        await session.flush()

        snmp_link = Link(
            name="acme-wan",
            address="10.1.1.1",
            snmp_router_ip="10.1.1.254",
            snmp_profile_id=profile.id,
            snmp_interface_index=3,
            equipment_vendor_id=vendor.id,
            custom_memory_oid="1.3.6.1.4.1.9999.1.0",
            client_id=7,
        )
        ping_only = Link(name="globex-wan", address="10.3.3.3", client_id=8)
        disabled = Link(name="old-wan", address="10.9.9.9", monitoring_enabled=False)
        session.add_all([snmp_link, ping_only, disabled])
        await session.flush()
        return {"snmp": snmp_link.id, "ping": ping_only.id, "disabled": disabled.id}


def _collector(session_context, pings: dict[str, object], samples=None, usage=None):
    def _ping(ip: str) -> PingResult:
        result = pings[ip]
        if isinstance(result, Exception):
            raise result
        return result

    prober = MagicMock()
    prober.ping = AsyncMock(side_effect=_ping)
    counters = MagicMock()
    counters.get_interface_traffic = (
        AsyncMock(side_effect=samples) if samples else AsyncMock(return_value=None)
    )
    resources = MagicMock()
    resources.get_system_resources = AsyncMock(return_value=usage)

    collector = Collector(
        prober=prober,
        counter_sampler=counters,
        resource_sampler=resources,
        session_factory=MagicMock(),
        session_context=session_context,
    )
    return collector, prober, counters, resources


# ── Tests ────────────────────────────────────────────────────────


class TestCollector:

    @pytest.mark.asyncio
    async def test_empty_database(self, session_context):
        collector, *_ = _collector(session_context, {})
        assert await collector.collect_all() == {"total": 0, "success": 0, "failed": 0}

    @pytest.mark.asyncio
    async def test_sweep_skips_disabled_links(self, session_context):
        ids = await _seed(session_context)
        collector, prober, _, _ = _collector(
            session_context, {"10.1.1.254": HEALTHY, "10.3.3.3": HEALTHY},
        )

        result = await collector.collect_all()

        assert result == {"total": 2, "success": 2, "failed": 0}
        pinged = sorted(call.args[0] for call in prober.ping.await_args_list)
        assert pinged == ["10.1.1.254", "10.3.3.3"]
        assert await collector.collect_link_by_id(ids["disabled"]) is None

    @pytest.mark.asyncio
    async def test_bandwidth_from_second_sample(self, session_context):
        ids = await _seed(session_context)
        samples = [
            CounterSample(in_octets=5_000_000, out_octets=2_000_000, timestamp=T0),
            CounterSample(
                in_octets=6_000_000,
                out_octets=2_400_000,
                timestamp=T0 + timedelta(seconds=10),
            ),
        ]
        collector, _, counters, resources = _collector(
            session_context,
            {"10.1.1.254": HEALTHY, "10.3.3.3": HEALTHY},
            samples=samples,
            usage=ResourceUsage(cpu_usage=37.5, memory_usage=61.0),
        )

        await collector.collect_all()
        async with session_context() as session:
            link = await LinkRepository(session).get_by_id(ids["snmp"])
            assert link.current_download == 0.0
            assert link.current_upload == 0.0

        await collector.collect_all()
        async with session_context() as session:
            link = await LinkRepository(session).get_by_id(ids["snmp"])
            assert link.current_download == pytest.approx(0.8)
            assert link.current_upload == pytest.approx(0.32)
            assert link.cpu_usage == 37.5
            assert link.memory_usage == 61.0
            assert link.latency == 12.0
            assert link.status == LinkStatus.OPERATIONAL
            assert link.last_updated is not None

            metrics = await MetricRepository(session).get_recent(ids["snmp"])
            assert len(metrics) == 2
            assert sorted(m.download for m in metrics) == pytest.approx([0.0, 0.8])
            assert all(m.client_id == 7 for m in metrics)

        assert collector.previous_sample(ids["snmp"]) == samples[1]
        ip, _, if_index = counters.get_interface_traffic.await_args.args
        assert (ip, if_index) == ("10.1.1.254", 3)
        _, _, cpu_oid, memory_oid = resources.get_system_resources.await_args.args
        assert cpu_oid == "1.3.6.1.2.1.25.3.3.1.2.1"
        assert memory_oid == "1.3.6.1.4.1.9999.1.0"

    @pytest.mark.asyncio
    async def test_ping_only_link_skips_snmp(self, session_context):
        ids = await _seed(session_context)
        collector, _, counters, resources = _collector(
            session_context, {"10.1.1.254": HEALTHY, "10.3.3.3": HEALTHY},
        )

        await collector.collect_link_by_id(ids["ping"])

        counters.get_interface_traffic.assert_not_awaited()
        resources.get_system_resources.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_outage_events_are_edge_triggered(self, session_context):
        ids = await _seed(session_context)
        collector, *_ = _collector(
            session_context, {"10.1.1.254": HEALTHY, "10.3.3.3": DOWN},
        )

        await collector.collect_all()
        await collector.collect_all()

        async with session_context() as session:
            link = await LinkRepository(session).get_by_id(ids["ping"])
            assert link.status == LinkStatus.OFFLINE
            assert link.packet_loss == 100.0
            assert link.uptime == pytest.approx(98.98)

            events = await EventRepository(session).get_for_link(ids["ping"])
            assert len(events) == 1
            assert events[0].type == EventType.ERROR
            assert events[0].title == "Link globex-wan offline"
            assert events[0].client_id == 8

            assert await EventRepository(session).get_for_link(ids["snmp"]) == []

    @pytest.mark.asyncio
    async def test_failing_link_does_not_abort_sweep(self, session_context):
        ids = await _seed(session_context)
        collector, *_ = _collector(
            session_context,
            {"10.1.1.254": RuntimeError("socket exploded"), "10.3.3.3": HEALTHY},
        )

        result = await collector.collect_all()

        assert result == {"total": 2, "success": 1, "failed": 1}
        async with session_context() as session:
            assert await MetricRepository(session).get_recent(ids["snmp"]) == []
            assert len(await MetricRepository(session).get_recent(ids["ping"])) == 1
