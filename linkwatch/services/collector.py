"""
Collector - one monitoring sweep over all enabled links.

Per link:
1. Ping the monitored address
2. With an SNMP profile and router IP: sample ifHC counters (bandwidth
   against the previous sample) and CPU / memory
3. Evaluate health, persist edge events
4. Update the link row and append a metric sample

Links are collected in parallel with bounded concurrency, each with its own
DB session. A failing link is logged and counted, never aborting the sweep.
"""
from __future__ import annotations

import asyncio
import logging
import math
import time as _time
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from linkwatch.core.config import settings
from linkwatch.core.enums import LinkStatus
from linkwatch.core.types import CounterSample, ResourceUsage, TrafficRate, utcnow
from linkwatch.db.base import get_session_context
from linkwatch.db.models import Link
from linkwatch.monitoring.health import HealthAssessment, Thresholds, evaluate
from linkwatch.monitoring.prober import Prober, get_prober
from linkwatch.repositories.link import (
    EquipmentVendorRepository,
    EventRepository,
    LinkRepository,
    MetricRepository,
    SnmpProfileRepository,
)
from linkwatch.snmp.engine import SnmpCredentials, SnmpSessionFactory
from linkwatch.snmp.resources import ResourceSampler, resolve_resource_oids
from linkwatch.snmp.traffic import CounterSampler, calculate_bandwidth

logger = logging.getLogger(__name__)

SessionContext = Callable[[], AbstractAsyncContextManager[AsyncSession]]


def _finite(value: Any) -> float:
    """Non-finite or negative measurements are stored as 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


class Collector:
    """Runs monitoring sweeps; holds the per-link previous counter samples."""

    def __init__(
        self,
        prober: Prober | None = None,
        counter_sampler: CounterSampler | None = None,
        resource_sampler: ResourceSampler | None = None,
        session_factory: SnmpSessionFactory | None = None,
        session_context: SessionContext = get_session_context,
    ) -> None:
        sessions = session_factory or SnmpSessionFactory()
        self._prober = prober or get_prober()
        self._counters = counter_sampler or CounterSampler(sessions)
        self._resources = resource_sampler or ResourceSampler(sessions)
        self._session_context = session_context
        self._previous: dict[int, CounterSample] = {}
        self._locks: dict[int, asyncio.Lock] = {}

    def _lock_for(self, link_id: int) -> asyncio.Lock:
        lock = self._locks.get(link_id)
        if lock is None:
            lock = self._locks[link_id] = asyncio.Lock()
        return lock

    def previous_sample(self, link_id: int) -> CounterSample | None:
        return self._previous.get(link_id)

    # ── Sweep ────────────────────────────────────────────────────

    async def collect_all(self) -> dict[str, int]:
        """
        Collect every link with monitoring enabled.

        Returns:
            dict: {total, success, failed}
        """
        t0 = _time.monotonic()
        async with self._session_context() as session:
            links = await LinkRepository(session).get_monitored_links()
            link_ids = [link.id for link in links]

        results = {"total": len(link_ids), "success": 0, "failed": 0}
        if not link_ids:
            logger.debug("No monitored links, skipping sweep")
            return results

        sem = asyncio.Semaphore(settings.monitoring.concurrency)

        async def _collect_one(link_id: int) -> str:
            async with sem:
                try:
                    await self.collect_link_by_id(link_id)
                    return "ok"
                except Exception as e:
                    logger.error("Collection failed for link %s: %s", link_id, e)
                    return "fail"

        outcomes = await asyncio.gather(*(_collect_one(i) for i in link_ids))
        results["success"] = outcomes.count("ok")
        results["failed"] = outcomes.count("fail")

        logger.info(
            "Monitoring sweep: %d/%d ok, %.2fs",
            results["success"], results["total"], _time.monotonic() - t0,
        )
        return results

    async def collect_link_by_id(self, link_id: int) -> HealthAssessment | None:
        async with self._session_context() as session:
            link = await LinkRepository(session).get_by_id(link_id)
            if link is None or not link.monitoring_enabled:
                return None
            return await self.collect_link(session, link)

    # ── Single link ──────────────────────────────────────────────

    async def collect_link(self, session: AsyncSession, link: Link) -> HealthAssessment:
        """Measure one link and persist the results in ``session``."""
        ping = await self._prober.ping(link.ip_to_monitor)

        rate = TrafficRate()
        usage = ResourceUsage()
        credentials = await self._credentials_for(session, link)
        if credentials is not None and link.snmp_router_ip:
            if link.snmp_interface_index is not None:
                rate = await self._sample_traffic(link, credentials)

            vendor = None
            if link.equipment_vendor_id:
                vendor = await EquipmentVendorRepository(session).get_by_id(
                    link.equipment_vendor_id,
                )
            cpu_oid, memory_oid = resolve_resource_oids(link, vendor)
            sampled = await self._resources.get_system_resources(
                link.snmp_router_ip, credentials, cpu_oid, memory_oid,
            )
            if sampled is not None:
                usage = sampled

        assessment = evaluate(
            link_name=link.name,
            ping=ping,
            previous_status=LinkStatus(link.status) if link.status else None,
            previous_latency=link.latency,
            previous_loss=link.packet_loss,
            current_uptime=link.uptime,
            thresholds=Thresholds.resolve(
                link.latency_threshold, link.packet_loss_threshold,
            ),
        )

        now = utcnow()
        events = EventRepository(session)
        for draft in assessment.events:
            await events.create(
                link_id=link.id,
                client_id=link.client_id,
                type=draft.type,
                title=draft.title,
                description=draft.description,
                resolved=draft.resolved,
                timestamp=now,
            )

        download = _finite(rate.download_mbps)
        upload = _finite(rate.upload_mbps)
        latency = _finite(ping.latency)
        packet_loss = _finite(ping.packet_loss)
        cpu = _finite(usage.cpu_usage)
        memory = _finite(usage.memory_usage)

        await LinkRepository(session).update(
            link,
            current_download=download,
            current_upload=upload,
            latency=latency,
            packet_loss=packet_loss,
            cpu_usage=cpu,
            memory_usage=memory,
            status=assessment.status,
            uptime=_finite(assessment.uptime),
            last_updated=now,
        )
        await MetricRepository(session).create(
            link_id=link.id,
            client_id=link.client_id,
            timestamp=now,
            download=download,
            upload=upload,
            latency=latency,
            packet_loss=packet_loss,
            cpu_usage=cpu,
            memory_usage=memory,
            error_rate=0.0,
        )

        logger.info(
            "Link %s: %s, %.1fms, %.1f%% loss, down %.2f / up %.2f Mbps, "
            "cpu %.0f%% mem %.0f%%, %d events",
            link.name, assessment.status.value, latency, packet_loss,
            download, upload, cpu, memory, len(assessment.events),
        )
        return assessment

    async def _credentials_for(
        self, session: AsyncSession, link: Link,
    ) -> SnmpCredentials | None:
        if not link.snmp_profile_id:
            return None
        profile = await SnmpProfileRepository(session).get_by_id(link.snmp_profile_id)
        if profile is None:
            logger.warning(
                "Link %s references missing SNMP profile %s",
                link.name, link.snmp_profile_id,
            )
            return None
        return profile.to_credentials()

    async def _sample_traffic(
        self, link: Link, credentials: SnmpCredentials,
    ) -> TrafficRate:
        """Take a counter sample and rate it against the previous one."""
        async with self._lock_for(link.id):
            current = await self._counters.get_interface_traffic(
                link.snmp_router_ip, credentials, link.snmp_interface_index,
            )
            if current is None:
                return TrafficRate()
            previous = self._previous.get(link.id)
            self._previous[link.id] = current

        if previous is None:
            return TrafficRate()
        return calculate_bandwidth(current, previous)


# ── Singleton ────────────────────────────────────────────────────

_collector: Collector | None = None


def get_collector() -> Collector:
    global _collector
    if _collector is None:
        _collector = Collector()
    return _collector
