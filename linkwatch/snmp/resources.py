"""
CPU / memory sampling through vendor or custom OIDs.
"""
from __future__ import annotations

import logging
import math
from typing import Any

from linkwatch.core.types import ResourceUsage
from linkwatch.snmp.codec import to_float
from linkwatch.snmp.engine import SnmpCredentials, SnmpSessionFactory, normalize_oid
from linkwatch.topology.vendors import get_vendor_strategy, infer_vendor

logger = logging.getLogger(__name__)


def _percentage(value: Any) -> float:
    """Missing values count as 0; anything outside 0..100 is discarded."""
    if value is None:
        return 0.0
    number = to_float(value)
    if not math.isfinite(number) or number < 0 or number > 100:
        return 0.0
    return number


def resolve_resource_oids(link: Any, vendor: Any | None) -> tuple[str | None, str | None]:
    """
    Pick the CPU and memory OIDs for a link.

    Each one independently: the link's custom OID wins, then the equipment
    vendor's OID, then the default of the vendor family the row maps to.
    """
    cpu_oid = getattr(link, "custom_cpu_oid", None) or None
    memory_oid = getattr(link, "custom_memory_oid", None) or None
    if vendor is None:
        return cpu_oid, memory_oid

    cpu_oid = cpu_oid or getattr(vendor, "cpu_oid", None) or None
    memory_oid = memory_oid or getattr(vendor, "memory_oid", None) or None
    if cpu_oid is None or memory_oid is None:
        strategy = get_vendor_strategy(infer_vendor(
            getattr(vendor, "slug", None), getattr(vendor, "name", None),
        ))
        default_cpu, default_memory = strategy.resource_oids()
        cpu_oid = cpu_oid or default_cpu
        memory_oid = memory_oid or default_memory
    return cpu_oid, memory_oid


class ResourceSampler:
    """Reads CPU / memory utilisation percentages."""

    def __init__(self, session_factory: SnmpSessionFactory | None = None) -> None:
        self._sessions = session_factory or SnmpSessionFactory()

    async def get_system_resources(
        self,
        ip: str,
        credentials: SnmpCredentials,
        cpu_oid: str | None = None,
        memory_oid: str | None = None,
    ) -> ResourceUsage | None:
        """
        Single GET over whichever OIDs are given.

        Returns None when no OID is given, or on SNMP error/timeout.
        noSuchObject / noSuchInstance answers count as 0.
        """
        if not cpu_oid and not memory_oid:
            return None

        oids = [normalize_oid(o) for o in (cpu_oid, memory_oid) if o]
        session = self._sessions.create(ip, credentials)
        try:
            outcome = await session.guarded(session.get(*oids))
        finally:
            session.close()

        if not outcome.ok:
            logger.debug(
                "System resources unavailable for %s: %s",
                ip, "timeout" if outcome.timed_out else outcome.error,
            )
            return None

        values = outcome.value or {}
        return ResourceUsage(
            cpu_usage=_percentage(values.get(normalize_oid(cpu_oid))) if cpu_oid else 0.0,
            memory_usage=_percentage(values.get(normalize_oid(memory_oid))) if memory_oid else 0.0,
        )
