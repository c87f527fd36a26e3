"""
Interface discovery and validation tools.

Used when binding a link to a router interface: list the interface table,
search it by name, re-validate a stored ifIndex, and test connectivity.
"""
from __future__ import annotations

import logging
import time as _time
from dataclasses import dataclass, field, replace
from typing import Any

from linkwatch.snmp import oid_maps
from linkwatch.snmp.codec import to_int, to_text
from linkwatch.snmp.engine import SnmpCredentials, SnmpSession, SnmpSessionFactory

logger = logging.getLogger(__name__)

# discovery walks get more time than regular polling
_DISCOVERY_MIN_TIMEOUT_MS = 15000
_DISCOVERY_RETRIES = 2


@dataclass
class SnmpInterface:
    """One row of the device interface table."""

    if_index: int
    if_name: str
    if_descr: str
    if_alias: str
    if_speed: int
    if_oper_status: str
    if_admin_status: str


@dataclass
class InterfaceSearchResult:
    """Result of searching the interface table by name."""

    found: bool
    match_type: str = "not_found"
    if_index: int | None = None
    if_name: str | None = None
    if_descr: str | None = None
    if_alias: str | None = None
    candidates: list[SnmpInterface] = field(default_factory=list)

    @classmethod
    def hit(cls, iface: SnmpInterface, match_type: str) -> InterfaceSearchResult:
        return cls(
            found=True,
            match_type=match_type,
            if_index=iface.if_index,
            if_name=iface.if_name,
            if_descr=iface.if_descr,
            if_alias=iface.if_alias,
        )


@dataclass
class IfIndexValidation:
    """Whether a stored ifIndex still points at the expected interface."""

    valid: bool
    current_if_name: str | None = None
    current_if_descr: str | None = None


@dataclass
class SnmpTestResult:
    """Outcome of a connectivity test (sysDescr / sysName / sysUpTime)."""

    success: bool
    response_time_ms: int
    sys_descr: str | None = None
    sys_name: str | None = None
    uptime: str | None = None
    error: str | None = None


@dataclass
class InterfaceStatus:
    oper_status: str
    admin_status: str


def format_speed(speed_bps: int) -> str:
    """Human readable link speed: 10 Gbps, 100 Mbps..."""
    if speed_bps >= 1_000_000_000:
        return f"{speed_bps / 1_000_000_000:.0f} Gbps"
    if speed_bps >= 1_000_000:
        return f"{speed_bps / 1_000_000:.0f} Mbps"
    if speed_bps >= 1_000:
        return f"{speed_bps / 1_000:.0f} Kbps"
    return f"{speed_bps} bps"


def format_uptime(ticks: int) -> str:
    """sysUpTime TimeTicks (1/100 s) as ``Xd Yh Zm``."""
    seconds = ticks // 100
    days = seconds // 86400
    hours = (seconds % 86400) // 3600
    minutes = (seconds % 3600) // 60
    return f"{days}d {hours}h {minutes}m"


def _column(rows: list[tuple[str, Any]], prefix: str) -> dict[int, Any]:
    """Map the trailing ifIndex of each walked OID to its value."""
    column: dict[int, Any] = {}
    for oid_str, value in rows:
        suffix = oid_str[len(prefix) + 1:]
        try:
            column[int(suffix)] = value
        except ValueError:
            continue
    return column


def match_interface(
    interfaces: list[SnmpInterface],
    if_name: str,
    if_descr: str | None = None,
    if_alias: str | None = None,
) -> InterfaceSearchResult:
    """
    Search the interface table, strictest rule first.

    Order: exact ifName, exact ifAlias, exact ifDescr, then a unique partial
    match on ifName, ifAlias, ifDescr. Partial matches only count when they
    are unambiguous. Comparisons are case-insensitive.
    """
    name = if_name.lower()
    alias = (if_alias or "").lower()
    descr = (if_descr or "").lower()

    for iface in interfaces:
        if iface.if_name.lower() == name:
            return InterfaceSearchResult.hit(iface, "exact_name")
    if alias:
        for iface in interfaces:
            if iface.if_alias and iface.if_alias.lower() == alias:
                return InterfaceSearchResult.hit(iface, "exact_alias")
    if descr:
        for iface in interfaces:
            if iface.if_descr.lower() == descr:
                return InterfaceSearchResult.hit(iface, "exact_descr")

    def _partial(value: str, wanted: str) -> bool:
        value = value.lower()
        return bool(value) and (wanted in value or value in wanted)

    partial_names = [i for i in interfaces if _partial(i.if_name, name)]
    if len(partial_names) == 1:
        return InterfaceSearchResult.hit(partial_names[0], "partial_name")
    if alias:
        partial_aliases = [i for i in interfaces if _partial(i.if_alias, alias)]
        if len(partial_aliases) == 1:
            return InterfaceSearchResult.hit(partial_aliases[0], "partial_alias")
    if descr:
        partial_descrs = [i for i in interfaces if _partial(i.if_descr, descr)]
        if len(partial_descrs) == 1:
            return InterfaceSearchResult.hit(partial_descrs[0], "partial_descr")

    return InterfaceSearchResult(
        found=False,
        candidates=partial_names or interfaces[:10],
    )


class InterfaceDiscovery:
    """SNMP interface-table tools bound to a session factory."""

    def __init__(self, session_factory: SnmpSessionFactory | None = None) -> None:
        self._sessions = session_factory or SnmpSessionFactory()

    def _discovery_session(self, ip: str, credentials: SnmpCredentials) -> SnmpSession:
        return self._sessions.create(ip, replace(
            credentials,
            timeout=max(credentials.timeout, _DISCOVERY_MIN_TIMEOUT_MS),
            retries=_DISCOVERY_RETRIES,
        ))

    async def discover_interfaces(
        self, ip: str, credentials: SnmpCredentials,
    ) -> list[SnmpInterface]:
        """
        Walk the interface table column by column.

        Columns are walked sequentially on one session to avoid flooding
        small devices. ifXTable columns are optional.
        """
        t0 = _time.monotonic()
        async with self._discovery_session(ip, credentials) as session:
            timeout = session.safety_timeout * 2

            async def column(prefix: str) -> dict[int, Any]:
                return _column(await session.walk_within(prefix, timeout), prefix)

            indexes = await column(oid_maps.IF_INDEX)
            descrs = await column(oid_maps.IF_DESCR)
            # some agents hide ifIndex; ifDescr carries the same keys
            if_indexes = set(indexes) or set(descrs)
            if not if_indexes:
                logger.info("No interfaces discovered for %s", ip)
                return []

            speeds = await column(oid_maps.IF_SPEED)
            admin = await column(oid_maps.IF_ADMIN_STATUS)
            oper = await column(oid_maps.IF_OPER_STATUS)
            names = await column(oid_maps.IF_NAME)
            high_speeds = await column(oid_maps.IF_HIGH_SPEED)
            aliases = await column(oid_maps.IF_ALIAS)

        interfaces: list[SnmpInterface] = []
        for if_index in sorted(if_indexes):
            descr = to_text(descrs.get(if_index))
            speed = to_int(speeds.get(if_index))
            high_speed = to_int(high_speeds.get(if_index))
            if high_speed > 0:
                speed = high_speed * 1_000_000
            interfaces.append(SnmpInterface(
                if_index=if_index,
                if_name=to_text(names.get(if_index)) or descr,
                if_descr=descr,
                if_alias=to_text(aliases.get(if_index)),
                if_speed=speed,
                if_oper_status=oid_maps.OPER_STATUS_MAP.get(
                    to_int(oper.get(if_index), 4), "unknown",
                ),
                if_admin_status=oid_maps.ADMIN_STATUS_MAP.get(
                    to_int(admin.get(if_index), 3), "testing",
                ),
            ))

        logger.info(
            "Discovered %d interfaces on %s in %.2fs",
            len(interfaces), ip, _time.monotonic() - t0,
        )
        return interfaces

    async def find_interface_by_name(
        self,
        ip: str,
        credentials: SnmpCredentials,
        if_name: str,
        if_descr: str | None = None,
        if_alias: str | None = None,
    ) -> InterfaceSearchResult:
        interfaces = await self.discover_interfaces(ip, credentials)
        if not interfaces:
            return InterfaceSearchResult(found=False)
        result = match_interface(interfaces, if_name, if_descr, if_alias)
        logger.info(
            "Interface search %r on %s: %s (ifIndex %s)",
            if_name, ip, result.match_type, result.if_index,
        )
        return result

    async def validate_if_index(
        self,
        ip: str,
        credentials: SnmpCredentials,
        if_index: int,
        expected_if_name: str | None,
        expected_if_descr: str | None,
    ) -> IfIndexValidation:
        """Check whether ifIndex still carries the expected ifName or ifDescr."""
        name_oid = f"{oid_maps.IF_NAME}.{if_index}"
        descr_oid = f"{oid_maps.IF_DESCR}.{if_index}"

        async with self._sessions.create(ip, credentials) as session:
            outcome = await session.guarded(session.get(name_oid, descr_oid))
        if not outcome.ok or not outcome.value:
            return IfIndexValidation(valid=False)

        current_name = to_text(outcome.value[name_oid]) if name_oid in outcome.value else None
        current_descr = to_text(outcome.value[descr_oid]) if descr_oid in outcome.value else None
        name_ok = bool(
            expected_if_name and current_name
            and current_name.lower() == expected_if_name.lower()
        )
        descr_ok = bool(
            expected_if_descr and current_descr
            and current_descr.lower() == expected_if_descr.lower()
        )
        return IfIndexValidation(
            valid=name_ok or descr_ok,
            current_if_name=current_name,
            current_if_descr=current_descr,
        )

    async def test_connection(
        self, ip: str, credentials: SnmpCredentials,
    ) -> SnmpTestResult:
        """GET sysDescr, sysName and sysUpTime."""
        t0 = _time.monotonic()
        async with self._sessions.create(ip, credentials) as session:
            outcome = await session.guarded(session.get(
                oid_maps.SYS_DESCR, oid_maps.SYS_NAME, oid_maps.SYS_UPTIME,
            ))
        elapsed_ms = int((_time.monotonic() - t0) * 1000)

        if not outcome.ok:
            return SnmpTestResult(
                success=False,
                response_time_ms=elapsed_ms,
                error="SNMP timeout" if outcome.timed_out else outcome.error,
            )

        values = outcome.value or {}
        result = SnmpTestResult(success=True, response_time_ms=elapsed_ms)
        if oid_maps.SYS_DESCR in values:
            result.sys_descr = to_text(values[oid_maps.SYS_DESCR])
        if oid_maps.SYS_NAME in values:
            result.sys_name = to_text(values[oid_maps.SYS_NAME])
        if oid_maps.SYS_UPTIME in values:
            ticks = to_int(values[oid_maps.SYS_UPTIME], -1)
            if ticks >= 0:
                result.uptime = format_uptime(ticks)
        return result

    async def get_interface_status(
        self, ip: str, credentials: SnmpCredentials, if_index: int,
    ) -> InterfaceStatus | None:
        """Oper / admin status of one interface; None on error."""
        oper_oid = f"{oid_maps.IF_OPER_STATUS}.{if_index}"
        admin_oid = f"{oid_maps.IF_ADMIN_STATUS}.{if_index}"

        async with self._sessions.create(ip, credentials) as session:
            outcome = await session.guarded(session.get(oper_oid, admin_oid))
        if not outcome.ok:
            logger.info(
                "Failed to get interface status for %s ifIndex %s: %s",
                ip, if_index, "timeout" if outcome.timed_out else outcome.error,
            )
            return None

        values = outcome.value or {}
        oper = to_int(values.get(oper_oid), 4) or 4
        admin = to_int(values.get(admin_oid), 3) or 3
        return InterfaceStatus(
            oper_status=oid_maps.OPER_STATUS_MAP.get(oper, "unknown"),
            admin_status=oid_maps.ADMIN_STATUS_MAP.get(admin, "testing"),
        )


# ── Singleton ────────────────────────────────────────────────────

_discovery: InterfaceDiscovery | None = None


def get_interface_discovery() -> InterfaceDiscovery:
    global _discovery
    if _discovery is None:
        _discovery = InterfaceDiscovery()
    return _discovery
