"""
Session correlator - locates subscribers and corporate circuits on a
concentrator.

PPPoE lookups try the vendor's candidate session tables in order and adopt
the first one that knows any requested user. When SNMP finds nothing and the
concentrator has SSH credentials, the vendor CLI is queried instead.

Corporate lookups resolve a VLAN interface to its ifIndex, then join the ARP
table (client IP / MAC) and the CIDR route table (public /32 block).
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from linkwatch.core.config import settings
from linkwatch.core.types import CorporateLinkInfo, PppoeSessionInfo
from linkwatch.snmp import oid_maps
from linkwatch.snmp.codec import to_text
from linkwatch.snmp.engine import SnmpCredentials, SnmpSession, SnmpSessionFactory
from linkwatch.ssh.client import SshClient, SshError, SshTarget
from linkwatch.topology.tables import (
    address_map,
    build_user_index,
    index_suffix,
    normalize_username,
    parse_arp_table,
    parse_cidr_routes,
    public_host_route,
    routes_by_if_index,
)
from linkwatch.topology.vendors import (
    SessionOidSet,
    VendorStrategy,
    get_vendor_strategy,
    infer_vendor,
)

logger = logging.getLogger(__name__)

_UNASSIGNED_IP = "0.0.0.0"


class SessionCorrelator:
    """PPPoE / corporate circuit lookups against concentrators."""

    def __init__(
        self,
        session_factory: SnmpSessionFactory | None = None,
        ssh_client: SshClient | None = None,
        walk_timeout: float | None = None,
    ) -> None:
        self._sessions = session_factory or SnmpSessionFactory()
        self._ssh = ssh_client or SshClient()
        self._walk_timeout = walk_timeout or settings.topology.walk_timeout

    # ── PPPoE ────────────────────────────────────────────────────

    async def lookup_pppoe_sessions(
        self,
        concentrator: Any,
        usernames: list[str],
        credentials: SnmpCredentials | None = None,
    ) -> dict[str, PppoeSessionInfo]:
        """
        Locate the sessions of ``usernames``.

        Returns a map keyed by the requested username; users that could not
        be located are absent. Never raises.
        """
        wanted = {normalize_username(u): u for u in usernames if u and u.strip()}
        if not wanted:
            return {}

        strategy = get_vendor_strategy(infer_vendor(
            concentrator.vendor, concentrator.name, concentrator.model,
        ))

        results: dict[str, PppoeSessionInfo] = {}
        if concentrator.ip_address:
            try:
                results = await self._lookup_via_snmp(
                    concentrator, strategy, wanted, credentials,
                )
            except Exception as e:
                logger.error(
                    "PPPoE SNMP lookup failed on %s: %s", concentrator.name, e,
                )
        else:
            logger.warning("Concentrator %s has no IP address", concentrator.name)

        if not results and concentrator.ssh_user and concentrator.ssh_password:
            logger.info(
                "No SNMP sessions found on %s, falling back to SSH",
                concentrator.name,
            )
            results = await self._lookup_via_ssh(concentrator, strategy, wanted)

        logger.info(
            "PPPoE lookup on %s: %d/%d users located",
            concentrator.name, len(results), len(wanted),
        )
        return results

    async def lookup_pppoe_session(
        self,
        concentrator: Any,
        username: str,
        credentials: SnmpCredentials | None = None,
    ) -> PppoeSessionInfo | None:
        results = await self.lookup_pppoe_sessions(
            concentrator, [username], credentials,
        )
        return results.get(username)

    async def _walk_pair(
        self, session: SnmpSession, oid_set: SessionOidSet,
    ) -> tuple[list[tuple[str, Any]], list[tuple[str, Any]]]:
        users, addresses = await asyncio.gather(
            session.walk_within(oid_set.user_oid, self._walk_timeout),
            session.walk_within(oid_set.address_oid, self._walk_timeout),
        )
        return users, addresses

    async def _lookup_via_snmp(
        self,
        concentrator: Any,
        strategy: VendorStrategy,
        wanted: dict[str, str],
        credentials: SnmpCredentials | None,
    ) -> dict[str, PppoeSessionInfo]:
        results: dict[str, PppoeSessionInfo] = {}

        async with self._sessions.create(concentrator.ip_address, credentials) as session:
            adopted: SessionOidSet | None = None
            for oid_set in strategy.session_oid_sets():
                user_rows, address_rows = await self._walk_pair(session, oid_set)
                user_index = build_user_index(user_rows, oid_set.user_oid)
                logger.debug(
                    "%s on %s: %d users, %d addresses",
                    oid_set.name, concentrator.name,
                    len(user_index), len(address_rows),
                )
                if not user_index.keys() & wanted.keys():
                    continue

                adopted = oid_set
                addresses = address_map(
                    address_rows, oid_set.address_oid, oid_set.scheme,
                )
                for key, username in wanted.items():
                    index = user_index.get(key)
                    if index is None:
                        continue
                    ip = addresses.get(index)
                    if not ip or ip == _UNASSIGNED_IP:
                        continue
                    results[username] = PppoeSessionInfo(
                        username=username,
                        ip_address=ip,
                        if_index=_as_if_index(index) if oid_set.keyed_by_if_index else None,
                    )
                logger.info(
                    "Using %s on %s (%d matches)",
                    oid_set.name, concentrator.name, len(results),
                )
                break

            if adopted is None or adopted.user_oid != oid_maps.IF_ALIAS:
                missing = {k: u for k, u in wanted.items() if u not in results}
                if missing:
                    results.update(await self._lookup_by_alias(session, missing))

            await self._fill_interface_names(session, results)

        return results

    async def _lookup_by_alias(
        self, session: SnmpSession, missing: dict[str, str],
    ) -> dict[str, PppoeSessionInfo]:
        """ifAlias reverse index, addresses through the CIDR route table."""
        alias_rows = await session.walk_within(oid_maps.IF_ALIAS, self._walk_timeout)
        alias_index = build_user_index(alias_rows, oid_maps.IF_ALIAS)
        hits = {k: u for k, u in missing.items() if k in alias_index}
        if not hits:
            return {}

        route_rows = await session.walk_within(
            oid_maps.IP_CIDR_ROUTE_IF_INDEX, self._walk_timeout,
        )
        routes = routes_by_if_index(
            parse_cidr_routes(route_rows, oid_maps.IP_CIDR_ROUTE_IF_INDEX)
        )

        found: dict[str, PppoeSessionInfo] = {}
        for key, username in hits.items():
            index = alias_index[key]
            ip = routes.get(index)
            if not ip or ip == _UNASSIGNED_IP:
                continue
            found[username] = PppoeSessionInfo(
                username=username, ip_address=ip, if_index=_as_if_index(index),
            )
        logger.debug("ifAlias retry located %d of %d users", len(found), len(missing))
        return found

    async def _fill_interface_names(
        self, session: SnmpSession, results: dict[str, PppoeSessionInfo],
    ) -> None:
        indexed = [info for info in results.values() if info.if_index is not None]
        if not indexed:
            return

        oids: list[str] = []
        for info in indexed:
            oids.append(f"{oid_maps.IF_NAME}.{info.if_index}")
            oids.append(f"{oid_maps.IF_ALIAS}.{info.if_index}")
        outcome = await session.guarded(session.get(*oids))
        if not outcome.ok:
            return

        values = outcome.value or {}
        for info in indexed:
            name = values.get(f"{oid_maps.IF_NAME}.{info.if_index}")
            alias = values.get(f"{oid_maps.IF_ALIAS}.{info.if_index}")
            if name is not None:
                info.if_name = to_text(name) or None
            if alias is not None:
                info.if_alias = to_text(alias) or None

    async def _lookup_via_ssh(
        self,
        concentrator: Any,
        strategy: VendorStrategy,
        wanted: dict[str, str],
    ) -> dict[str, PppoeSessionInfo]:
        if not strategy.cli_command or not concentrator.ip_address:
            return {}

        target = SshTarget(
            host=concentrator.ip_address,
            port=concentrator.ssh_port or settings.ssh.default_port,
            username=concentrator.ssh_user,
            password=concentrator.ssh_password,
        )
        try:
            output = await self._ssh.run_command(target, strategy.cli_command)
        except SshError as e:
            logger.error("SSH lookup failed on %s: %s", concentrator.name, e)
            return {}

        results: dict[str, PppoeSessionInfo] = {}
        for username in wanted.values():
            ip = strategy.parse_cli_output(output, username)
            if ip and ip != _UNASSIGNED_IP:
                results[username] = PppoeSessionInfo(username=username, ip_address=ip)
        return results

    # ── Corporate circuits ───────────────────────────────────────

    async def lookup_corporate_link(
        self,
        concentrator: Any,
        vlan_interface: str,
        credentials: SnmpCredentials | None = None,
    ) -> CorporateLinkInfo | None:
        """
        Resolve a VLAN interface to its client IP / MAC and public block.

        Returns None when the interface is not found or the lookup fails.
        """
        if not concentrator.ip_address or not vlan_interface.strip():
            return None
        try:
            return await self._lookup_corporate(
                concentrator, vlan_interface.strip(), credentials,
            )
        except Exception as e:
            logger.error(
                "Corporate lookup of %s on %s failed: %s",
                vlan_interface, concentrator.name, e,
            )
            return None

    async def _lookup_corporate(
        self,
        concentrator: Any,
        vlan_interface: str,
        credentials: SnmpCredentials | None,
    ) -> CorporateLinkInfo | None:
        async with self._sessions.create(concentrator.ip_address, credentials) as session:
            if_index = await self._find_if_index(session, vlan_interface)
            if if_index is None:
                logger.info(
                    "Interface %s not found on %s", vlan_interface, concentrator.name,
                )
                return None

            arp_rows, route_rows = await asyncio.gather(
                session.walk_within(
                    oid_maps.IP_NET_TO_MEDIA_PHYS_ADDRESS, self._walk_timeout,
                ),
                session.walk_within(
                    oid_maps.IP_CIDR_ROUTE_IF_INDEX, self._walk_timeout,
                ),
            )

        info = CorporateLinkInfo(vlan_interface=vlan_interface, if_index=if_index)
        for entry in parse_arp_table(arp_rows, oid_maps.IP_NET_TO_MEDIA_PHYS_ADDRESS):
            if entry.if_index == if_index:
                info.ip_address = entry.ip_address
                info.mac_address = entry.mac_address
                break

        routes = parse_cidr_routes(route_rows, oid_maps.IP_CIDR_ROUTE_IF_INDEX)
        info.ip_block = public_host_route(routes, if_index)

        logger.info(
            "Corporate %s on %s: ifIndex=%s ip=%s block=%s",
            vlan_interface, concentrator.name,
            if_index, info.ip_address, info.ip_block,
        )
        return info

    async def _find_if_index(
        self, session: SnmpSession, vlan_interface: str,
    ) -> int | None:
        """Exact, case-insensitive match on ifName first, then ifDescr."""
        wanted = vlan_interface.lower()
        for prefix in (oid_maps.IF_NAME, oid_maps.IF_DESCR):
            rows = await session.walk_within(prefix, self._walk_timeout)
            for oid, value in rows:
                if to_text(value).lower() == wanted:
                    return _as_if_index(index_suffix(oid, prefix))
        return None


def _as_if_index(index: str) -> int | None:
    try:
        return int(index)
    except ValueError:
        return None


# ── Singleton ────────────────────────────────────────────────────

_correlator: SessionCorrelator | None = None


def get_session_correlator() -> SessionCorrelator:
    global _correlator
    if _correlator is None:
        _correlator = SessionCorrelator()
    return _correlator
