"""
Parsers for walked SNMP tables used by topology lookups.

Everything here is pure: input is the (oid, value) rows of a walk, output
is plain dicts / dataclasses keyed by the table index.
"""
from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass
from typing import Any

from linkwatch.core.enums import AddressScheme
from linkwatch.snmp.codec import format_mac, to_int, to_ip, to_text

_DECORATED_USER_RE = re.compile(r"<ppp(?:oe)?-([^>]+)>", re.IGNORECASE)

_NON_PUBLIC_NETWORKS = tuple(
    ipaddress.ip_network(net)
    for net in (
        "0.0.0.0/8",
        "10.0.0.0/8",
        "100.64.0.0/10",     # CGNAT shared space
        "127.0.0.0/8",
        "169.254.0.0/16",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "224.0.0.0/4",       # multicast
        "240.0.0.0/4",       # reserved + limited broadcast
    )
)


@dataclass(frozen=True)
class CidrRoute:
    """One ipCidrRouteTable row."""

    dest: str
    mask: str
    next_hop: str | None
    if_index: int


@dataclass(frozen=True)
class ArpEntry:
    """One ipNetToMediaTable row."""

    if_index: int
    ip_address: str
    mac_address: str | None


def index_suffix(oid: str, prefix: str) -> str:
    """Index portion after the column prefix ("<prefix>.5" -> "5")."""
    prefix = prefix.strip(".")
    if oid.startswith(prefix + "."):
        return oid[len(prefix) + 1:]
    return oid


def normalize_username(raw: str) -> str:
    """Strip ``<ppp-NAME>`` / ``<pppoe-NAME>`` decoration and lowercase."""
    text = raw.strip()
    match = _DECORATED_USER_RE.search(text)
    if match:
        text = match.group(1)
    return text.strip().lower()


def is_ipv4(text: str) -> bool:
    try:
        ipaddress.IPv4Address(text)
    except ValueError:
        return False
    return True


def is_routable_host(ip: str) -> bool:
    """Reject default, broadcast, multicast and loopback destinations."""
    if not is_ipv4(ip):
        return False
    first = int(ip.split(".", 1)[0])
    if ip == "0.0.0.0" or first == 0:
        return False
    if ip == "255.255.255.255":
        return False
    if 224 <= first <= 239:
        return False
    if first == 127:
        return False
    return True


def is_public_ip(ip: str) -> bool:
    """
    True for globally routable unicast IPv4.

    RFC1918, CGNAT 100.64.0.0/10, loopback, link-local, 0/8, multicast and
    reserved/broadcast space are not public.
    """
    try:
        addr = ipaddress.IPv4Address(ip.strip())
    except ValueError:
        return False
    return not any(addr in net for net in _NON_PUBLIC_NETWORKS)


def build_user_index(rows: list[tuple[str, Any]], prefix: str) -> dict[str, str]:
    """Normalized username -> table index."""
    index: dict[str, str] = {}
    for oid, value in rows:
        name = normalize_username(to_text(value))
        if name:
            index[name] = index_suffix(oid, prefix)
    return index


def parse_cidr_routes(rows: list[tuple[str, Any]], prefix: str) -> list[CidrRoute]:
    """Parse ipCidrRouteIfIndex rows (index = dest(4).mask(4).tos(1).nexthop(4))."""
    routes: list[CidrRoute] = []
    for oid, value in rows:
        parts = index_suffix(oid, prefix).split(".")
        if len(parts) < 8:
            continue
        next_hop = ".".join(parts[9:13]) if len(parts) >= 13 else None
        routes.append(CidrRoute(
            dest=".".join(parts[0:4]),
            mask=".".join(parts[4:8]),
            next_hop=next_hop,
            if_index=to_int(value, -1),
        ))
    return routes


def routes_by_if_index(routes: list[CidrRoute]) -> dict[str, str]:
    """ifIndex -> first routable destination seen through it."""
    by_index: dict[str, str] = {}
    for route in routes:
        if route.if_index < 0 or not is_routable_host(route.dest):
            continue
        by_index.setdefault(str(route.if_index), route.dest)
    return by_index


def public_host_route(routes: list[CidrRoute], if_index: int) -> str | None:
    """First public /32 routed through ``if_index``."""
    for route in routes:
        if (
            route.if_index == if_index
            and route.mask == "255.255.255.255"
            and is_public_ip(route.dest)
        ):
            return route.dest
    return None


def parse_arp_table(rows: list[tuple[str, Any]], prefix: str) -> list[ArpEntry]:
    """Parse ipNetToMediaPhysAddress rows (index = ifIndex.a.b.c.d)."""
    entries: list[ArpEntry] = []
    for oid, value in rows:
        parts = index_suffix(oid, prefix).split(".")
        if len(parts) != 5:
            continue
        try:
            if_index = int(parts[0])
        except ValueError:
            continue
        ip = ".".join(parts[1:5])
        if not is_ipv4(ip):
            continue
        entries.append(ArpEntry(
            if_index=if_index, ip_address=ip, mac_address=format_mac(value),
        ))
    return entries


def address_map(
    rows: list[tuple[str, Any]], prefix: str, scheme: AddressScheme,
) -> dict[str, str]:
    """
    Build ``index -> IP`` from an address table according to its scheme.

    DIRECT:     index = session/ifIndex, value = IP
    INVERTED:   index = IP, value = ifIndex (ipAdEntIfIndex)
    CIDR_ROUTE: ipCidrRouteIfIndex, first routable dest per ifIndex
    ROUTE:      ipRouteIfIndex, index = dest, value = ifIndex
    """
    if scheme is AddressScheme.CIDR_ROUTE:
        return routes_by_if_index(parse_cidr_routes(rows, prefix))

    result: dict[str, str] = {}
    for oid, value in rows:
        index = index_suffix(oid, prefix)
        if scheme is AddressScheme.DIRECT:
            ip = to_ip(value)
            if is_ipv4(ip):
                result[index] = ip
            continue

        if not is_ipv4(index):
            continue
        if scheme is AddressScheme.ROUTE and not is_routable_host(index):
            continue
        if_index = to_int(value, -1)
        if if_index >= 0:
            result.setdefault(str(if_index), index)
    return result
