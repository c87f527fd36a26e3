"""
Vendor strategies for concentrator lookups.

Each strategy knows, for one vendor family:
    - which (user OID, address OID) pairs may hold PPPoE sessions, in the
      order they should be tried
    - which CLI command lists sessions over SSH, and how to read its output
    - default CPU / memory OIDs

Strategies are stateless and registered once per VendorKind.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from linkwatch.core.enums import AddressScheme, VendorKind
from linkwatch.snmp import oid_maps

_IPV4_RE = re.compile(r"\b(\d{1,3}(?:\.\d{1,3}){3})\b")
_HUAWEI_IP_RE = re.compile(r"IP[:\s]+(\d{1,3}(?:\.\d{1,3}){3})", re.IGNORECASE)

# lines searched below the username in ``display access-user`` output
_HUAWEI_LOOKAHEAD = 10


@dataclass(frozen=True)
class SessionOidSet:
    """
    One candidate pair of tables holding subscriber sessions.

    ``keyed_by_if_index`` marks tables whose index is the ifIndex of the
    subscriber interface (IF-MIB / ifAlias based sets).
    """

    name: str
    user_oid: str
    address_oid: str
    scheme: AddressScheme
    keyed_by_if_index: bool = False


IF_MIB_SET = SessionOidSet(
    name="IF-MIB",
    user_oid=oid_maps.IF_DESCR,
    address_oid=oid_maps.IP_AD_ENT_IF_INDEX,
    scheme=AddressScheme.INVERTED,
    keyed_by_if_index=True,
)

IF_ALIAS_ROUTE_SET = SessionOidSet(
    name="ifAlias + CIDR route",
    user_oid=oid_maps.IF_ALIAS,
    address_oid=oid_maps.IP_CIDR_ROUTE_IF_INDEX,
    scheme=AddressScheme.CIDR_ROUTE,
    keyed_by_if_index=True,
)


def infer_vendor(
    vendor: str | None, name: str | None = None, model: str | None = None,
) -> VendorKind:
    """
    Resolve the vendor family of a concentrator.

    An explicit known vendor wins; otherwise name and model are searched for
    vendor hints. Defaults to Mikrotik.
    """
    explicit = (vendor or "").strip().lower()
    for kind in VendorKind:
        if explicit == kind.value:
            return kind

    haystack = " ".join(filter(None, (vendor, name, model))).lower()
    if any(hint in haystack for hint in ("cisco", "asr", "ios")):
        return VendorKind.CISCO
    if any(hint in haystack for hint in ("mikrotik", "routeros")):
        return VendorKind.MIKROTIK
    if any(hint in haystack for hint in ("huawei", "ne40", "ne8k")):
        return VendorKind.HUAWEI
    return VendorKind.MIKROTIK


class VendorStrategy(ABC):
    """Base class for vendor-specific lookup behaviour."""

    kind: VendorKind
    cli_command: str | None = None

    @abstractmethod
    def session_oid_sets(self) -> list[SessionOidSet]:
        """Candidate session tables, most specific first."""

    def resource_oids(self) -> tuple[str | None, str | None]:
        """Default (cpu_oid, memory_oid) for this vendor."""
        return None, None

    def parse_cli_output(self, output: str, username: str) -> str | None:
        """Extract the IP of ``username`` from the session listing."""
        return None


class MikrotikStrategy(VendorStrategy):
    kind = VendorKind.MIKROTIK
    cli_command = "/ppp active print"

    def session_oid_sets(self) -> list[SessionOidSet]:
        return [
            SessionOidSet(
                name="PPP Active",
                user_oid=oid_maps.MIKROTIK_PPP_ACTIVE_USER,
                address_oid=oid_maps.MIKROTIK_PPP_ACTIVE_ADDRESS,
                scheme=AddressScheme.DIRECT,
            ),
            SessionOidSet(
                name="PPP Secret",
                user_oid=oid_maps.MIKROTIK_PPP_SECRET_NAME,
                address_oid=oid_maps.MIKROTIK_PPP_SECRET_REMOTE_ADDRESS,
                scheme=AddressScheme.DIRECT,
            ),
            IF_MIB_SET,
        ]

    def resource_oids(self) -> tuple[str | None, str | None]:
        return oid_maps.MIKROTIK_CPU_LOAD, None

    def parse_cli_output(self, output: str, username: str) -> str | None:
        match = re.search(
            re.escape(username) + r"[\s\S]*?address=([\d.]+)",
            output,
            re.IGNORECASE,
        )
        return match.group(1) if match else None


class CiscoStrategy(VendorStrategy):
    kind = VendorKind.CISCO
    cli_command = "show subscriber session all"

    def session_oid_sets(self) -> list[SessionOidSet]:
        return [
            SessionOidSet(
                name="Cisco Subscriber (csub)",
                user_oid=oid_maps.CISCO_CSUB_SESSION_USERNAME,
                address_oid=oid_maps.CISCO_CSUB_SESSION_IP_ADDR,
                scheme=AddressScheme.DIRECT,
            ),
            IF_ALIAS_ROUTE_SET,
        ]

    def resource_oids(self) -> tuple[str | None, str | None]:
        return oid_maps.CISCO_CPU_5MIN, None

    def parse_cli_output(self, output: str, username: str) -> str | None:
        wanted = username.lower()
        for line in output.splitlines():
            if wanted in line.lower():
                match = _IPV4_RE.search(line)
                if match:
                    return match.group(1)
        return None


class HuaweiStrategy(VendorStrategy):
    kind = VendorKind.HUAWEI
    cli_command = "display access-user"

    def session_oid_sets(self) -> list[SessionOidSet]:
        return [
            SessionOidSet(
                name="Huawei BRAS",
                user_oid=oid_maps.HUAWEI_BRAS_USER_NAME,
                address_oid=oid_maps.HUAWEI_BRAS_USER_IP_ADDR,
                scheme=AddressScheme.DIRECT,
            ),
        ]

    def resource_oids(self) -> tuple[str | None, str | None]:
        return oid_maps.HUAWEI_CPU_USAGE, None

    def parse_cli_output(self, output: str, username: str) -> str | None:
        wanted = username.lower()
        lines = output.splitlines()
        for i, line in enumerate(lines):
            if wanted not in line.lower():
                continue
            for candidate in lines[i:i + 1 + _HUAWEI_LOOKAHEAD]:
                match = _HUAWEI_IP_RE.search(candidate)
                if match:
                    return match.group(1)
        return None


class GenericStrategy(VendorStrategy):
    kind = VendorKind.GENERIC

    def session_oid_sets(self) -> list[SessionOidSet]:
        return [
            IF_MIB_SET,
            SessionOidSet(
                name="ifAlias + route table",
                user_oid=oid_maps.IF_ALIAS,
                address_oid=oid_maps.IP_ROUTE_IF_INDEX,
                scheme=AddressScheme.ROUTE,
                keyed_by_if_index=True,
            ),
        ]


_STRATEGIES: dict[VendorKind, VendorStrategy] = {
    strategy.kind: strategy
    for strategy in (
        MikrotikStrategy(),
        CiscoStrategy(),
        HuaweiStrategy(),
        GenericStrategy(),
    )
}


def get_vendor_strategy(kind: VendorKind) -> VendorStrategy:
    return _STRATEGIES[kind]
