"""
Enumeration definitions for the application.

All enums are defined here to maintain consistency and type safety.
"""
from enum import Enum


class LinkStatus(str, Enum):
    """Health state of a monitored link."""

    OPERATIONAL = "operational"
    DEGRADED = "degraded"
    OFFLINE = "offline"


class EventType(str, Enum):
    """Severity of a link event."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class SnmpVersion(str, Enum):
    """
    SNMP protocol version.

    Profiles store free text ("v2c", "2c", "V3"...); use ``parse`` to normalize.
    Anything that is not v1 or v3 is treated as v2c.
    """

    V1 = "1"
    V2C = "2c"
    V3 = "3"

    @classmethod
    def parse(cls, raw: str | None) -> "SnmpVersion":
        value = (raw or "").strip().lower().replace("v", "")
        if value == "1":
            return cls.V1
        if value == "3":
            return cls.V3
        return cls.V2C

    @property
    def mp_model(self) -> int:
        """Message processing model for CommunityData (0 = v1, 1 = v2c)."""
        return 0 if self is SnmpVersion.V1 else 1


class SecurityLevel(str, Enum):
    """SNMPv3 USM security level."""

    NO_AUTH_NO_PRIV = "noAuthNoPriv"
    AUTH_NO_PRIV = "authNoPriv"
    AUTH_PRIV = "authPriv"

    @classmethod
    def parse(cls, raw: str | None) -> "SecurityLevel":
        for level in cls:
            if level.value == raw:
                return level
        return cls.NO_AUTH_NO_PRIV


class VendorKind(str, Enum):
    """
    Concentrator vendor families with distinct session MIBs.

    GENERIC only uses standard IF-MIB tables.
    """

    MIKROTIK = "mikrotik"
    CISCO = "cisco"
    HUAWEI = "huawei"
    GENERIC = "generic"


class AddressScheme(str, Enum):
    """How the address table of a session OID set is keyed."""

    DIRECT = "direct"          # index = session/ifIndex, value = IP
    INVERTED = "inverted"      # index = IP, value = ifIndex
    CIDR_ROUTE = "cidr_route"  # ipCidrRouteIfIndex, index = dest.mask.tos.hop
    ROUTE = "route"            # ipRouteIfIndex, index = dest, value = ifIndex
