"""
Core type definitions.

Dataclasses passed between the prober, SNMP samplers, health evaluation
and the collector. These are NOT ORM models - just data containers.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone

from linkwatch.core.enums import EventType


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PingResult:
    """Outcome of one ICMP probe burst."""

    latency: float
    packet_loss: float
    success: bool

    @classmethod
    def failed(cls) -> "PingResult":
        return cls(latency=0.0, packet_loss=100.0, success=False)


@dataclass(frozen=True)
class CounterSample:
    """Raw 64-bit octet counters of one interface at a point in time."""

    in_octets: int
    out_octets: int
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class TrafficRate:
    """Bandwidth derived from two counter samples, in Mbps."""

    download_mbps: float = 0.0
    upload_mbps: float = 0.0


@dataclass(frozen=True)
class ResourceUsage:
    """CPU / memory utilisation percentages."""

    cpu_usage: float = 0.0
    memory_usage: float = 0.0


@dataclass
class PppoeSessionInfo:
    """
    A subscriber session located on a concentrator.

    Fields that could not be discovered stay None.
    """

    username: str
    ip_address: str | None = None
    mac_address: str | None = None
    if_index: int | None = None
    if_name: str | None = None
    if_alias: str | None = None


@dataclass
class CorporateLinkInfo:
    """
    A corporate (non-PPPoE) circuit terminated on a VLAN interface.

    ``ip_address`` is the ARP-resolved client address; ``ip_block`` is the
    public /32 routed through the interface. They are never the same lookup.
    """

    vlan_interface: str
    if_index: int
    ip_address: str | None = None
    mac_address: str | None = None
    ip_block: str | None = None


@dataclass(frozen=True)
class EventDraft:
    """An event produced by health evaluation, not yet persisted."""

    type: EventType
    title: str
    description: str
    resolved: bool = False
