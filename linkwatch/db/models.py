"""
Database ORM models.

Links, SNMP profiles, vendors and concentrators are owned by the
administration side; the collector only updates link measurements and
appends metrics and events.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from linkwatch.core.enums import EventType, LinkStatus
from linkwatch.db.base import Base
from linkwatch.snmp.engine import SnmpCredentials


# ══════════════════════════════════════════════════════════════════
# Credentials & equipment
# ══════════════════════════════════════════════════════════════════


class SnmpProfile(Base):
    """SNMP credential set shared by routers and concentrators."""

    __tablename__ = "snmp_profiles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100))
    version: Mapped[str] = mapped_column(String(10), default="2c")
    port: Mapped[int] = mapped_column(Integer, default=161)
    community: Mapped[str | None] = mapped_column(String(100), nullable=True)
    security_level: Mapped[str | None] = mapped_column(String(20), nullable=True)
    auth_protocol: Mapped[str | None] = mapped_column(String(10), nullable=True)
    auth_password: Mapped[str | None] = mapped_column(String(200), nullable=True)
    priv_protocol: Mapped[str | None] = mapped_column(String(10), nullable=True)
    priv_password: Mapped[str | None] = mapped_column(String(200), nullable=True)
    username: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # milliseconds
    timeout: Mapped[int] = mapped_column(Integer, default=5000)
    retries: Mapped[int] = mapped_column(Integer, default=1)

    def to_credentials(self) -> SnmpCredentials:
        """Detach the row into the value object used by SNMP sessions."""
        return SnmpCredentials(
            version=self.version,
            port=self.port or 161,
            community=self.community,
            security_level=self.security_level,
            auth_protocol=self.auth_protocol,
            auth_password=self.auth_password,
            priv_protocol=self.priv_protocol,
            priv_password=self.priv_password,
            username=self.username,
            timeout=self.timeout or 5000,
            retries=self.retries if self.retries is not None else 1,
        )

    def __repr__(self) -> str:
        return f"<SnmpProfile {self.name} (v{self.version})>"


class EquipmentVendor(Base):
    """Equipment vendor with its default CPU / memory OIDs."""

    __tablename__ = "equipment_vendors"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100))
    slug: Mapped[str] = mapped_column(String(50), unique=True)
    cpu_oid: Mapped[str | None] = mapped_column(String(200), nullable=True)
    memory_oid: Mapped[str | None] = mapped_column(String(200), nullable=True)

    def __repr__(self) -> str:
        return f"<EquipmentVendor {self.slug}>"


class Concentrator(Base):
    """Subscriber aggregation device (BRAS / PPPoE server / PE router)."""

    __tablename__ = "concentrators"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100))
    vendor: Mapped[str | None] = mapped_column(String(50), nullable=True)
    model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    ssh_user: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ssh_password: Mapped[str | None] = mapped_column(String(200), nullable=True)
    ssh_port: Mapped[int] = mapped_column(Integer, default=22)
    snmp_profile_id: Mapped[int | None] = mapped_column(
        ForeignKey("snmp_profiles.id"), nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Concentrator {self.name} ({self.ip_address})>"


# ══════════════════════════════════════════════════════════════════
# Monitored links
# ══════════════════════════════════════════════════════════════════


class Link(Base):
    """A monitored WAN circuit."""

    __tablename__ = "links"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    client_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    address: Mapped[str] = mapped_column(String(45))
    monitored_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    snmp_router_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    snmp_profile_id: Mapped[int | None] = mapped_column(
        ForeignKey("snmp_profiles.id"), nullable=True,
    )
    snmp_interface_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    snmp_interface_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    snmp_interface_descr: Mapped[str | None] = mapped_column(String(200), nullable=True)
    equipment_vendor_id: Mapped[int | None] = mapped_column(
        ForeignKey("equipment_vendors.id"), nullable=True,
    )
    custom_cpu_oid: Mapped[str | None] = mapped_column(String(200), nullable=True)
    custom_memory_oid: Mapped[str | None] = mapped_column(String(200), nullable=True)
    latency_threshold: Mapped[float] = mapped_column(Float, default=80.0)
    packet_loss_threshold: Mapped[float] = mapped_column(Float, default=2.0)
    monitoring_enabled: Mapped[bool] = mapped_column(Boolean, default=True)

    # Measurements (written by the collector)
    current_download: Mapped[float] = mapped_column(Float, default=0.0)
    current_upload: Mapped[float] = mapped_column(Float, default=0.0)
    latency: Mapped[float] = mapped_column(Float, default=0.0)
    packet_loss: Mapped[float] = mapped_column(Float, default=0.0)
    cpu_usage: Mapped[float] = mapped_column(Float, default=0.0)
    memory_usage: Mapped[float] = mapped_column(Float, default=0.0)
    status: Mapped[LinkStatus] = mapped_column(
        Enum(LinkStatus, values_callable=lambda e: [m.value for m in e]),
        default=LinkStatus.OPERATIONAL,
    )
    uptime: Mapped[float] = mapped_column(Float, default=99.0)
    last_updated: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    @property
    def ip_to_monitor(self) -> str:
        return self.monitored_ip or self.snmp_router_ip or self.address

    def __repr__(self) -> str:
        return f"<Link {self.name} ({self.status})>"


class Metric(Base):
    """One time-series sample per link per collection tick."""

    __tablename__ = "metrics"
    __table_args__ = (
        Index("ix_metrics_link_timestamp", "link_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    link_id: Mapped[int] = mapped_column(ForeignKey("links.id"))
    client_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    download: Mapped[float] = mapped_column(Float, default=0.0)
    upload: Mapped[float] = mapped_column(Float, default=0.0)
    latency: Mapped[float] = mapped_column(Float, default=0.0)
    packet_loss: Mapped[float] = mapped_column(Float, default=0.0)
    cpu_usage: Mapped[float] = mapped_column(Float, default=0.0)
    memory_usage: Mapped[float] = mapped_column(Float, default=0.0)
    error_rate: Mapped[float] = mapped_column(Float, default=0.0)


class Event(Base):
    """Status / threshold edge notification for a link."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    link_id: Mapped[int] = mapped_column(ForeignKey("links.id"), index=True)
    client_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    type: Mapped[EventType] = mapped_column(
        Enum(EventType, values_callable=lambda e: [m.value for m in e]),
    )
    title: Mapped[str] = mapped_column(String(300))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    resolved: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<Event {self.type} {self.title!r}>"
