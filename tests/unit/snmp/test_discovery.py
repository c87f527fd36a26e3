"""Tests for interface discovery, search and connectivity checks."""
from __future__ import annotations

import pytest

from linkwatch.snmp import oid_maps
from linkwatch.snmp.discovery import (
    InterfaceDiscovery,
    SnmpInterface,
    format_speed,
    format_uptime,
    match_interface,
)
from linkwatch.snmp.engine import SnmpTimeoutError
from tests.fakes import FakeSessionFactory, FakeSnmpSession


def _iface(if_index: int, name: str, descr: str = "", alias: str = "") -> SnmpInterface:
    return SnmpInterface(
        if_index=if_index,
        if_name=name,
        if_descr=descr or name,
        if_alias=alias,
        if_speed=1_000_000_000,
        if_oper_status="up",
        if_admin_status="up",
    )


def _column(prefix: str, values: dict[int, object]) -> list[tuple[str, object]]:
    return [(f"{prefix}.{i}", v) for i, v in values.items()]


INTERFACES = [
    _iface(1, "ether1", alias="UPLINK-ISP-A"),
    _iface(2, "ether2", alias="client-acme"),
    _iface(15, "vlan1203", descr="vlan1203 corporate"),
]


# =====================================================================
# match_interface
# =====================================================================


class TestMatchInterface:

    def test_exact_name_case_insensitive(self):
        result = match_interface(INTERFACES, "ETHER2")
        assert result.found
        assert result.match_type == "exact_name"
        assert result.if_index == 2

    def test_exact_alias(self):
        result = match_interface(INTERFACES, "nope", if_alias="uplink-isp-a")
        assert result.match_type == "exact_alias"
        assert result.if_index == 1

    def test_unique_partial_name(self):
        result = match_interface(INTERFACES, "vlan12")
        assert result.match_type == "partial_name"
        assert result.if_index == 15

    def test_ambiguous_partial_is_not_found(self):
        result = match_interface(INTERFACES, "ether")
        assert not result.found
        assert {c.if_index for c in result.candidates} == {1, 2}


# =====================================================================
# InterfaceDiscovery
# =====================================================================


@pytest.mark.asyncio
async def test_discover_prefers_high_speed_and_if_name(credentials):
    session = FakeSnmpSession(tables={
        oid_maps.IF_INDEX: _column(oid_maps.IF_INDEX, {1: 1, 2: 2}),
        oid_maps.IF_DESCR: _column(oid_maps.IF_DESCR, {1: b"ether1", 2: b"ether2"}),
        oid_maps.IF_SPEED: _column(oid_maps.IF_SPEED, {1: 4294967295, 2: 100_000_000}),
        oid_maps.IF_OPER_STATUS: _column(oid_maps.IF_OPER_STATUS, {1: 1, 2: 2}),
        oid_maps.IF_ADMIN_STATUS: _column(oid_maps.IF_ADMIN_STATUS, {1: 1, 2: 1}),
        oid_maps.IF_NAME: _column(oid_maps.IF_NAME, {1: b"sfp-sfpplus1"}),
        oid_maps.IF_HIGH_SPEED: _column(oid_maps.IF_HIGH_SPEED, {1: 10000}),
        oid_maps.IF_ALIAS: _column(oid_maps.IF_ALIAS, {2: b"client-acme"}),
    })
    discovery = InterfaceDiscovery(FakeSessionFactory(session))

    interfaces = await discovery.discover_interfaces("10.0.0.1", credentials)

    assert [i.if_index for i in interfaces] == [1, 2]
    first, second = interfaces
    assert first.if_name == "sfp-sfpplus1"
    assert first.if_speed == 10_000_000_000
    assert first.if_oper_status == "up"
    assert second.if_name == "ether2"
    assert second.if_alias == "client-acme"
    assert second.if_oper_status == "down"
    assert session.closed


@pytest.mark.asyncio
async def test_discover_uses_longer_timeout_profile(credentials):
    factory = FakeSessionFactory()
    discovery = InterfaceDiscovery(factory)

    assert await discovery.discover_interfaces("10.0.0.1", credentials) == []

    _ip, used = factory.created[0]
    assert used.timeout == 15000
    assert used.retries == 2


@pytest.mark.asyncio
async def test_validate_if_index(credentials):
    session = FakeSnmpSession(values={
        f"{oid_maps.IF_NAME}.3": b"ether3",
        f"{oid_maps.IF_DESCR}.3": b"ether3",
    })
    discovery = InterfaceDiscovery(FakeSessionFactory(session))

    valid = await discovery.validate_if_index("10.0.0.1", credentials, 3, "Ether3", None)
    moved = await discovery.validate_if_index("10.0.0.1", credentials, 3, "ether9", "ether9")

    assert valid.valid
    assert not moved.valid
    assert moved.current_if_name == "ether3"


@pytest.mark.asyncio
async def test_interface_status_maps_codes(credentials):
    session = FakeSnmpSession(values={
        f"{oid_maps.IF_OPER_STATUS}.3": 7,
        f"{oid_maps.IF_ADMIN_STATUS}.3": 1,
    })
    discovery = InterfaceDiscovery(FakeSessionFactory(session))

    status = await discovery.get_interface_status("10.0.0.1", credentials, 3)

    assert status.oper_status == "lowerLayerDown"
    assert status.admin_status == "up"
    assert session.closed


@pytest.mark.asyncio
async def test_interface_status_none_on_timeout(credentials):
    session = FakeSnmpSession(get_error=SnmpTimeoutError("no response"))
    discovery = InterfaceDiscovery(FakeSessionFactory(session))

    assert await discovery.get_interface_status("10.0.0.1", credentials, 3) is None


@pytest.mark.asyncio
async def test_connection_test_reports_system_info(credentials):
    session = FakeSnmpSession(values={
        oid_maps.SYS_DESCR: b"RouterOS CCR1036",
        oid_maps.SYS_NAME: b"bras-01",
        oid_maps.SYS_UPTIME: 9_000_000,
    })
    discovery = InterfaceDiscovery(FakeSessionFactory(session))

    result = await discovery.test_connection("10.0.0.1", credentials)

    assert result.success
    assert result.sys_name == "bras-01"
    assert result.uptime == "1d 1h 0m"


@pytest.mark.asyncio
async def test_connection_test_timeout(credentials):
    session = FakeSnmpSession(get_error=SnmpTimeoutError("no response"))
    discovery = InterfaceDiscovery(FakeSessionFactory(session))

    result = await discovery.test_connection("10.0.0.1", credentials)

    assert not result.success
    assert result.error == "SNMP timeout"


def test_formatters():
    assert format_speed(10_000_000_000) == "10 Gbps"
    assert format_speed(100_000_000) == "100 Mbps"
    assert format_uptime(8_640_000) == "1d 0h 0m"
