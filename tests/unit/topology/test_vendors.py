"""Tests for vendor inference and vendor CLI parsing."""
from __future__ import annotations

import pytest

from linkwatch.core.enums import AddressScheme, VendorKind
from linkwatch.snmp import oid_maps
from linkwatch.topology.vendors import get_vendor_strategy, infer_vendor


# =====================================================================
# infer_vendor
# =====================================================================


@pytest.mark.parametrize(
    "vendor, name, model, expected",
    [
        ("huawei", "cisco-asr-01", None, VendorKind.HUAWEI),
        ("Cisco", None, None, VendorKind.CISCO),
        (None, "BRAS-ASR9K", None, VendorKind.CISCO),
        (None, "pe-01", "IOS-XE", VendorKind.CISCO),
        ("", "ccr-routeros", None, VendorKind.MIKROTIK),
        (None, "core", "NE40E-X8", VendorKind.HUAWEI),
        (None, "bng-ne8k", None, VendorKind.HUAWEI),
        ("generic", "router", None, VendorKind.GENERIC),
        (None, None, None, VendorKind.MIKROTIK),
        ("juniper", "mx204", None, VendorKind.MIKROTIK),
    ],
)
def test_infer_vendor(vendor, name, model, expected):
    assert infer_vendor(vendor, name, model) is expected


# =====================================================================
# Candidate order
# =====================================================================


def test_mikrotik_candidates_in_order():
    sets = get_vendor_strategy(VendorKind.MIKROTIK).session_oid_sets()
    assert [s.user_oid for s in sets] == [
        oid_maps.MIKROTIK_PPP_ACTIVE_USER,
        oid_maps.MIKROTIK_PPP_SECRET_NAME,
        oid_maps.IF_DESCR,
    ]
    assert sets[-1].scheme is AddressScheme.INVERTED


def test_cisco_falls_back_to_alias_and_cidr_routes():
    sets = get_vendor_strategy(VendorKind.CISCO).session_oid_sets()
    assert sets[0].user_oid == oid_maps.CISCO_CSUB_SESSION_USERNAME
    assert sets[1].user_oid == oid_maps.IF_ALIAS
    assert sets[1].scheme is AddressScheme.CIDR_ROUTE


def test_generic_has_no_cli():
    strategy = get_vendor_strategy(VendorKind.GENERIC)
    assert strategy.cli_command is None
    assert strategy.parse_cli_output("anything", "user") is None


# =====================================================================
# CLI parsers
# =====================================================================

MIKROTIK_OUTPUT = """\
Flags: R - RADIUS
 #   NAME          SERVICE CALLER-ID          ADDRESS         UPTIME
 0 R name="client01" service=pppoe caller-id="AA:BB:CC:00:00:01"
     address=100.64.10.5 uptime=3d2h
 1 R name="Client02" service=pppoe caller-id="AA:BB:CC:00:00:02"
     address=100.64.10.9 uptime=1h
"""

CISCO_OUTPUT = """\
Codes: LAC - L2TP Access Concentrator, PTA - PPP Termination
Type   Interface   Identifier   Username   IP Address
PTA    Vi2.101     0x1A         client01   177.10.1.20
PTA    Vi2.102     0x1B         client02   177.10.1.21
"""

HUAWEI_OUTPUT = """\
  ------------------------------------------------------------
  UserID  Username                  Interface       IP address
  ------------------------------------------------------------
  1201    client01@isp              Eth-Trunk1.100
          MAC: 00e0-fc12-3456
          IP: 191.52.254.164
  1202    client02@isp              Eth-Trunk1.100
          IP: 191.52.254.165
"""


def test_mikrotik_cli_parser():
    strategy = get_vendor_strategy(VendorKind.MIKROTIK)
    assert strategy.cli_command == "/ppp active print"
    assert strategy.parse_cli_output(MIKROTIK_OUTPUT, "client01") == "100.64.10.5"
    assert strategy.parse_cli_output(MIKROTIK_OUTPUT, "CLIENT02") == "100.64.10.9"
    assert strategy.parse_cli_output(MIKROTIK_OUTPUT, "client99") is None


def test_cisco_cli_parser():
    strategy = get_vendor_strategy(VendorKind.CISCO)
    assert strategy.parse_cli_output(CISCO_OUTPUT, "client02") == "177.10.1.21"
    assert strategy.parse_cli_output(CISCO_OUTPUT, "client03") is None


def test_huawei_cli_parser_looks_below_user_line():
    strategy = get_vendor_strategy(VendorKind.HUAWEI)
    assert strategy.parse_cli_output(HUAWEI_OUTPUT, "client01@isp") == "191.52.254.164"
    assert strategy.parse_cli_output(HUAWEI_OUTPUT, "client02@isp") == "191.52.254.165"
