"""
OID Constants & Vendor-Specific Mapping Tables.

All SNMP OIDs live here; samplers, discovery and the topology resolver only
reference these names.
"""
from __future__ import annotations

# =============================================================================
# Standard MIBs
# =============================================================================

# SNMPv2-MIB
SYS_DESCR = "1.3.6.1.2.1.1.1.0"
SYS_UPTIME = "1.3.6.1.2.1.1.3.0"              # TimeTicks (1/100 s)
SYS_NAME = "1.3.6.1.2.1.1.5.0"

# IF-MIB ifTable
IF_INDEX = "1.3.6.1.2.1.2.2.1.1"
IF_DESCR = "1.3.6.1.2.1.2.2.1.2"
IF_SPEED = "1.3.6.1.2.1.2.2.1.5"             # bits/sec
IF_ADMIN_STATUS = "1.3.6.1.2.1.2.2.1.7"      # 1=up, 2=down, 3=testing
IF_OPER_STATUS = "1.3.6.1.2.1.2.2.1.8"

# IF-MIB ifXTable
IF_NAME = "1.3.6.1.2.1.31.1.1.1.1"
IF_HC_IN_OCTETS = "1.3.6.1.2.1.31.1.1.1.6"   # Counter64
IF_HC_OUT_OCTETS = "1.3.6.1.2.1.31.1.1.1.10"  # Counter64
IF_HIGH_SPEED = "1.3.6.1.2.1.31.1.1.1.15"    # Mbps
IF_ALIAS = "1.3.6.1.2.1.31.1.1.1.18"

# IP-MIB
IP_AD_ENT_IF_INDEX = "1.3.6.1.2.1.4.20.1.2"  # index = IP, value = ifIndex
IP_NET_TO_MEDIA_PHYS_ADDRESS = "1.3.6.1.2.1.4.22.1.2"  # index = ifIndex.a.b.c.d

# RFC1213 / IP-FORWARD-MIB
IP_ROUTE_IF_INDEX = "1.3.6.1.2.1.4.21.1.2"   # index = dest
IP_CIDR_ROUTE_IF_INDEX = "1.3.6.1.2.1.4.24.4.1.5"  # index = dest.mask.tos.nexthop

OPER_STATUS_MAP: dict[int, str] = {
    1: "up",
    2: "down",
    3: "testing",
    4: "unknown",
    5: "dormant",
    6: "notPresent",
    7: "lowerLayerDown",
}

ADMIN_STATUS_MAP: dict[int, str] = {
    1: "up",
    2: "down",
    3: "testing",
}

# =============================================================================
# Vendor-Specific: subscriber session tables
# =============================================================================

# MIKROTIK-MIB mtxrPPPActive / mtxrPPPSecret
MIKROTIK_PPP_ACTIVE_USER = "1.3.6.1.4.1.14988.1.1.5.1.1.1"
MIKROTIK_PPP_ACTIVE_ADDRESS = "1.3.6.1.4.1.14988.1.1.5.1.1.2"
MIKROTIK_PPP_SECRET_NAME = "1.3.6.1.4.1.14988.1.1.5.2.1.1"
MIKROTIK_PPP_SECRET_REMOTE_ADDRESS = "1.3.6.1.4.1.14988.1.1.5.2.1.3"

# CISCO-SUBSCRIBER-SESSION-MIB csubSessionTable
CISCO_CSUB_SESSION_USERNAME = "1.3.6.1.4.1.9.9.786.1.2.1.1.11"
CISCO_CSUB_SESSION_IP_ADDR = "1.3.6.1.4.1.9.9.786.1.2.1.1.15"

# HUAWEI-BRAS-SBC-MIB
HUAWEI_BRAS_USER_NAME = "1.3.6.1.4.1.2011.5.2.1.14.1.2"
HUAWEI_BRAS_USER_IP_ADDR = "1.3.6.1.4.1.2011.5.2.1.14.1.4"

# =============================================================================
# Vendor-Specific: system resources (percent gauges)
# =============================================================================

MIKROTIK_CPU_LOAD = "1.3.6.1.2.1.25.3.3.1.2.1"            # hrProcessorLoad.1
CISCO_CPU_5MIN = "1.3.6.1.4.1.9.9.109.1.1.1.1.8.1"        # cpmCPUTotal5minRev
HUAWEI_CPU_USAGE = "1.3.6.1.4.1.2011.6.3.4.1.2.0.0.0"     # hwCpuDevDuty
