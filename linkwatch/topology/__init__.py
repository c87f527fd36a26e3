"""
Topology Module.

Locates PPPoE subscriber sessions and corporate VLAN circuits on
concentrators, over SNMP with an SSH CLI fallback.
"""
