"""
SNMP Module.

Architecture:
    SnmpSession       - pysnmp async wrapper (get/walk) bound to one device
    SnmpSessionFactory - builds sessions from credential profiles
    CounterSampler    - 64-bit ifHC octet counters -> bandwidth
    ResourceSampler   - CPU / memory gauges via vendor or custom OIDs
    InterfaceDiscovery - interface table listing, search and validation
"""
