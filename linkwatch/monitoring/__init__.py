"""
Monitoring Module.

    Prober  - ICMP latency / loss, simulated when ICMP is not permitted
    health  - status derivation, edge-triggered events, uptime estimate
"""
