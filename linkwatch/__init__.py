"""linkwatch - WAN link telemetry collection and concentrator topology lookups."""
