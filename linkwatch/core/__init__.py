"""Core module - contains enums, value types, and configuration."""
from .enums import (
    AddressScheme,
    EventType,
    LinkStatus,
    SecurityLevel,
    SnmpVersion,
    VendorKind,
)
from .config import settings

__all__ = [
    "AddressScheme",
    "EventType",
    "LinkStatus",
    "SecurityLevel",
    "SnmpVersion",
    "VendorKind",
    "settings",
]
