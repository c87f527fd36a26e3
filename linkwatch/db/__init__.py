"""Database module - ORM models and database connection."""
from .base import Base, get_async_session, engine, get_session_context
from .models import (
    Concentrator,
    EquipmentVendor,
    Event,
    Link,
    Metric,
    SnmpProfile,
)

__all__ = [
    "Base",
    "get_async_session",
    "engine",
    "get_session_context",
    "Concentrator",
    "EquipmentVendor",
    "Event",
    "Link",
    "Metric",
    "SnmpProfile",
]
