"""
Repository package.

Provides data access layer using Repository Pattern.
"""
from linkwatch.repositories.base import BaseRepository
from linkwatch.repositories.link import (
    ConcentratorRepository,
    EquipmentVendorRepository,
    EventRepository,
    LinkRepository,
    MetricRepository,
    SnmpProfileRepository,
)

__all__ = [
    "BaseRepository",
    "ConcentratorRepository",
    "EquipmentVendorRepository",
    "EventRepository",
    "LinkRepository",
    "MetricRepository",
    "SnmpProfileRepository",
]
