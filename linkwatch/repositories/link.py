"""
Link Repository.

Data access for monitored links and the measurements written about them.
"""
from __future__ import annotations

from sqlalchemy import select

from linkwatch.db.models import (
    Concentrator,
    EquipmentVendor,
    Event,
    Link,
    Metric,
    SnmpProfile,
)
from linkwatch.repositories.base import BaseRepository


class LinkRepository(BaseRepository[Link]):
    """Repository for Link operations."""

    model = Link

    async def get_monitored_links(self) -> list[Link]:
        """All links with monitoring enabled, ordered by id."""
        stmt = (
            select(Link)
            .where(Link.monitoring_enabled == True)  # noqa: E712
            .order_by(Link.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class MetricRepository(BaseRepository[Metric]):
    model = Metric

    async def get_recent(self, link_id: int, limit: int = 100) -> list[Metric]:
        """Latest samples of a link, newest first."""
        stmt = (
            select(Metric)
            .where(Metric.link_id == link_id)
            .order_by(Metric.timestamp.desc(), Metric.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class EventRepository(BaseRepository[Event]):
    model = Event

    async def get_for_link(self, link_id: int) -> list[Event]:
        stmt = select(Event).where(Event.link_id == link_id).order_by(Event.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class SnmpProfileRepository(BaseRepository[SnmpProfile]):
    model = SnmpProfile


class EquipmentVendorRepository(BaseRepository[EquipmentVendor]):
    model = EquipmentVendor


class ConcentratorRepository(BaseRepository[Concentrator]):
    model = Concentrator
