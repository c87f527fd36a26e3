"""Test doubles for SNMP sessions."""
from __future__ import annotations

import asyncio
from typing import Any

from linkwatch.snmp.engine import (
    SnmpCredentials,
    SnmpError,
    SnmpOutcome,
    SnmpTimeoutError,
)


class FakeSnmpSession:
    """
    In-memory stand-in for SnmpSession.

    ``tables`` maps a walked prefix to its rows; ``values`` maps scalar OIDs
    to GET answers. ``get_error`` makes every GET raise it.
    """

    def __init__(
        self,
        target_ip: str = "10.0.0.1",
        credentials: SnmpCredentials | None = None,
        tables: dict[str, list[tuple[str, Any]]] | None = None,
        values: dict[str, Any] | None = None,
        get_error: Exception | None = None,
        get_delay: float = 0.0,
    ) -> None:
        self.target_ip = target_ip
        self.credentials = credentials or SnmpCredentials()
        self.tables = tables or {}
        self.values = values or {}
        self.get_error = get_error
        self.get_delay = get_delay
        self.closed = False
        self.walked: list[str] = []
        self.requested: list[tuple[str, ...]] = []

    async def __aenter__(self) -> FakeSnmpSession:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def safety_timeout(self) -> float:
        return 0.2

    async def get(self, *oids: str) -> dict[str, Any]:
        self.requested.append(oids)
        if self.get_delay:
            await asyncio.sleep(self.get_delay)
        if self.get_error is not None:
            raise self.get_error
        return {oid: self.values[oid] for oid in oids if oid in self.values}

    async def walk_within(self, prefix: str, timeout: float) -> list[tuple[str, Any]]:
        self.walked.append(prefix)
        return list(self.tables.get(prefix, []))

    async def guarded(self, awaitable: Any, timeout: float | None = None) -> SnmpOutcome:
        try:
            value = await asyncio.wait_for(awaitable, timeout=timeout or self.safety_timeout)
        except asyncio.TimeoutError:
            self.close()
            return SnmpOutcome(timed_out=True)
        except SnmpTimeoutError:
            return SnmpOutcome(timed_out=True)
        except SnmpError as e:
            return SnmpOutcome(error=str(e))
        return SnmpOutcome(value=value)

    def close(self) -> None:
        self.closed = True


class FakeSessionFactory:
    """Hands out one prepared FakeSnmpSession, recording each create()."""

    def __init__(self, session: FakeSnmpSession | None = None) -> None:
        self.session = session or FakeSnmpSession()
        self.created: list[tuple[str, SnmpCredentials | None]] = []

    def create(
        self, target_ip: str, credentials: SnmpCredentials | None = None,
    ) -> FakeSnmpSession:
        self.created.append((target_ip, credentials))
        self.session.target_ip = target_ip
        return self.session


