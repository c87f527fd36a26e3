"""
Interface counter sampling and bandwidth calculation.

Only the 64-bit ifHC* counters are queried. A counter that goes backwards
is treated as a reset (reboot / counter clear) and contributes a zero delta;
no wraparound arithmetic is attempted.
"""
from __future__ import annotations

import logging
import math

from linkwatch.core.types import CounterSample, TrafficRate
from linkwatch.snmp import oid_maps
from linkwatch.snmp.codec import decode_counter
from linkwatch.snmp.engine import (
    SnmpCredentials,
    SnmpNoSuchObjectError,
    SnmpSessionFactory,
)

logger = logging.getLogger(__name__)


class CounterSampler:
    """Fetches ifHCInOctets / ifHCOutOctets for one interface."""

    def __init__(self, session_factory: SnmpSessionFactory | None = None) -> None:
        self._sessions = session_factory or SnmpSessionFactory()

    async def get_interface_traffic(
        self,
        ip: str,
        credentials: SnmpCredentials,
        if_index: int,
    ) -> CounterSample | None:
        """
        Single GET of both octet counters.

        Returns None on SNMP error, timeout, missing varbinds or a value
        that cannot be decoded. Never raises.
        """
        in_oid = f"{oid_maps.IF_HC_IN_OCTETS}.{if_index}"
        out_oid = f"{oid_maps.IF_HC_OUT_OCTETS}.{if_index}"

        session = self._sessions.create(ip, credentials)
        try:
            outcome = await session.guarded(session.get(in_oid, out_oid))
        finally:
            session.close()

        if outcome.timed_out:
            logger.warning("Traffic counters timed out for %s ifIndex %s", ip, if_index)
            return None
        if not outcome.ok:
            logger.error("SNMP error for %s: %s", ip, outcome.error)
            return None

        try:
            values = outcome.value or {}
            if in_oid not in values or out_oid not in values:
                raise SnmpNoSuchObjectError(
                    f"ifHC counters missing for ifIndex {if_index}"
                )
            return CounterSample(
                in_octets=decode_counter(values[in_oid]),
                out_octets=decode_counter(values[out_oid]),
            )
        except Exception as e:
            logger.error("Counter decode failed for %s ifIndex %s: %s", ip, if_index, e)
            return None


def _octet_delta(current: int, previous: int) -> float:
    diff = float(current - previous)
    if not math.isfinite(diff) or diff < 0:
        return 0.0
    return diff


def _to_mbps(octets: float, seconds: float) -> float:
    bps = octets * 8 / seconds
    return bps / 1_000_000 if math.isfinite(bps) else 0.0


def calculate_bandwidth(
    current: CounterSample, previous: CounterSample,
) -> TrafficRate:
    """
    Convert two counter samples into download/upload Mbps.

    A non-positive or non-finite interval yields zero rates; a negative
    counter delta yields zero for that direction.
    """
    seconds = (current.timestamp - previous.timestamp).total_seconds()
    if not math.isfinite(seconds) or seconds <= 0:
        return TrafficRate()

    return TrafficRate(
        download_mbps=_to_mbps(_octet_delta(current.in_octets, previous.in_octets), seconds),
        upload_mbps=_to_mbps(_octet_delta(current.out_octets, previous.out_octets), seconds),
    )
