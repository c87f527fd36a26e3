"""
Link health state machine.

Status is derived fresh on every tick from the latest probe. Events are
edge-triggered: a transition or threshold crossing produces one event,
a sustained state produces none.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from linkwatch.core.config import settings
from linkwatch.core.enums import EventType, LinkStatus
from linkwatch.core.types import EventDraft, PingResult

OFFLINE_LOSS_PERCENT = 50.0

DEFAULT_UPTIME = 99.0
UPTIME_OFFLINE_STEP = -0.01
UPTIME_OPERATIONAL_STEP = 0.001


@dataclass(frozen=True)
class Thresholds:
    latency: float
    packet_loss: float

    @classmethod
    def resolve(
        cls, latency: float | None, packet_loss: float | None,
    ) -> Thresholds:
        """Unset or non-positive thresholds fall back to the configured defaults."""
        return cls(
            latency=latency if latency and latency > 0
            else settings.monitoring.default_latency_threshold,
            packet_loss=packet_loss if packet_loss and packet_loss > 0
            else settings.monitoring.default_packet_loss_threshold,
        )


@dataclass
class HealthAssessment:
    status: LinkStatus
    uptime: float
    events: list[EventDraft] = field(default_factory=list)


def derive_status(
    ping: PingResult, latency_threshold: float, loss_threshold: float,
) -> LinkStatus:
    if not ping.success or ping.packet_loss >= OFFLINE_LOSS_PERCENT:
        return LinkStatus.OFFLINE
    if ping.latency > latency_threshold or ping.packet_loss > loss_threshold:
        return LinkStatus.DEGRADED
    return LinkStatus.OPERATIONAL


def _describe(latency: float, loss: float) -> str:
    return f"Latency: {latency:.1f}ms, Packet loss: {loss:.1f}%"


def status_change_event(
    previous: LinkStatus | None,
    current: LinkStatus,
    link_name: str,
    latency: float,
    loss: float,
) -> EventDraft | None:
    """Event for a status transition, or None when nothing noteworthy changed."""
    if previous == current:
        return None

    description = _describe(latency, loss)
    if current is LinkStatus.OFFLINE:
        return EventDraft(
            type=EventType.ERROR,
            title=f"Link {link_name} offline",
            description=description,
        )
    if previous is LinkStatus.OPERATIONAL and current is LinkStatus.DEGRADED:
        return EventDraft(
            type=EventType.WARNING,
            title=f"Link {link_name} degraded",
            description=description,
        )
    if previous is LinkStatus.OFFLINE and current is LinkStatus.OPERATIONAL:
        return EventDraft(
            type=EventType.INFO,
            title=f"Link {link_name} restored",
            description=description,
            resolved=True,
        )
    if previous is LinkStatus.DEGRADED and current is LinkStatus.OPERATIONAL:
        return EventDraft(
            type=EventType.INFO,
            title=f"Link {link_name} normalized",
            description=description,
            resolved=True,
        )
    return None


def threshold_alerts(
    link_name: str,
    latency: float,
    loss: float,
    previous_latency: float | None,
    previous_loss: float | None,
    thresholds: Thresholds,
) -> list[EventDraft]:
    """Warnings for values that just crossed above their threshold."""
    alerts: list[EventDraft] = []
    if latency > thresholds.latency and (previous_latency or 0.0) <= thresholds.latency:
        alerts.append(EventDraft(
            type=EventType.WARNING,
            title=f"High latency on {link_name}",
            description=(
                f"Current latency: {latency:.1f}ms "
                f"(threshold: {thresholds.latency:g}ms)"
            ),
        ))
    if loss > thresholds.packet_loss and (previous_loss or 0.0) <= thresholds.packet_loss:
        alerts.append(EventDraft(
            type=EventType.WARNING,
            title=f"High packet loss on {link_name}",
            description=(
                f"Current packet loss: {loss:.1f}% "
                f"(threshold: {thresholds.packet_loss:g}%)"
            ),
        ))
    return alerts


def next_uptime(current: float | None, status: LinkStatus) -> float:
    """Nudge the availability estimate: fast down when offline, slow up."""
    uptime = DEFAULT_UPTIME if current is None else current
    if status is LinkStatus.OFFLINE:
        uptime += UPTIME_OFFLINE_STEP
    elif status is LinkStatus.OPERATIONAL:
        uptime += UPTIME_OPERATIONAL_STEP
    return max(0.0, min(100.0, uptime))


def evaluate(
    link_name: str,
    ping: PingResult,
    previous_status: LinkStatus | None,
    previous_latency: float | None,
    previous_loss: float | None,
    current_uptime: float | None,
    thresholds: Thresholds,
) -> HealthAssessment:
    """Status, edge events and the new uptime estimate for one tick."""
    status = derive_status(ping, thresholds.latency, thresholds.packet_loss)
    events: list[EventDraft] = []

    change = status_change_event(
        previous_status, status, link_name, ping.latency, ping.packet_loss,
    )
    if change is not None:
        events.append(change)
    # threshold alerts only apply to reachable links
    if status is not LinkStatus.OFFLINE:
        events.extend(threshold_alerts(
            link_name, ping.latency, ping.packet_loss,
            previous_latency, previous_loss, thresholds,
        ))

    return HealthAssessment(
        status=status,
        uptime=next_uptime(current_uptime, status),
        events=events,
    )
