"""
Metrics Collector for WebSocket Gateway.

Centralizes counters for observability. All updates happen on the event
loop thread, so plain integer increments are sufficient.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class ConnectionMetrics:
    """Metrics for connection management."""
    accepted: int = 0
    closed: int = 0
    rejected_oversize: int = 0


@dataclass
class FrameMetrics:
    """Metrics for inbound frame processing."""
    received: int = 0
    routed: int = 0
    parse_errors: int = 0
    validation_errors: int = 0
    handler_errors: int = 0


@dataclass
class DeliveryMetrics:
    """Metrics for outbound sends."""
    arrivals_sent: int = 0
    notifications_unrouted: int = 0
    confirmations_sent: int = 0
    presence_broadcasts: int = 0
    stale_skipped: int = 0


class MetricsCollector:
    """
    Metrics collector for the gateway.

    Usage:
        metrics = MetricsCollector()
        metrics.increment_frames_received()
        stats = metrics.get_snapshot()
    """

    def __init__(self) -> None:
        self._connection = ConnectionMetrics()
        self._frame = FrameMetrics()
        self._delivery = DeliveryMetrics()

    # ==========================================================================
    # Connection Metrics
    # ==========================================================================

    def increment_connection_accepted(self) -> None:
        self._connection.accepted += 1

    def increment_connection_closed(self) -> None:
        self._connection.closed += 1

    def increment_connection_rejected_oversize(self) -> None:
        self._connection.rejected_oversize += 1

    # ==========================================================================
    # Frame Metrics
    # ==========================================================================

    def increment_frames_received(self) -> None:
        self._frame.received += 1

    def increment_frames_routed(self) -> None:
        self._frame.routed += 1

    def increment_parse_errors(self) -> None:
        self._frame.parse_errors += 1

    def increment_validation_errors(self) -> None:
        self._frame.validation_errors += 1

    def increment_handler_errors(self) -> None:
        self._frame.handler_errors += 1

    # ==========================================================================
    # Delivery Metrics
    # ==========================================================================

    def add_arrivals_sent(self, count: int) -> None:
        self._delivery.arrivals_sent += count

    def increment_notifications_unrouted(self) -> None:
        self._delivery.notifications_unrouted += 1

    def add_confirmations_sent(self, count: int) -> None:
        self._delivery.confirmations_sent += count

    def increment_presence_broadcasts(self) -> None:
        self._delivery.presence_broadcasts += 1

    def add_stale_skipped(self, count: int) -> None:
        self._delivery.stale_skipped += count

    # ==========================================================================
    # Snapshot
    # ==========================================================================

    @property
    def active_connections(self) -> int:
        return self._connection.accepted - self._connection.closed

    def get_snapshot(self) -> dict[str, Any]:
        """Get all metrics as a nested dict."""
        return {
            "connections": {**asdict(self._connection), "active": self.active_connections},
            "frames": asdict(self._frame),
            "delivery": asdict(self._delivery),
        }
