"""
Presence Broadcaster.

Derives the online-recipient list from the registry and pushes it to
observers. Triggered after every registration or disconnection that can
change the online set, and once for each newly registered observer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from arrival_gateway.components.events.types import OnlineListMessage
from arrival_shared.config.logging import get_logger

if TYPE_CHECKING:
    from arrival_gateway.components.connection.handle import ConnectionHandle
    from arrival_gateway.components.connection.registry import Registry
    from arrival_gateway.components.metrics.collector import MetricsCollector

logger = get_logger(__name__)


class PresenceBroadcaster:
    """
    Sends ``online-list`` snapshots to observers.

    Observers found closed at send time are skipped, not removed: their
    close event is still in flight and the endpoint's cleanup path owns
    removal.
    """

    def __init__(self, registry: "Registry", metrics: "MetricsCollector | None" = None) -> None:
        self._registry = registry
        self._metrics = metrics

    def snapshot(self) -> OnlineListMessage:
        """Build the current presence snapshot."""
        return OnlineListMessage(online=self._registry.online_identities())

    def broadcast_online_list(self) -> int:
        """
        Send the current snapshot to every open observer.

        Returns:
            Number of observers the snapshot was queued for.
        """
        message = self.snapshot()
        frame = message.to_frame()
        sent = 0
        stale = 0

        # Snapshot to avoid modification during iteration
        for handle in self._registry.observer_connections():
            if handle.send(frame):
                sent += 1
            else:
                stale += 1

        if self._metrics is not None:
            self._metrics.increment_presence_broadcasts()
            if stale:
                self._metrics.add_stale_skipped(stale)

        logger.debug(
            "Presence broadcast",
            online=message.online,
            observers=sent,
            skipped=stale,
        )
        return sent

    def send_snapshot(self, handle: "ConnectionHandle") -> bool:
        """Send the current snapshot to a single connection."""
        sent = handle.send(self.snapshot().to_frame())
        if not sent and self._metrics is not None:
            self._metrics.add_stale_skipped(1)
        return sent
