"""
Connection Lifecycle Management.

Tracks which handles are live and performs close-time cleanup.

State machine per connection:
    CONNECTED --(register-recipient / register-observer)--> CONNECTED (role-tagged)
    any --(close)--> CLOSED (terminal, cleanup runs exactly once)

A connection that never registers leaves no registry footprint; closing it
only updates counters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from arrival_gateway.components.core.context import sanitize_log_data
from arrival_shared.config.logging import get_logger

if TYPE_CHECKING:
    from arrival_gateway.components.broadcast.presence import PresenceBroadcaster
    from arrival_gateway.components.connection.handle import ConnectionHandle
    from arrival_gateway.components.connection.registry import Registry
    from arrival_gateway.components.metrics.collector import MetricsCollector

logger = get_logger(__name__)


class ConnectionLifecycle:
    """
    Manages the lifecycle of WebSocket connections.

    Responsibilities:
    - Track live handles
    - Remove closed handles from the registry
    - Re-broadcast presence when a recipient's last connection drops
    """

    def __init__(
        self,
        registry: "Registry",
        presence: "PresenceBroadcaster",
        metrics: "MetricsCollector",
    ) -> None:
        """
        Initialize lifecycle manager with dependencies.

        Args:
            registry: Recipient/observer registry
            presence: Broadcaster used after a recipient goes offline
            metrics: Collects connection metrics
        """
        self._registry = registry
        self._presence = presence
        self._metrics = metrics
        self._active: set[ConnectionHandle] = set()
        self._shutdown = False

    @property
    def total_connections(self) -> int:
        """Current number of live connections."""
        return len(self._active)

    def set_shutdown(self, value: bool) -> None:
        """Set shutdown state."""
        self._shutdown = value

    def active_connections(self) -> list["ConnectionHandle"]:
        """Snapshot of live handles."""
        return list(self._active)

    def open(self, handle: "ConnectionHandle") -> None:
        """
        Start tracking an accepted connection.

        Raises:
            ConnectionError: If shutdown has been initiated.
        """
        if self._shutdown:
            raise ConnectionError("Server is shutting down")

        self._active.add(handle)
        self._metrics.increment_connection_accepted()
        logger.debug(
            "Connection opened",
            connection_id=handle.id,
            total=len(self._active),
        )

    def close(self, handle: "ConnectionHandle") -> bool:
        """
        Run close-time cleanup for a connection.

        Safe to call more than once; only the first call has any effect.

        Returns:
            True if this call performed the cleanup.
        """
        if handle not in self._active:
            return False
        self._active.discard(handle)
        handle.mark_closed()
        self._metrics.increment_connection_closed()

        # Both removals are no-ops for roles the connection never took
        went_offline = self._registry.remove_recipient_connection(handle.recipient, handle)
        was_observer = self._registry.remove_observer(handle)

        if handle.recipient is not None:
            logger.info(
                "Recipient disconnected",
                connection_id=handle.id,
                recipient=sanitize_log_data(handle.recipient),
                went_offline=went_offline,
            )
        if was_observer:
            logger.info("Observer disconnected", connection_id=handle.id)

        if went_offline:
            self._presence.broadcast_online_list()

        return True
