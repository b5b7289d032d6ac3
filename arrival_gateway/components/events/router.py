"""
Message Router - Dispatches inbound frames to their handlers.

Separates frame decoding from the routing rules:
- register-recipient: bind the connection to an identity, re-broadcast presence
- register-observer: mark as observer, send that one connection a snapshot
- notify: deliver ``arrival`` to the recipient's connections, then
  ``notify-confirmed`` to every observer

Malformed frames are logged and dropped; nothing is ever sent back to the
sender for them. A notify for an offline recipient is not an error: the
confirmation still goes out, and the missing arrival is the only signal.

Usage:
    router = MessageRouter(registry, presence)
    result = router.route(handle, raw_frame)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from arrival_gateway.components.core.context import sanitize_log_data
from arrival_gateway.components.events.types import (
    FrameError,
    FrameParseError,
    Notification,
    NotifyMessage,
    RegisterObserverMessage,
    RegisterRecipientMessage,
    decode_message,
)
from arrival_shared.config.logging import get_logger

if TYPE_CHECKING:
    from arrival_gateway.components.broadcast.presence import PresenceBroadcaster
    from arrival_gateway.components.connection.handle import ConnectionHandle
    from arrival_gateway.components.connection.registry import Registry
    from arrival_gateway.components.metrics.collector import MetricsCollector

logger = get_logger(__name__)


@dataclass
class RoutingResult:
    """Result of routing one inbound frame."""

    kind: str | None = None
    presence_sent: int = 0
    snapshot_sent: bool = False
    arrivals_sent: int = 0
    confirmations_sent: int = 0
    dropped: str | None = None
    notification: Notification | None = None

    @property
    def routed(self) -> bool:
        """Whether the frame was accepted by a handler."""
        return self.dropped is None


class MessageRouter:
    """
    Routes decoded messages against the registry.

    Every method is synchronous: a frame's registry mutation and all sends
    it causes complete before the event loop can run another handler.
    """

    def __init__(
        self,
        registry: "Registry",
        presence: "PresenceBroadcaster",
        metrics: "MetricsCollector | None" = None,
    ) -> None:
        """
        Initialize message router.

        Args:
            registry: Recipient/observer registry to mutate and query
            presence: Broadcaster for online-list snapshots
            metrics: Optional collector for frame and delivery counters
        """
        self._registry = registry
        self._presence = presence
        self._metrics = metrics

    # =========================================================================
    # Entry point
    # =========================================================================

    def route(self, handle: "ConnectionHandle", raw: str | bytes) -> RoutingResult:
        """
        Decode and dispatch one inbound frame.

        Args:
            handle: Connection the frame arrived on
            raw: Frame payload

        Returns:
            RoutingResult describing what was sent, or why it was dropped.
        """
        if self._metrics is not None:
            self._metrics.increment_frames_received()

        try:
            message = decode_message(raw)
        except FrameError as e:
            if self._metrics is not None:
                if isinstance(e, FrameParseError):
                    self._metrics.increment_parse_errors()
                else:
                    self._metrics.increment_validation_errors()
            logger.debug(
                "Dropping malformed frame",
                connection_id=handle.id,
                reason=e.reason,
                error=str(e),
                frame=sanitize_log_data(raw),
            )
            return RoutingResult(dropped=e.reason)

        result = self.dispatch(handle, message)
        if result.routed and self._metrics is not None:
            self._metrics.increment_frames_routed()
        return result

    def dispatch(
        self,
        handle: "ConnectionHandle",
        message: RegisterRecipientMessage | RegisterObserverMessage | NotifyMessage,
    ) -> RoutingResult:
        """Dispatch an already decoded message to its handler."""
        if isinstance(message, RegisterRecipientMessage):
            return self.handle_register_recipient(handle, message)
        elif isinstance(message, RegisterObserverMessage):
            return self.handle_register_observer(handle)
        elif isinstance(message, NotifyMessage):
            return self.handle_notify(message)

        logger.debug(
            "Ignoring unhandled message type",
            connection_id=handle.id,
            message_type=type(message).__name__,
        )
        return RoutingResult(dropped="unhandled_type")

    # =========================================================================
    # Handlers
    # =========================================================================

    def handle_register_recipient(
        self, handle: "ConnectionHandle", message: RegisterRecipientMessage
    ) -> RoutingResult:
        """Register the connection under a recipient identity and re-broadcast presence."""
        result = RoutingResult(kind="register-recipient")
        identity = message.name

        if not handle.assign_recipient(identity):
            logger.warning(
                "Connection already registered as another recipient",
                connection_id=handle.id,
                current=sanitize_log_data(handle.recipient or ""),
                requested=sanitize_log_data(identity),
            )
            result.dropped = "recipient_already_assigned"
            return result

        came_online = self._registry.register_recipient(identity, handle)
        logger.info(
            "Recipient connected",
            connection_id=handle.id,
            recipient=sanitize_log_data(identity),
            connections=len(self._registry.connections_for(identity)),
            came_online=came_online,
        )

        result.presence_sent = self._presence.broadcast_online_list()
        return result

    def handle_register_observer(self, handle: "ConnectionHandle") -> RoutingResult:
        """Register the connection as an observer and send it the current snapshot."""
        handle.mark_observer()
        self._registry.register_observer(handle)
        logger.info("Observer connected", connection_id=handle.id)

        return RoutingResult(
            kind="register-observer",
            snapshot_sent=self._presence.send_snapshot(handle),
        )

    def handle_notify(self, message: NotifyMessage) -> RoutingResult:
        """Deliver an arrival to the recipient, then confirm to every observer."""
        notification = Notification.from_message(message)
        result = RoutingResult(kind="notify", notification=notification)
        stale = 0

        logger.info(
            "Notifying recipient",
            recipient=sanitize_log_data(notification.recipient),
            client=sanitize_log_data(notification.display_name),
            notification_id=notification.id,
        )

        # Directed delivery: only the target recipient's connections
        arrival_frame = notification.to_arrival().to_frame()
        for target in self._registry.connections_for(notification.recipient):
            if target.send(arrival_frame):
                result.arrivals_sent += 1
            else:
                stale += 1

        if result.arrivals_sent == 0:
            logger.info(
                "Recipient offline, arrival not delivered",
                recipient=sanitize_log_data(notification.recipient),
                notification_id=notification.id,
            )

        # Confirmation goes out regardless of delivery outcome
        confirmation_frame = notification.to_confirmation().to_frame()
        for observer in self._registry.observer_connections():
            if observer.send(confirmation_frame):
                result.confirmations_sent += 1
            else:
                stale += 1

        if self._metrics is not None:
            self._metrics.add_arrivals_sent(result.arrivals_sent)
            self._metrics.add_confirmations_sent(result.confirmations_sent)
            if result.arrivals_sent == 0:
                self._metrics.increment_notifications_unrouted()
            if stale:
                self._metrics.add_stale_skipped(stale)

        return result
