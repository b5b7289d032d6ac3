"""
WebSocket Connection Manager.

Thin orchestrator that owns the process-wide routing state and composes
the components that act on it:
- Registry: recipient/observer indices
- PresenceBroadcaster: online-list snapshots
- MessageRouter: inbound frame dispatch
- ConnectionLifecycle: live handle tracking and close-time cleanup
- MetricsCollector: counters for the health endpoint

One instance is built per application by ``create_app()``; nothing here is
module-level state.
"""

from __future__ import annotations

import asyncio
from typing import Any, TYPE_CHECKING

from arrival_gateway.components.broadcast.presence import PresenceBroadcaster
from arrival_gateway.components.connection.handle import ConnectionHandle
from arrival_gateway.components.connection.registry import Registry
from arrival_gateway.components.core.constants import WSCloseCode, WSConstants
from arrival_gateway.components.events.router import MessageRouter, RoutingResult
from arrival_gateway.components.metrics.collector import MetricsCollector
from arrival_gateway.core.connection.lifecycle import ConnectionLifecycle
from arrival_shared.config.logging import get_logger

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)

__all__ = ["ConnectionManager"]


class ConnectionManager:
    """
    Manages WebSocket connections for arrival notifications.

    Configuration:
    - send_queue_size: frames buffered per connection before dropping
    """

    def __init__(self, send_queue_size: int = WSConstants.SEND_QUEUE_SIZE) -> None:
        """Initialize the connection manager with composed components."""
        self.send_queue_size = send_queue_size

        self._metrics = MetricsCollector()
        self._registry = Registry()
        self._presence = PresenceBroadcaster(self._registry, self._metrics)
        self._router = MessageRouter(self._registry, self._presence, self._metrics)
        self._lifecycle = ConnectionLifecycle(self._registry, self._presence, self._metrics)

    # =========================================================================
    # Public properties
    # =========================================================================

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def presence(self) -> PresenceBroadcaster:
        return self._presence

    @property
    def router(self) -> MessageRouter:
        return self._router

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def total_connections(self) -> int:
        """Total number of live connections."""
        return self._lifecycle.total_connections

    # =========================================================================
    # Connection management (delegate to lifecycle)
    # =========================================================================

    def open(self, websocket: "WebSocket") -> ConnectionHandle:
        """
        Wrap an accepted WebSocket and start tracking it.

        Raises:
            ConnectionError: If the server is shutting down.
        """
        handle = ConnectionHandle(websocket, queue_size=self.send_queue_size)
        self._lifecycle.open(handle)
        return handle

    def close(self, handle: ConnectionHandle) -> bool:
        """Clean up after a connection closes. Idempotent."""
        return self._lifecycle.close(handle)

    # =========================================================================
    # Routing (delegate to router)
    # =========================================================================

    def route(self, handle: ConnectionHandle, raw: str | bytes) -> RoutingResult:
        """Decode and dispatch one inbound frame."""
        return self._router.route(handle, raw)

    def record_oversize_rejection(self) -> None:
        self._metrics.increment_connection_rejected_oversize()

    def record_handler_error(self) -> None:
        self._metrics.increment_handler_errors()

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def shutdown(self, timeout: float = WSConstants.SHUTDOWN_CLOSE_TIMEOUT) -> int:
        """
        Close every live connection with GOING_AWAY.

        Call this during application shutdown (lifespan).

        Returns:
            Number of connections closed.
        """
        self._lifecycle.set_shutdown(True)
        handles = self._lifecycle.active_connections()
        if not handles:
            return 0

        logger.info("Closing connections for shutdown", count=len(handles))

        async def close_one(handle: ConnectionHandle) -> None:
            try:
                await handle.websocket.close(
                    code=WSCloseCode.GOING_AWAY,
                    reason="Server shutting down",
                )
            except (RuntimeError, ConnectionError) as e:
                logger.debug(
                    "Socket already closed during shutdown",
                    connection_id=handle.id,
                    error=str(e),
                )
            finally:
                self._lifecycle.close(handle)

        try:
            await asyncio.wait_for(
                asyncio.gather(*(close_one(h) for h in handles), return_exceptions=True),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Timed out closing connections during shutdown", count=len(handles))
            for handle in handles:
                self._lifecycle.close(handle)

        return len(handles)

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> dict[str, Any]:
        """Get connection statistics for monitoring."""
        return {
            "total_connections": self.total_connections,
            **self._registry.get_stats(),
            "metrics": self._metrics.get_snapshot(),
        }
