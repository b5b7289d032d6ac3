"""
WebSocket Endpoint Mixins.

Each mixin handles a single concern for WebSocket endpoints.

Mixins:
    MessageValidationMixin: Message size checks
    ConnectionLifecycleMixin: Lifecycle logging

Usage:
    class MyEndpoint(MessageValidationMixin, WebSocketEndpointBase):
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from fastapi import WebSocket

from arrival_gateway.components.core.constants import WSCloseCode, WSConstants
from arrival_shared.config.logging import get_logger

if TYPE_CHECKING:
    from arrival_gateway.connection_manager import ConnectionManager
    from arrival_gateway.components.connection.handle import ConnectionHandle

logger = get_logger(__name__)


# =============================================================================
# Protocols for mixin dependencies
# =============================================================================


class HasWebSocket(Protocol):
    """Protocol for classes with websocket attribute."""

    websocket: WebSocket
    endpoint_name: str
    handle: "ConnectionHandle | None"
    manager: "ConnectionManager"
    max_message_size: int


def _connection_id(endpoint: HasWebSocket) -> str:
    return endpoint.handle.id if endpoint.handle else "unknown"


# =============================================================================
# MessageValidationMixin
# =============================================================================


class MessageValidationMixin:
    """
    Mixin for message validation.

    Requires:
        - self.websocket: WebSocket
        - self.manager: ConnectionManager
        - self.endpoint_name: str
        - self.handle: ConnectionHandle | None
        - self.max_message_size: int
    """

    async def validate_message_size(self: HasWebSocket, data: str | bytes) -> bool:
        """
        Validate message size against configured limit.

        Args:
            data: Message data to validate.

        Returns:
            True if valid, False if too large (connection closed).
        """
        max_size = getattr(self, "max_message_size", WSConstants.MAX_MESSAGE_SIZE)

        if len(data) > max_size:
            logger.warning(
                "Message size exceeded limit",
                endpoint=self.endpoint_name,
                connection_id=_connection_id(self),
                size=len(data),
                max_size=max_size,
            )
            self.manager.record_oversize_rejection()
            await self.websocket.close(
                code=WSCloseCode.MESSAGE_TOO_BIG,
                reason="Message too large",
            )
            return False
        return True


# =============================================================================
# ConnectionLifecycleMixin
# =============================================================================


class ConnectionLifecycleMixin:
    """
    Mixin for connection lifecycle logging.

    Requires:
        - self.endpoint_name: str
        - self.handle: ConnectionHandle | None
    """

    def log_connect(self: HasWebSocket) -> None:
        """Log connection event."""
        client = self.websocket.client
        logger.info(
            "Connection accepted",
            endpoint=self.endpoint_name,
            connection_id=_connection_id(self),
            client=f"{client.host}:{client.port}" if client else "unknown",
        )

    def log_disconnect(self: HasWebSocket, reason: str = "client_disconnect", code: int | None = None) -> None:
        """Log disconnection event."""
        logger.info(
            "Connection closed",
            endpoint=self.endpoint_name,
            connection_id=_connection_id(self),
            reason=reason,
            code=code,
        )

    def log_connect_rejected(self: HasWebSocket, reason: str) -> None:
        """Log connection rejection event."""
        logger.warning(
            "Connection rejected",
            endpoint=self.endpoint_name,
            connection_id=_connection_id(self),
            reason=reason,
        )


# =============================================================================
# Exports
# =============================================================================


__all__ = [
    "MessageValidationMixin",
    "ConnectionLifecycleMixin",
]
