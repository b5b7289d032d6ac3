"""
Concrete WebSocket Endpoint Implementations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import WebSocket

from arrival_gateway.components.core.context import sanitize_log_data
from arrival_gateway.components.endpoints.base import WebSocketEndpointBase
from arrival_shared.config.logging import get_logger

if TYPE_CHECKING:
    from arrival_gateway.connection_manager import ConnectionManager

logger = get_logger(__name__)


class ArrivalEndpoint(WebSocketEndpointBase):
    """
    WebSocket endpoint shared by front-desk and recipient screens.

    Every connection starts role-less; the role comes from the first
    ``register-*`` message it sends.
    """

    def __init__(
        self,
        websocket: WebSocket,
        manager: "ConnectionManager",
        endpoint_name: str = "/ws",
        **kwargs,
    ):
        super().__init__(
            websocket=websocket,
            manager=manager,
            endpoint_name=endpoint_name,
            **kwargs,
        )

    async def handle_message(self, data: str | bytes) -> None:
        """Route the frame. A failure is confined to this frame."""
        try:
            result = self.manager.route(self.handle, data)
        except Exception as e:
            self.manager.record_handler_error()
            logger.error(
                "Unexpected error routing frame",
                connection_id=self.handle.id if self.handle else "unknown",
                frame=sanitize_log_data(data),
                error=str(e),
                exc_info=True,
            )
            return

        if result.kind == "notify":
            logger.debug(
                "Notification routed",
                connection_id=self.handle.id,
                arrivals=result.arrivals_sent,
                confirmations=result.confirmations_sent,
            )
