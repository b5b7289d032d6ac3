"""
WebSocket Endpoint Base Class.

Owns one connection from handshake to cleanup:
1. Accept the socket
2. Wrap it in a ConnectionHandle and start its writer task
3. Message loop: receive frames, check size, hand them to ``handle_message``
4. On any exit, run registry cleanup exactly once and stop the writer

Subclasses implement ``handle_message``.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from fastapi import WebSocket, WebSocketDisconnect

from arrival_gateway.components.core.constants import WSCloseCode, WSConstants
from arrival_gateway.components.endpoints.mixins import (
    ConnectionLifecycleMixin,
    MessageValidationMixin,
)
from arrival_shared.config.logging import get_logger
from arrival_shared.infrastructure.correlation import bind_correlation_id, request_id_var

if TYPE_CHECKING:
    from arrival_gateway.connection_manager import ConnectionManager
    from arrival_gateway.components.connection.handle import ConnectionHandle

logger = get_logger(__name__)


class WebSocketEndpointBase(
    MessageValidationMixin,
    ConnectionLifecycleMixin,
    ABC,
):
    """
    Base class for WebSocket endpoints.

    Usage:
        class MyEndpoint(WebSocketEndpointBase):
            async def handle_message(self, data):
                ...

        endpoint = MyEndpoint(websocket, manager, "/ws")
        await endpoint.run()
    """

    def __init__(
        self,
        websocket: WebSocket,
        manager: "ConnectionManager",
        endpoint_name: str,
        max_message_size: int = WSConstants.MAX_MESSAGE_SIZE,
        accept_timeout: float = WSConstants.WS_ACCEPT_TIMEOUT,
    ):
        """
        Initialize the endpoint handler.

        Args:
            websocket: The WebSocket connection.
            manager: ConnectionManager instance.
            endpoint_name: Name for logging (e.g., "/ws").
            max_message_size: Largest accepted frame, in characters or bytes.
            accept_timeout: Timeout for the WebSocket handshake.
        """
        self.websocket = websocket
        self.manager = manager
        self.endpoint_name = endpoint_name
        self.max_message_size = max_message_size
        self.accept_timeout = accept_timeout

        self.handle: ConnectionHandle | None = None
        self._is_running = False

    @abstractmethod
    async def handle_message(self, data: str | bytes) -> None:
        """
        Handle one inbound frame.

        Args:
            data: Text frame, or raw bytes for binary frames.
        """

    async def run(self) -> None:
        """
        Main entry point - run the WebSocket endpoint.

        Handles the complete lifecycle:
        1. Accept
        2. Register the handle and start the writer
        3. Message loop
        4. Cleanup on disconnect
        """
        # Step 1: Accept
        try:
            await asyncio.wait_for(self.websocket.accept(), timeout=self.accept_timeout)
        except asyncio.TimeoutError:
            self.log_connect_rejected("accept_timeout")
            return
        except (RuntimeError, ConnectionError) as e:
            self.log_connect_rejected(f"accept_failed: {e}")
            return

        # Step 2: Register handle
        try:
            self.handle = self.manager.open(self.websocket)
        except ConnectionError as e:
            self.log_connect_rejected(str(e))
            await self.websocket.close(code=WSCloseCode.GOING_AWAY, reason=str(e))
            return

        token = bind_correlation_id(self.handle.id)
        writer = asyncio.create_task(
            self.handle.run_writer(), name=f"ws_writer:{self.handle.id}"
        )
        self.log_connect()

        # Step 3: Message loop
        self._is_running = True
        try:
            await self._message_loop()
        except WebSocketDisconnect as e:
            self.log_disconnect("client_disconnect", code=e.code)
        except Exception as e:
            logger.error(
                "Unexpected error in message loop",
                endpoint=self.endpoint_name,
                connection_id=self.handle.id,
                error=str(e),
                exc_info=True,
            )
        finally:
            # Step 4: Cleanup
            self._is_running = False
            self.manager.close(self.handle)
            writer.cancel()
            await asyncio.gather(writer, return_exceptions=True)
            request_id_var.reset(token)

    async def _message_loop(self) -> None:
        """
        Main message processing loop.

        Handles:
        - Receive (text or binary)
        - Message size validation
        - Custom message handling
        """
        while self._is_running:
            data = await self._receive_frame()

            if not await self.validate_message_size(data):
                self.log_disconnect("message_too_big", code=WSCloseCode.MESSAGE_TOO_BIG)
                break

            await self.handle_message(data)

    async def _receive_frame(self) -> str | bytes:
        """
        Receive the next data frame.

        Raises:
            WebSocketDisconnect: When the peer closes the connection.
        """
        message = await self.websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(
                code=message.get("code", WSCloseCode.NORMAL),
                reason=message.get("reason"),
            )
        text = message.get("text")
        if text is not None:
            return text
        return message.get("bytes") or b""
