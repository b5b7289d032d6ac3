"""
Connection Handle.

Wraps one accepted WebSocket. The registry stores handles, never raw
sockets, so routing code only sees a small synchronous surface:

- ``send(frame)`` enqueues a serialized frame and returns immediately
- ``is_open`` is the liveness check done before every send
- ``recipient`` / ``is_observer`` record the roles the peer registered for

A per-connection writer task (``run_writer``) drains the outbox to the
socket, so a slow peer never stalls routing for everyone else.
"""

from __future__ import annotations

import asyncio
import uuid
from enum import Enum
from typing import TYPE_CHECKING

from starlette.websockets import WebSocketDisconnect, WebSocketState

from arrival_gateway.components.core.constants import WSConstants
from arrival_shared.config.logging import get_logger

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)


def is_ws_connected(ws: "WebSocket") -> bool:
    """
    Check if WebSocket is in connected state before sending.

    Starlette WebSockets have limited state visibility:
    - CONNECTING: Initial state (not observable here)
    - CONNECTED: Active connection
    - DISCONNECTED: Closed connection

    Transitional states are not exposed, so connections may appear
    connected briefly after disconnect initiated.
    """
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


class ConnectionState(str, Enum):
    """Lifecycle state of a handle. CLOSED is terminal."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class ConnectionHandle:
    """
    One live bidirectional channel.

    Equality and hashing are by object identity, which is what registry set
    membership needs. ``id`` is a printable identity for logs.

    Role attributes are write-once:
    - ``recipient`` can be assigned a single identity for the life of the
      handle; re-assigning the same identity is a no-op, a different one is
      refused.
    - ``is_observer`` can only go from False to True.
    """

    def __init__(
        self,
        websocket: "WebSocket",
        queue_size: int = WSConstants.SEND_QUEUE_SIZE,
        connection_id: str | None = None,
    ) -> None:
        self.id = connection_id or str(uuid.uuid4())
        self.websocket = websocket
        self._state = ConnectionState.OPEN
        self._recipient: str | None = None
        self._is_observer = False
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self.dropped_frames = 0

    def __repr__(self) -> str:
        return (
            f"ConnectionHandle(id={self.id!r}, state={self._state.value}, "
            f"recipient={self._recipient!r}, observer={self._is_observer})"
        )

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        """Best-effort liveness check. A stale True only costs a dropped frame."""
        return self._state is ConnectionState.OPEN and is_ws_connected(self.websocket)

    def mark_closed(self) -> bool:
        """
        Transition to CLOSED.

        Returns:
            True if this call performed the transition, False if already closed.
        """
        if self._state is ConnectionState.CLOSED:
            return False
        self._state = ConnectionState.CLOSED
        return True

    # =========================================================================
    # Roles
    # =========================================================================

    @property
    def recipient(self) -> str | None:
        return self._recipient

    def assign_recipient(self, identity: str) -> bool:
        """
        Bind this handle to a recipient identity (at most once).

        Returns:
            True if the handle is now bound to ``identity``, False if it was
            already bound to a different one.
        """
        if self._recipient is None:
            self._recipient = identity
            return True
        return self._recipient == identity

    @property
    def is_observer(self) -> bool:
        return self._is_observer

    def mark_observer(self) -> None:
        self._is_observer = True

    # =========================================================================
    # Sending
    # =========================================================================

    @property
    def pending(self) -> int:
        """Frames waiting in the outbox."""
        return self._outbox.qsize()

    def send(self, frame: str) -> bool:
        """
        Queue a frame for delivery without blocking.

        Args:
            frame: Serialized JSON text frame.

        Returns:
            True if queued, False if the handle is closed or the outbox is full.
        """
        if not self.is_open:
            return False
        try:
            self._outbox.put_nowait(frame)
        except asyncio.QueueFull:
            self.dropped_frames += 1
            logger.warning(
                "Outbox full, dropping frame",
                connection_id=self.id,
                pending=self._outbox.qsize(),
                dropped=self.dropped_frames,
            )
            return False
        return True

    async def run_writer(self) -> None:
        """
        Drain the outbox to the socket until the handle closes.

        A failed send marks the handle CLOSED; registry removal is left to
        the endpoint's close path.
        """
        while True:
            frame = await self._outbox.get()
            if not self.is_open:
                return
            try:
                await self.websocket.send_text(frame)
            except (WebSocketDisconnect, ConnectionError, RuntimeError) as e:
                # WebSocketDisconnect: Client disconnected
                # ConnectionError: Network errors
                # RuntimeError: WebSocket in invalid state
                logger.warning(
                    "Send failed on stale connection",
                    connection_id=self.id,
                    error=str(e),
                )
                self.mark_closed()
                return
