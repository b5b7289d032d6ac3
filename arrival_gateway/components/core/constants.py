"""
WebSocket Gateway Constants.

Centralized constants for close codes, wire message types and defaults.
"""

from enum import IntEnum
from typing import Final

__all__ = [
    "WSCloseCode",
    "WSConstants",
    "MessageType",
    "DEFAULT_ALLOWED_ORIGINS",
]


class WSCloseCode(IntEnum):
    """
    WebSocket close codes used by the gateway.

    Standard codes (1000-1999) from RFC 6455.
    """

    NORMAL = 1000  # Normal closure
    GOING_AWAY = 1001  # Server shutting down or client navigating away
    MESSAGE_TOO_BIG = 1009  # Message too large to process


class MessageType:
    """
    Values of the ``type`` discriminator on the wire.

    The ``register-therapist`` / ``register-reception`` spellings are what the
    first front-end sent and are still accepted as aliases.
    """

    # Inbound
    REGISTER_RECIPIENT: Final[str] = "register-recipient"
    REGISTER_RECIPIENT_LEGACY: Final[str] = "register-therapist"
    REGISTER_OBSERVER: Final[str] = "register-observer"
    REGISTER_OBSERVER_LEGACY: Final[str] = "register-reception"
    NOTIFY: Final[str] = "notify"

    # Outbound
    ONLINE_LIST: Final[str] = "online-list"
    ARRIVAL: Final[str] = "arrival"
    NOTIFY_CONFIRMED: Final[str] = "notify-confirmed"


class WSConstants:
    """
    WebSocket Gateway operational constants.

    These are defaults used when settings are not available. At runtime the
    endpoint reads ``ws_max_message_size`` and ``ws_send_queue_size`` from
    settings, which take precedence.
    """

    # Largest accepted inbound frame.
    MAX_MESSAGE_SIZE: Final[int] = 64 * 1024

    # Frames buffered per connection before new ones are dropped.
    SEND_QUEUE_SIZE: Final[int] = 100

    # Seconds allowed for the WebSocket handshake to complete.
    WS_ACCEPT_TIMEOUT: Final[float] = 5.0

    # Seconds to wait for sockets to close on shutdown.
    SHUTDOWN_CLOSE_TIMEOUT: Final[float] = 2.0

    # Maximum characters of user data included in a log line.
    LOG_DATA_MAX_LENGTH: Final[int] = 100


# Default CORS origins for local development of the front-end
DEFAULT_ALLOWED_ORIGINS: Final[tuple[str, ...]] = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
)
