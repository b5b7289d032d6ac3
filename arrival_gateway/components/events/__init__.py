"""
Event handling: message value objects and the router.
"""

from arrival_gateway.components.events.router import MessageRouter, RoutingResult
from arrival_gateway.components.events.types import (
    ArrivalMessage,
    FrameError,
    FrameParseError,
    FrameValidationError,
    Notification,
    NotifyConfirmedMessage,
    NotifyMessage,
    OnlineListMessage,
    RegisterObserverMessage,
    RegisterRecipientMessage,
    decode_message,
    utc_timestamp,
)

__all__ = [
    "ArrivalMessage",
    "FrameError",
    "FrameParseError",
    "FrameValidationError",
    "MessageRouter",
    "Notification",
    "NotifyConfirmedMessage",
    "NotifyMessage",
    "OnlineListMessage",
    "RegisterObserverMessage",
    "RegisterRecipientMessage",
    "RoutingResult",
    "decode_message",
    "utc_timestamp",
]
