"""
WebSocket endpoints: base lifecycle, mixins and the concrete endpoint.
"""

from arrival_gateway.components.endpoints.base import WebSocketEndpointBase
from arrival_gateway.components.endpoints.handlers import ArrivalEndpoint
from arrival_gateway.components.endpoints.mixins import (
    ConnectionLifecycleMixin,
    MessageValidationMixin,
)

__all__ = [
    "ArrivalEndpoint",
    "ConnectionLifecycleMixin",
    "MessageValidationMixin",
    "WebSocketEndpointBase",
]
