"""
Connection components: per-socket handles and the registry that indexes them.
"""

from arrival_gateway.components.connection.handle import (
    ConnectionHandle,
    ConnectionState,
    is_ws_connected,
)
from arrival_gateway.components.connection.registry import Registry

__all__ = [
    "ConnectionHandle",
    "ConnectionState",
    "Registry",
    "is_ws_connected",
]
