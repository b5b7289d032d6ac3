"""
Broadcast components.
"""

from arrival_gateway.components.broadcast.presence import PresenceBroadcaster

__all__ = ["PresenceBroadcaster"]
