"""
Connection Management Module.

- lifecycle.py: Connection tracking and close-time cleanup
"""

from arrival_gateway.core.connection.lifecycle import ConnectionLifecycle

__all__ = [
    "ConnectionLifecycle",
]
