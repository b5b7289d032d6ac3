"""
Arrival notification gateway.

Routes front-desk "client arrived" notifications to recipient screens over
WebSockets and keeps every front-desk screen in sync on who is online.
"""

__version__ = "1.0.0"
