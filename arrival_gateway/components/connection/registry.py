"""
Connection Registry - Authoritative map of who is reachable.

Indices maintained:
- recipients: identity -> set[ConnectionHandle]
- observers: set[ConnectionHandle]

A recipient identity is "online" exactly while it has at least one handle;
emptying a set deletes the key in the same call, so no empty entries are
ever observable.

The registry holds non-owning references. It never opens, closes or sends
on a handle; the endpoint owns the socket and calls back in on close.

Thread Safety:
- All methods are synchronous and run on the event loop thread. Nothing
  here awaits, so a message handler that mutates the registry and then
  broadcasts cannot be interleaved with another connection's handler.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from arrival_gateway.components.connection.handle import ConnectionHandle


class Registry:
    """
    Recipient and observer registrations.

    Recipient identity order is insertion order of the identity's first
    (currently live) registration, which is what presence snapshots report.
    """

    def __init__(self) -> None:
        """Initialize empty indices."""
        self._recipients: dict[str, set[ConnectionHandle]] = {}
        self._observers: set[ConnectionHandle] = set()

    # =========================================================================
    # Immutable views
    # =========================================================================

    @property
    def recipients(self) -> MappingProxyType[str, set["ConnectionHandle"]]:
        """Connections indexed by recipient identity (immutable view)."""
        return MappingProxyType(self._recipients)

    @property
    def observers(self) -> frozenset["ConnectionHandle"]:
        """Observer connections (immutable copy)."""
        return frozenset(self._observers)

    # =========================================================================
    # Query methods
    # =========================================================================

    def connections_for(self, identity: str) -> set["ConnectionHandle"]:
        """Get all connections for a recipient (returns copy, empty if unknown)."""
        return set(self._recipients.get(identity, ()))

    def online_identities(self) -> list[str]:
        """Snapshot of currently registered recipient identities."""
        return list(self._recipients)

    def observer_connections(self) -> list["ConnectionHandle"]:
        """Stable snapshot of observers, safe to iterate while the registry changes."""
        return list(self._observers)

    def is_online(self, identity: str) -> bool:
        return identity in self._recipients

    # =========================================================================
    # Registration methods
    # =========================================================================

    def register_recipient(self, identity: str, handle: "ConnectionHandle") -> bool:
        """
        Add a connection under a recipient identity.

        Idempotent: adding a handle that is already present changes nothing.

        Args:
            identity: Recipient identity (exact, case-sensitive match).
            handle: Connection to add.

        Returns:
            True if the identity was not online before this call.
        """
        connections = self._recipients.get(identity)
        if connections is None:
            self._recipients[identity] = {handle}
            return True
        connections.add(handle)
        return False

    def register_observer(self, handle: "ConnectionHandle") -> None:
        """Add an observer connection. Idempotent."""
        self._observers.add(handle)

    # =========================================================================
    # Unregistration methods
    # =========================================================================

    def remove_recipient_connection(
        self, identity: str | None, handle: "ConnectionHandle"
    ) -> bool:
        """
        Remove a connection from a recipient identity.

        Unknown identities and handles are treated as already removed.

        Returns:
            True if the identity went offline because of this call.
        """
        if identity is None:
            return False
        connections = self._recipients.get(identity)
        if connections is None or handle not in connections:
            return False
        connections.discard(handle)
        if not connections:
            del self._recipients[identity]
            return True
        return False

    def remove_observer(self, handle: "ConnectionHandle") -> bool:
        """
        Remove an observer connection. Idempotent.

        Returns:
            True if the handle was an observer.
        """
        if handle in self._observers:
            self._observers.discard(handle)
            return True
        return False

    # =========================================================================
    # Utility methods
    # =========================================================================

    def get_stats(self) -> dict:
        """Get index statistics for monitoring."""
        return {
            "recipients_online": len(self._recipients),
            "recipient_connections": sum(len(c) for c in self._recipients.values()),
            "observer_connections": len(self._observers),
        }
