"""
Tests for presence broadcasting.
"""

from tests.conftest import drain


class TestPresenceBroadcaster:
    def test_snapshot_reflects_registry(self, presence, registry, make_handle):
        registry.register_recipient("Alice", make_handle())
        registry.register_recipient("Bob", make_handle())

        assert presence.snapshot().online == ["Alice", "Bob"]

    def test_broadcast_reaches_every_open_observer(self, presence, registry, make_handle, metrics):
        observers = [make_handle() for _ in range(3)]
        for h in observers:
            registry.register_observer(h)
        registry.register_recipient("Alice", make_handle())

        sent = presence.broadcast_online_list()

        assert sent == 3
        for h in observers:
            assert drain(h) == [{"type": "online-list", "online": ["Alice"]}]
        assert metrics.get_snapshot()["delivery"]["presence_broadcasts"] == 1

    def test_broadcast_skips_closed_observers(self, presence, registry, make_handle, metrics):
        live, stale = make_handle(), make_handle()
        registry.register_observer(live)
        registry.register_observer(stale)
        stale.websocket.disconnect()

        sent = presence.broadcast_online_list()

        assert sent == 1
        assert drain(stale) == []
        # Skipped, not removed: the close path owns removal
        assert stale in registry.observers
        assert metrics.get_snapshot()["delivery"]["stale_skipped"] == 1

    def test_broadcast_with_no_observers(self, presence):
        assert presence.broadcast_online_list() == 0

    def test_recipient_only_connections_get_nothing(self, presence, registry, make_handle):
        recipient = make_handle()
        registry.register_recipient("Alice", recipient)

        presence.broadcast_online_list()

        assert drain(recipient) == []

    def test_send_snapshot_to_single_handle(self, presence, registry, make_handle):
        registry.register_recipient("Alice", make_handle())
        handle = make_handle()

        assert presence.send_snapshot(handle) is True
        assert drain(handle) == [{"type": "online-list", "online": ["Alice"]}]

    def test_send_snapshot_to_closed_handle(self, presence, make_handle):
        handle = make_handle()
        handle.mark_closed()

        assert presence.send_snapshot(handle) is False
