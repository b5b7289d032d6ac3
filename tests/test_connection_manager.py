"""
Tests for ConnectionManager orchestration and shutdown.
"""

import asyncio
import json

import pytest

from arrival_gateway.components.core.constants import WSCloseCode
from arrival_gateway.connection_manager import ConnectionManager
from tests.conftest import FakeWebSocket, drain


class SlowCloseWebSocket(FakeWebSocket):
    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        await asyncio.sleep(10)


class BrokenCloseWebSocket(FakeWebSocket):
    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        raise RuntimeError("Unexpected ASGI message 'websocket.close'")


class TestConnectionManager:
    def test_open_route_close(self):
        manager = ConnectionManager(send_queue_size=10)
        observer = manager.open(FakeWebSocket())
        recipient = manager.open(FakeWebSocket())

        manager.route(observer, json.dumps({"type": "register-observer"}))
        manager.route(recipient, json.dumps({"type": "register-recipient", "name": "Alice"}))
        assert manager.total_connections == 2

        manager.close(recipient)
        manager.close(recipient)

        assert drain(observer) == [
            {"type": "online-list", "online": []},
            {"type": "online-list", "online": ["Alice"]},
            {"type": "online-list", "online": []},
        ]
        assert manager.total_connections == 1

    def test_handles_use_configured_queue_size(self):
        manager = ConnectionManager(send_queue_size=1)
        handle = manager.open(FakeWebSocket())

        assert handle.send("a") is True
        assert handle.send("b") is False

    def test_get_stats(self):
        manager = ConnectionManager()
        observer = manager.open(FakeWebSocket())
        manager.route(observer, json.dumps({"type": "register-observer"}))
        manager.record_oversize_rejection()
        manager.record_handler_error()

        stats = manager.get_stats()

        assert stats["total_connections"] == 1
        assert stats["observer_connections"] == 1
        assert stats["recipients_online"] == 0
        assert stats["metrics"]["connections"]["rejected_oversize"] == 1
        assert stats["metrics"]["frames"]["handler_errors"] == 1


class TestShutdown:
    @pytest.mark.asyncio
    async def test_shutdown_closes_all_with_going_away(self):
        manager = ConnectionManager()
        sockets = [FakeWebSocket() for _ in range(3)]
        handles = [manager.open(ws) for ws in sockets]
        manager.route(handles[0], json.dumps({"type": "register-recipient", "name": "Alice"}))

        closed = await manager.shutdown()

        assert closed == 3
        assert all(ws.close_code == WSCloseCode.GOING_AWAY for ws in sockets)
        assert manager.total_connections == 0
        assert manager.registry.online_identities() == []

    @pytest.mark.asyncio
    async def test_shutdown_rejects_new_connections(self):
        manager = ConnectionManager()
        await manager.shutdown()

        with pytest.raises(ConnectionError):
            manager.open(FakeWebSocket())

    @pytest.mark.asyncio
    async def test_shutdown_with_no_connections(self):
        assert await ConnectionManager().shutdown() == 0

    @pytest.mark.asyncio
    async def test_shutdown_timeout_still_cleans_up(self):
        manager = ConnectionManager()
        manager.open(SlowCloseWebSocket())
        manager.open(FakeWebSocket())

        closed = await manager.shutdown(timeout=0.05)

        assert closed == 2
        assert manager.total_connections == 0

    @pytest.mark.asyncio
    async def test_shutdown_tolerates_close_errors(self):
        manager = ConnectionManager()
        manager.open(BrokenCloseWebSocket())

        assert await manager.shutdown() == 1
        assert manager.total_connections == 0
