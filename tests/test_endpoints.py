"""
Tests for the WebSocket endpoint base class and ArrivalEndpoint.
"""

import asyncio
import json
from unittest.mock import MagicMock

import pytest

from arrival_gateway.components.core.constants import WSCloseCode
from arrival_gateway.components.endpoints.handlers import ArrivalEndpoint
from arrival_gateway.components.events.router import RoutingResult
from arrival_gateway.connection_manager import ConnectionManager
from tests.conftest import FakeWebSocket, drain


class ScriptedWebSocket(FakeWebSocket):
    """Replays a fixed list of ASGI receive messages, then disconnects."""

    def __init__(self, messages):
        super().__init__()
        self.client = None
        self.accepted = False
        self._messages = list(messages)

    async def accept(self) -> None:
        self.accepted = True

    async def receive(self) -> dict:
        # Let writer tasks flush between frames
        for _ in range(3):
            await asyncio.sleep(0)
        if self._messages:
            return self._messages.pop(0)
        return {"type": "websocket.disconnect", "code": 1000}


def text(payload: dict) -> dict:
    return {"type": "websocket.receive", "text": json.dumps(payload)}


class TestArrivalEndpoint:
    @pytest.mark.asyncio
    async def test_run_routes_and_cleans_up(self):
        manager = ConnectionManager()
        ws = ScriptedWebSocket([text({"type": "register-observer"})])

        await ArrivalEndpoint(ws, manager).run()

        assert ws.accepted
        assert json.loads(ws.sent[0]) == {"type": "online-list", "online": []}
        assert manager.total_connections == 0
        assert manager.registry.observers == frozenset()

    @pytest.mark.asyncio
    async def test_bytes_frame(self):
        manager = ConnectionManager()
        frame = json.dumps({"type": "register-recipient", "name": "Alice"}).encode("utf-8")
        observer = manager.open(FakeWebSocket())
        manager.route(observer, json.dumps({"type": "register-observer"}))

        await ArrivalEndpoint(
            ScriptedWebSocket([{"type": "websocket.receive", "bytes": frame}]), manager
        ).run()

        assert drain(observer) == [
            {"type": "online-list", "online": []},
            {"type": "online-list", "online": ["Alice"]},
            {"type": "online-list", "online": []},
        ]

    @pytest.mark.asyncio
    async def test_oversized_frame_closes_with_1009(self):
        manager = ConnectionManager()
        ws = ScriptedWebSocket([{"type": "websocket.receive", "text": "x" * 11}])

        await ArrivalEndpoint(ws, manager, max_message_size=10).run()

        assert ws.close_code == WSCloseCode.MESSAGE_TOO_BIG
        assert manager.metrics.get_snapshot()["connections"]["rejected_oversize"] == 1
        assert manager.total_connections == 0

    @pytest.mark.asyncio
    async def test_routing_error_is_confined_to_frame(self):
        manager = ConnectionManager()
        manager.route = MagicMock(side_effect=[KeyError("boom"), RoutingResult(kind="register-observer")])
        ws = ScriptedWebSocket([text({"type": "register-observer"}), text({"type": "register-observer"})])

        await ArrivalEndpoint(ws, manager).run()

        assert manager.route.call_count == 2
        assert manager.metrics.get_snapshot()["frames"]["handler_errors"] == 1
        assert manager.total_connections == 0

    @pytest.mark.asyncio
    async def test_rejected_during_shutdown(self):
        manager = ConnectionManager()
        await manager.shutdown()
        ws = ScriptedWebSocket([text({"type": "register-observer"})])

        await ArrivalEndpoint(ws, manager).run()

        assert ws.close_code == WSCloseCode.GOING_AWAY
        assert ws.sent == []
