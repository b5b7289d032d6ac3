"""
Pytest configuration and fixtures for gateway tests.
"""

import json

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from arrival_gateway.components.broadcast.presence import PresenceBroadcaster
from arrival_gateway.components.connection.handle import ConnectionHandle
from arrival_gateway.components.connection.registry import Registry
from arrival_gateway.components.events.router import MessageRouter
from arrival_gateway.components.metrics.collector import MetricsCollector
from arrival_gateway.core.connection.lifecycle import ConnectionLifecycle
from arrival_gateway.main import create_app
from arrival_shared.config.settings import Settings


class FakeWebSocket:
    """
    Minimal stand-in for a Starlette WebSocket.

    Records every text frame written to it; ``disconnect()`` flips both
    state flags the way Starlette does after a close.
    """

    def __init__(self):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[str] = []
        self.close_code: int | None = None
        self.fail_sends = False

    async def send_text(self, data: str) -> None:
        if self.fail_sends:
            raise RuntimeError("Cannot call send once a close message has been sent")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.close_code = code
        self.disconnect()

    def disconnect(self) -> None:
        self.client_state = WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.DISCONNECTED


def drain(handle: ConnectionHandle) -> list[dict]:
    """Pop every queued outbound frame from a handle and decode it."""
    frames = []
    while not handle._outbox.empty():
        frames.append(json.loads(handle._outbox.get_nowait()))
    return frames


@pytest.fixture
def make_handle():
    """Factory for handles backed by FakeWebSocket."""
    def _make(connection_id: str | None = None, queue_size: int = 100) -> ConnectionHandle:
        return ConnectionHandle(FakeWebSocket(), queue_size=queue_size, connection_id=connection_id)
    return _make


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def registry():
    return Registry()


@pytest.fixture
def presence(registry, metrics):
    return PresenceBroadcaster(registry, metrics)


@pytest.fixture
def router(registry, presence, metrics):
    return MessageRouter(registry, presence, metrics)


@pytest.fixture
def lifecycle(registry, presence, metrics):
    return ConnectionLifecycle(registry, presence, metrics)


@pytest.fixture
def test_settings(tmp_path):
    """Development settings with a throwaway front-end page."""
    (tmp_path / "index.html").write_text("<html><body>arrivals</body></html>", encoding="utf-8")
    return Settings(
        environment="test",
        debug=False,
        static_dir=tmp_path,
        ws_max_message_size=1024,
    )


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def client(app):
    """
    Test client with the lifespan running.

    All WebSocket sessions opened from one client share its event loop,
    which the per-connection writer tasks require.
    """
    with TestClient(app) as test_client:
        yield test_client
