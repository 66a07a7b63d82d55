"""
Pytest Configuration and Fixtures

Shared fixtures for unit and integration tests, including in-memory stand-ins
for the browser WebSocket and the upstream OpenAI Realtime socket.
"""

import asyncio
from typing import Any, Callable

import pytest
from fastapi.websockets import WebSocketState
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK
from websockets.protocol import State

from studybuddy.config import Settings
from studybuddy.realtime import SessionConfig, UpstreamConnector


# ══════════════════════════════════════════════════════════════
# Settings Fixtures
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with a fake API key and a local upstream URL."""
    return Settings(
        app_env="development",
        debug=True,
        openai_api_key="sk-test-key",
        openai_realtime_url="wss://upstream.test/v1/realtime",
        openai_realtime_model="test-realtime-model",
    )


@pytest.fixture
def session_config() -> SessionConfig:
    """Session configuration used by test connectors."""
    return SessionConfig(instructions="You are a test tutor.")


# ══════════════════════════════════════════════════════════════
# WebSocket Fakes
# ══════════════════════════════════════════════════════════════


class FakeClientWebSocket:
    """Stands in for a FastAPI WebSocket after `accept()`."""

    def __init__(self) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.sent: list[str | bytes] = []
        self.close_code: int | None = None
        self.close_reason: str | None = None
        self.close_calls = 0

    # Test controls
    def push_text(self, text: str) -> None:
        self.incoming.put_nowait({"type": "websocket.receive", "text": text})

    def push_bytes(self, data: bytes) -> None:
        self.incoming.put_nowait({"type": "websocket.receive", "bytes": data})

    def disconnect(self, code: int = 1001) -> None:
        self.incoming.put_nowait({"type": "websocket.disconnect", "code": code})

    @property
    def closed_by_server(self) -> bool:
        return self.application_state == WebSocketState.DISCONNECTED

    # WebSocket interface
    async def receive(self) -> dict[str, Any]:
        if self.client_state == WebSocketState.DISCONNECTED:
            raise RuntimeError("receive after disconnect")
        message = await self.incoming.get()
        if message["type"] == "websocket.disconnect":
            self.client_state = WebSocketState.DISCONNECTED
        return message

    async def send_text(self, data: str) -> None:
        self._ensure_open()
        self.sent.append(data)

    async def send_bytes(self, data: bytes) -> None:
        self._ensure_open()
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.close_calls += 1
        self.application_state = WebSocketState.DISCONNECTED
        self.close_code = code
        self.close_reason = reason
        self.disconnect(code)

    def _ensure_open(self) -> None:
        if (
            self.client_state != WebSocketState.CONNECTED
            or self.application_state != WebSocketState.CONNECTED
        ):
            raise RuntimeError("WebSocket is not connected")


_CLOSED = object()


class FakeUpstreamWebSocket:
    """Stands in for a `websockets` client connection."""

    def __init__(self) -> None:
        self.state = State.OPEN
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.sent: list[str | bytes] = []
        self.close_code: int | None = None
        self.close_calls = 0

    # Test controls
    def feed(self, frame: str | bytes) -> None:
        self.incoming.put_nowait(frame)

    def finish(self) -> None:
        """Upstream ends the session cleanly."""
        self.state = State.CLOSED
        self.incoming.put_nowait(_CLOSED)

    def fail(self) -> None:
        """Upstream connection drops abnormally."""
        self.state = State.CLOSED
        self.incoming.put_nowait(ConnectionClosedError(None, None))

    # websockets interface
    async def send(self, frame: str | bytes) -> None:
        if self.state is not State.OPEN:
            raise ConnectionClosedOK(None, None)
        self.sent.append(frame)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_calls += 1
        if self.state is State.OPEN:
            self.close_code = code
        self.state = State.CLOSED
        self.incoming.put_nowait(_CLOSED)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        while True:
            item = await self.incoming.get()
            if item is _CLOSED:
                return
            if isinstance(item, Exception):
                raise item
            yield item


@pytest.fixture
def make_client_ws() -> Callable[[], FakeClientWebSocket]:
    return FakeClientWebSocket


@pytest.fixture
def make_upstream_ws() -> Callable[[], FakeUpstreamWebSocket]:
    return FakeUpstreamWebSocket


@pytest.fixture
def client_ws() -> FakeClientWebSocket:
    return FakeClientWebSocket()


@pytest.fixture
def upstream_ws() -> FakeUpstreamWebSocket:
    return FakeUpstreamWebSocket()


# ══════════════════════════════════════════════════════════════
# Connector Fixtures
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def connector(session_config) -> UpstreamConnector:
    """Connector with a test key; pair it with a patched `connect`."""
    return UpstreamConnector(
        api_key="sk-test-key",
        url="wss://upstream.test/v1/realtime?model=test-realtime-model",
        beta_header="realtime=v1",
        session_config=session_config,
    )


@pytest.fixture
def unconfigured_connector(session_config) -> UpstreamConnector:
    """Connector without an API key."""
    return UpstreamConnector(
        api_key="",
        url="wss://upstream.test/v1/realtime?model=test-realtime-model",
        session_config=session_config,
    )


# ══════════════════════════════════════════════════════════════
# Async Helpers
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def wait_until():
    """Poll a condition on the running event loop until it holds."""

    async def _wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("Condition not met before timeout")
            await asyncio.sleep(0.001)

    return _wait_until
