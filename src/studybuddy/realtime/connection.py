"""
Relay Connections

Thin wrappers around the two WebSockets of a relay pair: the browser-facing
FastAPI WebSocket and the upstream OpenAI Realtime socket. Both forward
frames verbatim; text stays text and binary stays binary.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

import structlog
from fastapi import WebSocket
from fastapi.websockets import WebSocketState
from websockets.exceptions import ConnectionClosedError
from websockets.protocol import State

from studybuddy.errors import UpstreamRuntimeError
from .protocol import CloseCode

logger = structlog.get_logger()

Frame = str | bytes


@dataclass
class ClientConnection:
    """The browser side of a relay pair."""

    websocket: WebSocket
    connection_id: UUID = field(default_factory=uuid4)
    connected_at: datetime = field(default_factory=datetime.utcnow)

    messages_received: int = 0
    messages_sent: int = 0

    close_code: int | None = None
    close_reason: str | None = None
    closed: bool = False

    def __hash__(self) -> int:
        return hash(self.connection_id)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ClientConnection):
            return self.connection_id == other.connection_id
        return False

    @property
    def is_open(self) -> bool:
        return (
            not self.closed
            and self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def receive(self) -> Frame | None:
        """
        Wait for the next frame from the browser.

        Returns None once the browser has disconnected.
        """
        message = await self.websocket.receive()

        if message["type"] == "websocket.disconnect":
            if not self.closed:
                self.closed = True
                self.close_code = message.get("code", CloseCode.NORMAL)
                self.close_reason = message.get("reason") or ""
            return None

        self.messages_received += 1
        text = message.get("text")
        if text is not None:
            return text
        return message.get("bytes") or b""

    async def send(self, frame: Frame) -> None:
        """Send a frame to the browser, preserving its type."""
        if isinstance(frame, str):
            await self.websocket.send_text(frame)
        else:
            await self.websocket.send_bytes(frame)
        self.messages_sent += 1

    async def send_best_effort(self, frame: Frame) -> bool:
        """Send a frame if the browser is still there; never raises."""
        if not self.is_open:
            return False
        try:
            await self.send(frame)
            return True
        except Exception as e:
            logger.warning(
                "Failed to deliver message to client",
                connection_id=str(self.connection_id),
                error=str(e),
            )
            return False

    async def close(self, code: int = CloseCode.NORMAL, reason: str = "") -> None:
        """Close the browser connection. Safe to call more than once."""
        if self.closed:
            return

        was_open = self.is_open
        self.closed = True
        self.close_code = code
        self.close_reason = reason

        if not was_open:
            return

        try:
            await self.websocket.close(code=code, reason=reason)
        except Exception as e:
            logger.warning(
                "Failed to close client WebSocket",
                connection_id=str(self.connection_id),
                error=str(e),
            )


@dataclass
class UpstreamConnection:
    """The OpenAI Realtime side of a relay pair."""

    websocket: Any
    connection_id: UUID = field(default_factory=uuid4)
    opened_at: datetime = field(default_factory=datetime.utcnow)

    messages_received: int = 0
    messages_sent: int = 0
    closed: bool = False

    def __hash__(self) -> int:
        return hash(self.connection_id)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, UpstreamConnection):
            return self.connection_id == other.connection_id
        return False

    @property
    def is_open(self) -> bool:
        return not self.closed and self.websocket.state is State.OPEN

    async def send(self, frame: Frame) -> None:
        """Send a frame upstream unchanged."""
        await self.websocket.send(frame)
        self.messages_sent += 1

    async def messages(self) -> AsyncIterator[Frame]:
        """
        Yield upstream frames in arrival order.

        Ends quietly on a clean close; an abnormal close is raised as
        UpstreamRuntimeError.
        """
        try:
            async for frame in self.websocket:
                self.messages_received += 1
                yield frame
        except ConnectionClosedError as e:
            raise UpstreamRuntimeError(f"Upstream connection lost: {e}") from e

    async def close(self, code: int = CloseCode.NORMAL, reason: str = "") -> None:
        """Close the upstream connection. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True

        try:
            await self.websocket.close(code=code, reason=reason)
        except Exception as e:
            logger.warning(
                "Failed to close upstream WebSocket",
                connection_id=str(self.connection_id),
                error=str(e),
            )
