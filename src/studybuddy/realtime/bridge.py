"""
Relay Bridge

Pairs one browser WebSocket with one OpenAI Realtime WebSocket and forwards
frames between them until either side goes away.

Lifecycle:
    INIT -> AWAITING_UPSTREAM -> BRIDGED -> CLOSED

CLOSED is reachable from every state and is terminal. Client frames that
arrive before the pair is BRIDGED, or after the upstream has closed, are
dropped rather than buffered.
"""

import asyncio
from typing import Any

import structlog
from websockets.exceptions import ConnectionClosed

from studybuddy.errors import ConfigurationError, StudyBuddyError
from .connection import ClientConnection, UpstreamConnection
from .connector import UpstreamConnector
from .protocol import (
    UPSTREAM_FAILED_REASON,
    CloseCode,
    RelayErrorMessage,
    RelayState,
)

logger = structlog.get_logger()


class RelayBridge:
    """
    A single client/upstream relay pair.

    Each bridge owns its two connections outright; bridges share nothing
    with each other, so any number may run concurrently.
    """

    def __init__(self, client: ClientConnection, connector: UpstreamConnector) -> None:
        self.client = client
        self.connector = connector
        self.upstream: UpstreamConnection | None = None
        self.state = RelayState.INIT

        self.dropped_messages = 0
        self._tasks: set[asyncio.Task] = set()
        self._log = logger.bind(connection_id=str(client.connection_id))

    # ──────────────────────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────────────────────

    @property
    def is_closed(self) -> bool:
        return self.state is RelayState.CLOSED

    async def run(self) -> None:
        """Relay until either side closes. Returns once the pair is CLOSED."""
        try:
            self.connector.ensure_configured()
        except ConfigurationError as e:
            self._log.error("Relay refused: missing configuration", reason=str(e))
            await self._shutdown(CloseCode.INTERNAL_ERROR, str(e))
            return

        client_reader = self._spawn(self._pump_client(), "client_reader")
        self._transition(RelayState.AWAITING_UPSTREAM)
        connecting = self._spawn(self.connector.connect(), "upstream_connect")

        try:
            await asyncio.wait(
                {client_reader, connecting},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if self.is_closed:
                return

            if client_reader.done():
                self._log.info("Client disconnected before upstream was ready")
                await self._adopt_finished_upstream(connecting)
                await self._shutdown(CloseCode.NORMAL)
                return

            try:
                self.upstream = connecting.result()
            except StudyBuddyError as e:
                self._log.error("Upstream connection failed", error=str(e))
                await self._fail()
                return

            self._transition(RelayState.BRIDGED)
            upstream_reader = self._spawn(
                self._pump_upstream(self.upstream), "upstream_reader"
            )

            await asyncio.wait(
                {client_reader, upstream_reader},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if self.is_closed:
                return

            if client_reader.done():
                self._log.info("Client disconnected", code=self.client.close_code)
                await self._shutdown(CloseCode.NORMAL)
                return

            error = upstream_reader.exception()
            if error is not None:
                self._log.error("Upstream connection error", error=str(error))
                await self._fail()
            else:
                self._log.info("Upstream closed the session")
                await self._shutdown(CloseCode.NORMAL)

        finally:
            await self._shutdown(CloseCode.NORMAL)

    async def close(self, code: int = CloseCode.NORMAL, reason: str = "") -> None:
        """Tear down both sides from outside the relay (e.g. on shutdown)."""
        await self._shutdown(code, reason)

    def get_stats(self) -> dict[str, Any]:
        """Get relay pair statistics."""
        return {
            "connection_id": str(self.client.connection_id),
            "state": self.state.value,
            "client_messages_received": self.client.messages_received,
            "client_messages_sent": self.client.messages_sent,
            "upstream_messages_sent": self.upstream.messages_sent if self.upstream else 0,
            "upstream_messages_received": (
                self.upstream.messages_received if self.upstream else 0
            ),
            "dropped_messages": self.dropped_messages,
            "close_code": self.client.close_code,
            "close_reason": self.client.close_reason,
        }

    # ──────────────────────────────────────────────────────────
    # Forwarding
    # ──────────────────────────────────────────────────────────

    async def _pump_client(self) -> None:
        """Forward browser frames upstream while bridged; drop the rest."""
        while True:
            frame = await self.client.receive()
            if frame is None:
                return

            upstream = self.upstream
            if self.state is not RelayState.BRIDGED or upstream is None or not upstream.is_open:
                self._drop(frame)
                continue

            try:
                await upstream.send(frame)
            except ConnectionClosed:
                self._drop(frame)

    async def _pump_upstream(self, upstream: UpstreamConnection) -> None:
        """Forward upstream frames to the browser in arrival order."""
        async for frame in upstream.messages():
            try:
                await self.client.send(frame)
            except Exception as e:
                self._log.info("Client went away while forwarding", error=str(e))
                return

    def _drop(self, frame: str | bytes) -> None:
        self.dropped_messages += 1
        self._log.debug(
            "Dropped client message",
            state=self.state.value,
            size=len(frame),
        )

    # ──────────────────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────────────────

    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=f"{name}:{self.client.connection_id}")
        self._tasks.add(task)
        return task

    def _transition(self, state: RelayState) -> None:
        if self.state is RelayState.CLOSED:
            return
        self._log.debug("Relay state changed", old=self.state.value, new=state.value)
        self.state = state

    async def _adopt_finished_upstream(self, connecting: asyncio.Task) -> None:
        """Keep hold of an upstream that opened just as the client left."""
        if connecting.done() and not connecting.cancelled() and connecting.exception() is None:
            self.upstream = connecting.result()

    async def _fail(self) -> None:
        """Report an upstream failure to the client, then close both sides."""
        await self.client.send_best_effort(RelayErrorMessage().encode())
        await self._shutdown(CloseCode.INTERNAL_ERROR, UPSTREAM_FAILED_REASON)

    async def _shutdown(self, code: int, reason: str = "") -> None:
        """Enter CLOSED and close both connections. Idempotent."""
        if self.state is RelayState.CLOSED:
            return

        self._log.debug("Relay state changed", old=self.state.value, new=RelayState.CLOSED.value)
        self.state = RelayState.CLOSED

        current = asyncio.current_task()
        pending = [task for task in self._tasks if task is not current and not task.done()]
        for task in pending:
            task.cancel()

        if self.upstream is not None:
            await self.upstream.close()
        await self.client.close(code=code, reason=reason)

        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for task in self._tasks:
            if task is current or not task.done() or task.cancelled():
                continue
            error = task.exception()
            if error is not None:
                self._log.debug("Relay task ended with error", task=task.get_name(), error=str(error))

        self._log.info("Relay closed", **self.get_stats())
