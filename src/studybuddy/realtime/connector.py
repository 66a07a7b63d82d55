"""
Upstream Session Connector

Opens and configures one OpenAI Realtime WebSocket per relay pair.
"""

import asyncio

import structlog
from websockets.asyncio.client import connect
from websockets.exceptions import WebSocketException

from studybuddy.config import Settings, settings
from studybuddy.errors import ConfigurationError, UpstreamConnectError
from .connection import UpstreamConnection
from .protocol import MISSING_API_KEY_REASON, SessionConfig, SessionUpdateEvent

logger = structlog.get_logger()


class UpstreamConnector:
    """
    Connects to the OpenAI Realtime API on behalf of a single client.

    The connector never retries. A failed open is reported once as
    UpstreamConnectError and the caller decides what to tell the client.

    Usage:
        connector = UpstreamConnector(api_key="sk-...")
        connector.ensure_configured()
        upstream = await connector.connect()
    """

    def __init__(
        self,
        api_key: str,
        url: str | None = None,
        beta_header: str | None = None,
        session_config: SessionConfig | None = None,
        open_timeout: float | None = None,
    ):
        self.api_key = (api_key or "").strip()
        self.url = url or settings.realtime_endpoint
        self.beta_header = beta_header or settings.openai_realtime_beta
        self.session_config = session_config or SessionConfig.from_settings(settings)
        self.open_timeout = open_timeout

    @classmethod
    def from_settings(cls, config: Settings) -> "UpstreamConnector":
        """Build a connector from application settings."""
        return cls(
            api_key=config.openai_api_key,
            url=config.realtime_endpoint,
            beta_header=config.openai_realtime_beta,
            session_config=SessionConfig.from_settings(config),
            open_timeout=config.openai_realtime_open_timeout,
        )

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "OpenAI-Beta": self.beta_header,
        }

    def ensure_configured(self) -> None:
        """Raise ConfigurationError when no API key is available."""
        if not self.api_key:
            raise ConfigurationError(MISSING_API_KEY_REASON)

    async def connect(self) -> UpstreamConnection:
        """
        Open the upstream socket and send the session configuration.

        The `session.update` event is always the first frame on the new
        connection.

        Raises:
            ConfigurationError: No API key configured
            UpstreamConnectError: Handshake, network or configuration send failed
        """
        self.ensure_configured()

        try:
            websocket = await connect(
                self.url,
                additional_headers=self.headers,
                open_timeout=self.open_timeout,
                max_size=None,
            )
        except (OSError, TimeoutError, asyncio.TimeoutError, WebSocketException) as e:
            logger.error("Failed to connect to OpenAI Realtime API", url=self.url, error=str(e))
            raise UpstreamConnectError(f"Failed to connect to {self.url}: {e}") from e

        upstream = UpstreamConnection(websocket=websocket)
        logger.info(
            "Connected to OpenAI Realtime API",
            upstream_id=str(upstream.connection_id),
        )

        event = SessionUpdateEvent(session=self.session_config)
        try:
            await upstream.send(event.encode())
        except WebSocketException as e:
            await upstream.close()
            raise UpstreamConnectError(f"Failed to send session configuration: {e}") from e
        except asyncio.CancelledError:
            # Client left mid-configuration
            await upstream.close()
            raise

        logger.info(
            "Sent session configuration",
            upstream_id=str(upstream.connection_id),
            voice=self.session_config.voice,
        )

        return upstream
