"""
Realtime Chat Routes

Browser-facing endpoint of the voice-chat relay. A WebSocket upgrade on
/realtime-chat starts a relay pair to the OpenAI Realtime API; plain HTTP
requests on the same path are rejected.
"""

import structlog
from fastapi import APIRouter, Depends, Response, WebSocket, status
from fastapi.responses import PlainTextResponse

from studybuddy.api.cors import preflight_response
from studybuddy.config import Settings, get_settings
from studybuddy.realtime import ClientConnection, RelayBridge, UpstreamConnector

logger = structlog.get_logger()

router = APIRouter()

REALTIME_PATH = "/realtime-chat"
EXPECTED_WEBSOCKET_MESSAGE = "Expected WebSocket connection"


# ══════════════════════════════════════════════════════════════
# Dependencies
# ══════════════════════════════════════════════════════════════


def get_upstream_connector(
    config: Settings = Depends(get_settings),
) -> UpstreamConnector:
    """Dependency providing a connector bound to the configured API key."""
    return UpstreamConnector.from_settings(config)


# ══════════════════════════════════════════════════════════════
# WebSocket Endpoint
# ══════════════════════════════════════════════════════════════


@router.websocket(REALTIME_PATH)
async def realtime_chat(
    websocket: WebSocket,
    connector: UpstreamConnector = Depends(get_upstream_connector),
):
    """
    Voice-chat relay WebSocket endpoint.

    Protocol:
    1. Client connects to /realtime-chat
    2. Server opens an OpenAI Realtime session and sends session.update
    3. Frames are relayed verbatim in both directions
    4. Either side closing closes the other

    Without an API key the connection is closed with 1011 and
    "OpenAI API key not configured" before any upstream attempt.
    """
    await websocket.accept()

    client = ClientConnection(websocket=websocket)
    logger.info("Client WebSocket connected", connection_id=str(client.connection_id))

    bridge = RelayBridge(client, connector)
    await bridge.run()


# ══════════════════════════════════════════════════════════════
# HTTP Fallbacks
# ══════════════════════════════════════════════════════════════


@router.options(REALTIME_PATH)
async def realtime_chat_preflight() -> Response:
    """CORS pre-flight."""
    return preflight_response()


@router.api_route(
    REALTIME_PATH,
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def realtime_chat_http() -> PlainTextResponse:
    """Reject anything that is not a WebSocket upgrade."""
    return PlainTextResponse(
        EXPECTED_WEBSOCKET_MESSAGE,
        status_code=status.HTTP_400_BAD_REQUEST,
    )
