"""
StudyBuddy Realtime Module

WebSocket relay between the browser and the OpenAI Realtime API.
"""

from .bridge import RelayBridge
from .connection import ClientConnection, UpstreamConnection
from .connector import UpstreamConnector
from .protocol import (
    CloseCode,
    RelayState,
    SessionConfig,
    SessionUpdateEvent,
    TurnDetection,
)

__all__ = [
    # Relay
    "RelayBridge",
    "UpstreamConnector",
    # Connections
    "ClientConnection",
    "UpstreamConnection",
    # Protocol
    "CloseCode",
    "RelayState",
    "SessionConfig",
    "SessionUpdateEvent",
    "TurnDetection",
]
