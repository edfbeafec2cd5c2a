"""obsws-client - asyncio client for the obs-websocket v5 protocol.

One ObsWebSocketClient owns one WebSocket connection. It performs the
hello / identify handshake, multiplexes concurrent requests over the socket,
matches responses back by requestId, and fans events out to observers.

Usage:
    from obsws_client import ClientConfig, ObsWebSocketClient

    async with ObsWebSocketClient(ClientConfig(password="secret")) as client:
        data = await client.send("GetSceneList")
"""

from .client import ObsWebSocketClient
from .config import ClientConfig, parse_event_subscriptions
from .errors import (
    AuthenticationError,
    MessageDecodeError,
    NotConnectedError,
    ObsWebSocketError,
    ProtocolError,
    RequestTimeoutError,
    TransportLossError,
)
from .protocol import (
    BatchRequest,
    CloseCode,
    DisconnectionInfo,
    EventSubscription,
    ObsEvent,
    OpCode,
    RequestBatchExecutionType,
    RequestResult,
    UnsupportedMessage,
)
from .session import SessionState

__version__ = "0.1.0"

__all__ = [
    # Client
    "ObsWebSocketClient",
    "ClientConfig",
    "parse_event_subscriptions",
    "SessionState",
    # Protocol
    "OpCode",
    "CloseCode",
    "EventSubscription",
    "RequestBatchExecutionType",
    "BatchRequest",
    "RequestResult",
    "ObsEvent",
    "UnsupportedMessage",
    "DisconnectionInfo",
    # Errors
    "ObsWebSocketError",
    "NotConnectedError",
    "TransportLossError",
    "ProtocolError",
    "AuthenticationError",
    "RequestTimeoutError",
    "MessageDecodeError",
]
