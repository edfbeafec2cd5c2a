"""Transport abstraction layer.

Transports move text frames; the client handles everything above that.

- WebSocket - the real connection to obs-websocket
- Mock - in-memory, for tests and offline development
"""

from .base import (
    ABNORMAL_CLOSURE,
    NORMAL_CLOSURE,
    BaseClientTransport,
    ClientTransport,
    TransportState,
)
from .mock import MockClientTransport
from .websocket import OBS_JSON_SUBPROTOCOL, WebSocketClientTransport


def create_websocket_transport(
    open_timeout: float | None = 10.0,
    ping_interval: float | None = 20.0,
) -> WebSocketClientTransport:
    """Create a WebSocket transport.

    Args:
        open_timeout: Seconds allowed for the opening handshake
        ping_interval: Keep-alive ping interval, None disables pings

    Returns:
        WebSocketClientTransport ready for ObsWebSocketClient
    """
    return WebSocketClientTransport(open_timeout=open_timeout, ping_interval=ping_interval)


def create_mock_transport() -> MockClientTransport:
    """Create a mock transport for testing.

    Returns:
        MockClientTransport with no responder
    """
    return MockClientTransport()


__all__ = [
    # Base abstractions
    "ClientTransport",
    "BaseClientTransport",
    "TransportState",
    "NORMAL_CLOSURE",
    "ABNORMAL_CLOSURE",
    # WebSocket implementation
    "WebSocketClientTransport",
    "OBS_JSON_SUBPROTOCOL",
    "create_websocket_transport",
    # Mock implementation
    "MockClientTransport",
    "create_mock_transport",
]
