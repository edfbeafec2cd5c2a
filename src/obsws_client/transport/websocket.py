"""WebSocket transport implementation.

Connects to an obs-websocket server with the ``obswebsocket.json``
subprotocol. Only text frames are forwarded; the JSON subprotocol never
uses binary frames.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed

from ..errors import NotConnectedError
from .base import ABNORMAL_CLOSURE, BaseClientTransport

logger = logging.getLogger(__name__)

OBS_JSON_SUBPROTOCOL = "obswebsocket.json"


class WebSocketClientTransport(BaseClientTransport):
    """Client-side WebSocket transport.

    Args:
        open_timeout: Seconds allowed for the opening handshake
        ping_interval: Keep-alive ping interval, None disables pings
        max_size: Largest accepted frame in bytes, None for no limit
            (screenshots are returned inline as base64)
    """

    def __init__(
        self,
        open_timeout: float | None = 10.0,
        ping_interval: float | None = 20.0,
        max_size: int | None = None,
    ) -> None:
        super().__init__()
        self.open_timeout = open_timeout
        self.ping_interval = ping_interval
        self.max_size = max_size
        self._ws: Any = None  # websockets ClientConnection

    async def _do_connect(self, url: str) -> None:
        """Open the WebSocket."""
        self._ws = await websockets.connect(
            url,
            subprotocols=[OBS_JSON_SUBPROTOCOL],
            open_timeout=self.open_timeout,
            ping_interval=self.ping_interval,
            max_size=self.max_size,
        )
        if self._ws.subprotocol != OBS_JSON_SUBPROTOCOL:
            logger.debug(f"Server did not confirm subprotocol (got {self._ws.subprotocol!r})")

    async def _do_send(self, text: str) -> None:
        """Send one text frame."""
        if self._ws is None:
            raise NotConnectedError()
        try:
            await self._ws.send(text)
        except ConnectionClosed as e:
            raise NotConnectedError(f"Websocket closed while sending: {e}") from e

    async def _do_close(self, code: int, reason: str) -> None:
        """Start the closing handshake."""
        if self._ws is not None:
            await self._ws.close(code=code, reason=reason)

    async def _receive_frames(self) -> AsyncIterator[str]:
        """Receive text frames until the connection closes."""
        if self._ws is None:
            raise NotConnectedError()

        while True:
            try:
                message = await self._ws.recv()
            except ConnectionClosed as e:
                if e.rcvd is not None:
                    self._mark_closed(e.rcvd.code, e.rcvd.reason)
                else:
                    # No close frame from the server: the socket dropped
                    self._mark_closed(ABNORMAL_CLOSURE, "")
                self._ws = None
                return

            if isinstance(message, bytes):
                logger.debug(f"Ignoring binary frame ({len(message)} bytes)")
                continue

            yield message
