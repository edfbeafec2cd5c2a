"""Mock transport for testing.

No actual I/O - frames are exchanged through in-memory queues. A responder
callable plays the server: it receives every decoded outbound message and
returns the messages to send back.

Usage:
    def server(message):
        if message["op"] == 1:  # identify
            return [{"op": 2, "d": {"negotiatedRpcVersion": 1}}]
        return []

    transport = MockClientTransport(
        responder=server,
        greeting=[{"op": 0, "d": {"rpcVersion": 1}}],
    )
    client = ObsWebSocketClient(transport=transport)
    await client.connect()

    assert transport.sent_messages[0]["op"] == 1
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable, Iterable
from typing import Any

from .base import NORMAL_CLOSURE, BaseClientTransport

Responder = Callable[[dict[str, Any]], Iterable[dict[str, Any] | str] | None]


class MockClientTransport(BaseClientTransport):
    """In-memory transport that records writes and replays scripted replies."""

    def __init__(
        self,
        responder: Responder | None = None,
        greeting: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__()
        self._responder = responder
        self._greeting = list(greeting or [])
        self._inbound: asyncio.Queue[str | None] = asyncio.Queue()
        self._pending_close: tuple[int, str] = (NORMAL_CLOSURE, "")
        self._sent: list[str] = []
        self.url: str | None = None
        self.connect_error: Exception | None = None
        self.connect_count = 0

    @property
    def sent_frames(self) -> list[str]:
        """Raw frames written by the client."""
        return self._sent.copy()

    @property
    def sent_messages(self) -> list[dict[str, Any]]:
        """Frames written by the client, decoded."""
        return [json.loads(frame) for frame in self._sent]

    def set_responder(self, responder: Responder | None) -> None:
        """Replace the scripted server."""
        self._responder = responder

    def inject_frame(self, frame: dict[str, Any] | str) -> None:
        """Queue an inbound frame as if the server had sent it."""
        self._inbound.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    def inject_close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        """End the inbound stream as if the server had closed the socket."""
        self._pending_close = (code, reason)
        self._inbound.put_nowait(None)

    def clear(self) -> None:
        """Forget recorded frames."""
        self._sent.clear()

    async def _do_connect(self, url: str) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.url = url
        self.connect_count += 1
        self._inbound = asyncio.Queue()
        self._pending_close = (NORMAL_CLOSURE, "")
        for frame in self._greeting:
            self.inject_frame(frame)

    async def _do_send(self, text: str) -> None:
        """Record the frame and queue the responder's replies."""
        self._sent.append(text)
        if self._responder is None:
            return
        replies = self._responder(json.loads(text))
        for reply in replies or ():
            self.inject_frame(reply)

    async def _do_close(self, code: int, reason: str) -> None:
        self.inject_close(code, reason)

    async def _receive_frames(self) -> AsyncIterator[str]:
        while True:
            frame = await self._inbound.get()
            if frame is None:
                self._mark_closed(*self._pending_close)
                return
            yield frame
