"""Transport abstraction for the client.

A transport owns the physical socket: it opens a connection to a URL,
yields inbound text frames in arrival order, serializes outbound writes, and
reports how the connection ended. It knows nothing about envelopes, the
handshake or correlation; the client layers those on top.

Architecture:
- ClientTransport is the PROTOCOL (interface) the client depends on
- BaseClientTransport supplies state tracking and write serialization
- Implementations (WebSocket, mock) supply the I/O
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from enum import Enum
from typing import Protocol, runtime_checkable

from ..errors import NotConnectedError

logger = logging.getLogger(__name__)

NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006


class TransportState(str, Enum):
    """Connection state machine."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"  # close requested locally, waiting for the socket to finish


@runtime_checkable
class ClientTransport(Protocol):
    """Protocol for client transports.

    The transport handles:
    - Opening the socket and the subprotocol negotiation
    - Text framing in both directions
    - Serializing concurrent writes
    - Reporting the close code and reason
    """

    @property
    def state(self) -> TransportState:
        """Current connection state."""
        ...

    @property
    def is_connected(self) -> bool:
        """Check if transport is connected."""
        ...

    @property
    def close_code(self) -> int | None:
        """Close code of the last connection, None while open."""
        ...

    @property
    def close_reason(self) -> str:
        """Close reason of the last connection."""
        ...

    async def connect(self, url: str) -> None:
        """Open the socket.

        Raises:
            ConnectionError: If the socket cannot be opened
        """
        ...

    async def send(self, text: str) -> None:
        """Write one text frame.

        Raises:
            NotConnectedError: If the socket is not open
        """
        ...

    def frames(self) -> AsyncIterator[str]:
        """Yield inbound text frames until the socket closes."""
        ...

    async def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        """Start a closing handshake."""
        ...


class BaseClientTransport(ABC):
    """Base class for transports with common functionality.

    Provides:
    - State management
    - Write serialization (one frame on the wire at a time)
    - Close code bookkeeping
    """

    def __init__(self) -> None:
        self._state = TransportState.DISCONNECTED
        self._lock = asyncio.Lock()
        self._send_lock = asyncio.Lock()
        self._close_code: int | None = None
        self._close_reason = ""

    @property
    def state(self) -> TransportState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if transport is connected."""
        return self._state == TransportState.CONNECTED

    @property
    def close_code(self) -> int | None:
        return self._close_code

    @property
    def close_reason(self) -> str:
        return self._close_reason

    async def connect(self, url: str) -> None:
        """Open the socket."""
        async with self._lock:
            if self._state == TransportState.CONNECTED:
                return

            self._state = TransportState.CONNECTING
            self._close_code = None
            self._close_reason = ""
            try:
                await self._do_connect(url)
                self._state = TransportState.CONNECTED
                logger.info(f"{self.__class__.__name__} connected to {url}")
            except Exception as e:
                self._state = TransportState.DISCONNECTED
                raise ConnectionError(f"Failed to connect: {e}") from e

    async def send(self, text: str) -> None:
        """Write one text frame, serialized with other writers."""
        if not self.is_connected:
            raise NotConnectedError()

        async with self._send_lock:
            # The socket may have closed while we waited for the lock
            if not self.is_connected:
                raise NotConnectedError()
            await self._do_send(text)

    async def frames(self) -> AsyncIterator[str]:
        """Yield inbound text frames until the socket closes."""
        try:
            async for frame in self._receive_frames():
                yield frame
        finally:
            if self._close_code is None:
                self._mark_closed(ABNORMAL_CLOSURE, "")
            self._state = TransportState.DISCONNECTED

    async def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        """Close the socket. The frames() iterator ends once the close completes."""
        async with self._lock:
            if self._state in (TransportState.DISCONNECTED, TransportState.CLOSED):
                return

            self._state = TransportState.CLOSED
            await self._do_close(code, reason)

    def _mark_closed(self, code: int, reason: str) -> None:
        self._close_code = code
        self._close_reason = reason
        logger.info(f"{self.__class__.__name__} closed (code={code}, reason={reason!r})")

    # Abstract methods for subclasses
    @abstractmethod
    async def _do_connect(self, url: str) -> None:
        """Implementation-specific connection logic."""
        ...

    @abstractmethod
    async def _do_send(self, text: str) -> None:
        """Implementation-specific send logic."""
        ...

    @abstractmethod
    async def _do_close(self, code: int, reason: str) -> None:
        """Implementation-specific close logic."""
        ...

    @abstractmethod
    def _receive_frames(self) -> AsyncIterator[str]:
        """Implementation-specific receive logic. Must be an async generator
        that calls _mark_closed() before returning."""
        ...
