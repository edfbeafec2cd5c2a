"""Exception hierarchy for the obs-websocket client.

Everything raised by the client derives from ObsWebSocketError so callers
can catch the whole family at once. Where a builtin exception describes the
same condition (ConnectionError, TimeoutError, ValueError) it is mixed in.
"""

from __future__ import annotations


class ObsWebSocketError(Exception):
    """Base class for all client errors."""


class NotConnectedError(ObsWebSocketError, ConnectionError):
    """A request was attempted before identification or after disconnection."""

    def __init__(self, message: str = "Websocket is not connected") -> None:
        super().__init__(message)


class TransportLossError(NotConnectedError):
    """The socket closed while a request was waiting for its response."""

    def __init__(self, close_code: int | None = None, reason: str = "") -> None:
        self.close_code = close_code
        self.reason = reason
        detail = f" (code={close_code}, reason={reason!r})" if close_code is not None else ""
        super().__init__(f"Connection lost before a response arrived{detail}")


class ProtocolError(ObsWebSocketError):
    """The server answered a request with requestStatus.result == false.

    Attributes:
        code: Server status code, or None when the server did not send one
        comment: Server comment, or None when absent
        request_type: The verb that failed
    """

    def __init__(
        self,
        comment: str | None,
        code: int | None = None,
        request_type: str | None = None,
    ) -> None:
        self.comment = comment
        self.code = code
        self.request_type = request_type
        super().__init__(comment or "Unknown Error")


class AuthenticationError(ObsWebSocketError):
    """The server rejected the identify message."""

    def __init__(self, message: str = "Authentication failed", close_code: int | None = None):
        self.close_code = close_code
        super().__init__(message)


class RequestTimeoutError(ObsWebSocketError, TimeoutError):
    """No response arrived within the per-request timeout."""

    def __init__(self, request_type: str, request_id: str, timeout: float) -> None:
        self.request_type = request_type
        self.request_id = request_id
        self.timeout = timeout
        super().__init__(f"{request_type} (id={request_id}) timed out after {timeout}s")


class MessageDecodeError(ObsWebSocketError, ValueError):
    """An inbound frame is not a valid protocol envelope."""
