"""Session state machine for the identify handshake.

States (per connection lifetime):

    DISCONNECTED --transport_opened--> AWAITING_HELLO
    AWAITING_HELLO --hello--> HANDSHAKING        (identify sent)
    HANDSHAKING --identified--> IDENTIFIED       (requests allowed)
    any --transport_closed--> DISCONNECTED

Only the dispatcher (and the client's close handling) mutate the state;
``send`` only reads it through ``require_identified``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from .errors import NotConnectedError
from .protocol.auth import AuthChallenge, compute_authentication
from .protocol.opcodes import CloseCode

logger = logging.getLogger(__name__)

SUPPORTED_RPC_VERSION = 1


class SessionState(str, Enum):
    """Handshake progress of one connection."""

    DISCONNECTED = "disconnected"
    AWAITING_HELLO = "awaiting_hello"
    HANDSHAKING = "handshaking"
    IDENTIFIED = "identified"


class Session:
    """Tracks the handshake of a single connection and builds identify bodies."""

    def __init__(
        self,
        password: str | None = None,
        rpc_version: int = SUPPORTED_RPC_VERSION,
        event_subscriptions: int | None = None,
    ) -> None:
        self.password = password
        self.rpc_version = rpc_version
        self.event_subscriptions = event_subscriptions

        self._state = SessionState.DISCONNECTED
        self._sent_authentication = False
        self.negotiated_rpc_version: int | None = None
        self.server_info: dict[str, Any] = {}

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_identified(self) -> bool:
        return self._state == SessionState.IDENTIFIED

    def require_identified(self) -> None:
        """Raise NotConnectedError unless requests may be sent."""
        if self._state != SessionState.IDENTIFIED:
            raise NotConnectedError(f"Websocket is not connected (state: {self._state.value})")

    def transport_opened(self) -> None:
        """The socket is open; wait for the server's hello."""
        if self._state != SessionState.DISCONNECTED:
            logger.warning(f"Transport opened while session is {self._state.value}, restarting")
        self._reset()
        self._state = SessionState.AWAITING_HELLO

    def handle_hello(self, body: dict[str, Any]) -> dict[str, Any] | None:
        """Process hello and return the identify body to send.

        Returns:
            The identify body, or None if hello arrived in the wrong state
        """
        if self._state != SessionState.AWAITING_HELLO:
            logger.warning(f"Ignoring hello received while {self._state.value}")
            return None

        self.server_info = {
            key: body[key] for key in ("obsWebSocketVersion", "rpcVersion") if key in body
        }
        identify: dict[str, Any] = {"rpcVersion": self.rpc_version}

        if body.get("authRequired", False):
            challenge = AuthChallenge.from_hello(body)
            if challenge is None:
                logger.warning("Server requires authentication but sent no valid challenge")
            elif not self.password:
                logger.warning("Server requires authentication but no password is configured")
            else:
                identify["authentication"] = compute_authentication(self.password, challenge)
                self._sent_authentication = True
            # challenge goes out of scope here, it is single-use

        if self.event_subscriptions is not None:
            identify["eventSubscriptions"] = int(self.event_subscriptions)

        self._state = SessionState.HANDSHAKING
        return identify

    def handle_identified(self, body: dict[str, Any]) -> bool:
        """Process identified.

        Returns:
            True the first time the connection becomes identified, False for
            a reidentify acknowledgement or an out-of-order message
        """
        if self._state == SessionState.IDENTIFIED:
            version = body.get("negotiatedRpcVersion")
            if version is not None:
                self.negotiated_rpc_version = version
            logger.debug("Session reidentified")
            return False

        if self._state != SessionState.HANDSHAKING:
            logger.warning(f"Ignoring identified received while {self._state.value}")
            return False

        self.negotiated_rpc_version = body.get("negotiatedRpcVersion")
        self._state = SessionState.IDENTIFIED
        logger.info(f"Session identified (rpc version {self.negotiated_rpc_version})")
        return True

    def transport_closed(self, close_code: int | None, local_close: bool = False) -> bool:
        """Reset to DISCONNECTED.

        Args:
            close_code: Close code of the connection, None if unknown
            local_close: True when this side started the close

        Returns:
            True if the close looks like the server rejecting our credentials:
            an AuthenticationFailed close code, or a server-side close while
            the identify carrying authentication was still unanswered
        """
        auth_failed = close_code == CloseCode.AUTHENTICATION_FAILED or (
            not local_close
            and self._state == SessionState.HANDSHAKING
            and self._sent_authentication
        )
        self._reset()
        return auth_failed

    def _reset(self) -> None:
        self._state = SessionState.DISCONNECTED
        self._sent_authentication = False
        self.negotiated_rpc_version = None
