"""Unit tests for the session state machine."""

from __future__ import annotations

import pytest

from obsws_client.errors import NotConnectedError
from obsws_client.protocol.auth import AuthChallenge, compute_authentication
from obsws_client.session import Session, SessionState

HELLO = {"obsWebSocketVersion": "5.4.2", "rpcVersion": 1}
AUTH_HELLO = {
    **HELLO,
    "authRequired": True,
    "authentication": {"challenge": "C", "salt": "S"},
}


def _identified(session: Session) -> Session:
    session.transport_opened()
    session.handle_hello(HELLO)
    session.handle_identified({"negotiatedRpcVersion": 1})
    return session


class TestTransitions:
    def test_initial_state(self) -> None:
        session = Session()

        assert session.state == SessionState.DISCONNECTED
        assert not session.is_identified

    def test_happy_path(self) -> None:
        """DISCONNECTED -> AWAITING_HELLO -> HANDSHAKING -> IDENTIFIED."""
        session = Session()
        session.transport_opened()
        assert session.state == SessionState.AWAITING_HELLO

        identify = session.handle_hello(HELLO)
        assert identify == {"rpcVersion": 1}
        assert session.state == SessionState.HANDSHAKING
        assert session.server_info == HELLO

        assert session.handle_identified({"negotiatedRpcVersion": 1}) is True
        assert session.state == SessionState.IDENTIFIED
        assert session.negotiated_rpc_version == 1

    def test_hello_in_wrong_state_ignored(self) -> None:
        session = Session()

        assert session.handle_hello(HELLO) is None
        assert session.state == SessionState.DISCONNECTED

    def test_identified_in_wrong_state_ignored(self) -> None:
        session = Session()
        session.transport_opened()

        assert session.handle_identified({}) is False
        assert session.state == SessionState.AWAITING_HELLO

    def test_reidentify_ack(self) -> None:
        """A second identified only updates the negotiated version."""
        session = _identified(Session())

        assert session.handle_identified({"negotiatedRpcVersion": 1}) is False
        assert session.is_identified

    def test_close_resets(self) -> None:
        session = _identified(Session())

        assert session.transport_closed(1000) is False
        assert session.state == SessionState.DISCONNECTED
        assert session.negotiated_rpc_version is None


class TestIdentifyBody:
    def test_authentication_added(self) -> None:
        session = Session(password="secret")
        session.transport_opened()

        identify = session.handle_hello(AUTH_HELLO)

        expected = compute_authentication("secret", AuthChallenge(challenge="C", salt="S"))
        assert identify == {"rpcVersion": 1, "authentication": expected}

    def test_no_password_sends_no_authentication(self) -> None:
        session = Session()
        session.transport_opened()

        identify = session.handle_hello(AUTH_HELLO)

        assert identify is not None
        assert "authentication" not in identify

    def test_event_subscriptions(self) -> None:
        session = Session(event_subscriptions=0)
        session.transport_opened()

        assert session.handle_hello(HELLO) == {"rpcVersion": 1, "eventSubscriptions": 0}

    def test_password_ignored_without_auth_required(self) -> None:
        session = Session(password="secret")
        session.transport_opened()

        assert "authentication" not in session.handle_hello(HELLO)


class TestAuthenticationFailure:
    def test_auth_failed_close_code(self) -> None:
        session = Session()
        session.transport_opened()
        session.handle_hello(HELLO)

        assert session.transport_closed(4009) is True

    def test_close_after_sending_authentication(self) -> None:
        """Closing before identified after sending credentials counts as rejection."""
        session = Session(password="wrong")
        session.transport_opened()
        session.handle_hello(AUTH_HELLO)

        assert session.transport_closed(1000) is True

    def test_local_close_after_sending_authentication(self) -> None:
        """Our own close during the handshake is not a rejection."""
        session = Session(password="secret")
        session.transport_opened()
        session.handle_hello(AUTH_HELLO)

        assert session.transport_closed(1000, local_close=True) is False

    def test_local_close_keeps_auth_failed_code(self) -> None:
        session = Session(password="wrong")
        session.transport_opened()
        session.handle_hello(AUTH_HELLO)

        assert session.transport_closed(4009, local_close=True) is True

    def test_close_without_authentication(self) -> None:
        session = Session()
        session.transport_opened()
        session.handle_hello(HELLO)

        assert session.transport_closed(1006) is False

    def test_new_connection_clears_flag(self) -> None:
        session = Session(password="secret")
        session.transport_opened()
        session.handle_hello(AUTH_HELLO)
        session.transport_closed(1006)

        session.transport_opened()
        assert session.transport_closed(1006) is False


class TestRequireIdentified:
    def test_raises_before_identified(self) -> None:
        session = Session()
        session.transport_opened()

        with pytest.raises(NotConnectedError, match="awaiting_hello"):
            session.require_identified()

    def test_passes_when_identified(self) -> None:
        _identified(Session()).require_identified()
