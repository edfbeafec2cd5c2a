"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest
import pytest_asyncio

from obsws_client import ClientConfig, ObsWebSocketClient
from obsws_client.protocol.auth import AuthChallenge, compute_authentication
from obsws_client.transport import MockClientTransport

SALT = "lM1GncleQOaCu9lT1yeUZhFYnqhsLLP1G5lAGo3ixaI="
CHALLENGE = "+IxH4CnCiqpX1rM9scsNynZzbOe4KhDeYcTNS3PDaeY="

# =============================================================================
# Scripted server
# =============================================================================


class FakeObsServer:
    """Minimal obs-websocket server behind a MockClientTransport.

    Answers identify, reidentify, requests and batches. Request handlers are
    registered per verb and return responseData (or None for none); verbs in
    ``failures`` answer with result=false; verbs in ``hold`` get no answer
    until ``release()``.
    """

    def __init__(self, password: str | None = None, rpc_version: int = 1):
        self.password = password
        self.rpc_version = rpc_version
        self.handlers: dict[str, Callable[[dict[str, Any]], dict[str, Any] | None]] = {}
        self.failures: dict[str, tuple[int, str]] = {}
        self.hold: set[str] = set()
        self.held: list[dict[str, Any]] = []
        self.requests: list[dict[str, Any]] = []
        self.identify: dict[str, Any] | None = None
        self.transport = MockClientTransport(responder=self.respond, greeting=[self.hello()])

    def hello(self) -> dict[str, Any]:
        d: dict[str, Any] = {"obsWebSocketVersion": "5.4.2", "rpcVersion": self.rpc_version}
        if self.password is not None:
            d["authRequired"] = True
            d["authentication"] = {"challenge": CHALLENGE, "salt": SALT}
        return {"op": 0, "d": d}

    def on(self, verb: str, handler: Callable[[dict[str, Any]], dict[str, Any] | None]) -> None:
        self.handlers[verb] = handler

    def release(self) -> None:
        """Deliver every withheld response."""
        held, self.held = self.held, []
        for frame in held:
            self.transport.inject_frame(frame)

    def respond(self, message: dict[str, Any]) -> list[dict[str, Any]]:
        op, d = message["op"], message.get("d", {})
        match op:
            case 1:
                return self._identify(d)
            case 3:
                return [{"op": 2, "d": {"negotiatedRpcVersion": self.rpc_version}}]
            case 6:
                self.requests.append(d)
                body = self.result(d["requestType"], d["requestId"], d.get("requestData"))
                response = {"op": 7, "d": body}
                if d["requestType"] in self.hold:
                    self.held.append(response)
                    return []
                return [response]
            case 8:
                self.requests.append(d)
                results = []
                for item in d["requests"]:
                    result = self.result(item["requestType"], None, item.get("requestData"))
                    results.append(result)
                    if d.get("haltOnFailure") and not result["requestStatus"]["result"]:
                        break
                return [{"op": 9, "d": {"requestId": d["requestId"], "results": results}}]
            case _:
                return []

    def result(
        self, verb: str, request_id: str | None, data: dict[str, Any] | None
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"requestType": verb}
        if request_id is not None:
            body["requestId"] = request_id

        if verb in self.failures:
            code, comment = self.failures[verb]
            body["requestStatus"] = {"result": False, "code": code, "comment": comment}
        elif verb in self.handlers:
            body["requestStatus"] = {"result": True, "code": 100}
            response_data = self.handlers[verb](data or {})
            if response_data is not None:
                body["responseData"] = response_data
        elif verb == "Sleep":
            body["requestStatus"] = {"result": True, "code": 100}
        else:
            body["requestStatus"] = {
                "result": False,
                "code": 204,
                "comment": "Your request type is not valid.",
            }
        return body

    def _identify(self, d: dict[str, Any]) -> list[dict[str, Any]]:
        self.identify = d
        if self.password is not None:
            expected = compute_authentication(
                self.password, AuthChallenge(challenge=CHALLENGE, salt=SALT)
            )
            if d.get("authentication") != expected:
                self.transport.inject_close(4009, "Authentication failed.")
                return []
        return [{"op": 2, "d": {"negotiatedRpcVersion": self.rpc_version}}]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(scope="module")
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture
def server_factory() -> type[FakeObsServer]:
    """The FakeObsServer class, for tests that need custom settings."""
    return FakeObsServer


@pytest.fixture
def obs_server() -> FakeObsServer:
    """Scripted server without authentication."""
    return FakeObsServer()


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(request_timeout=2.0, connect_timeout=2.0)


@pytest.fixture
def client(obs_server: FakeObsServer, config: ClientConfig) -> ObsWebSocketClient:
    """Client wired to the scripted server, not yet connected."""
    return ObsWebSocketClient(config, transport=obs_server.transport)


@pytest_asyncio.fixture
async def connected(client: ObsWebSocketClient) -> AsyncIterator[ObsWebSocketClient]:
    """Identified client, disconnected after the test."""
    await client.connect()
    yield client
    await client.disconnect()
