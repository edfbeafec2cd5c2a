"""Unit tests for inbound frame dispatch.

The dispatcher is driven directly with raw frames; the session, table and
bus are real objects, the transport write and task spawner are mocks.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from obsws_client.bus import EventBus
from obsws_client.correlation import CorrelationTable
from obsws_client.dispatcher import Dispatcher
from obsws_client.errors import NotConnectedError
from obsws_client.protocol.events import ObsEvent, UnsupportedMessage
from obsws_client.session import Session, SessionState


def _frame(op: int, d: dict[str, Any] | None = None) -> str:
    return json.dumps({"op": op, "d": d or {}})


class Harness:
    """Dispatcher with captured writes and spawned coroutines."""

    def __init__(self, password: str | None = None):
        self.session = Session(password=password)
        self.table = CorrelationTable()
        self.bus = EventBus()
        self.send_frame = AsyncMock()
        self.spawned: list[Any] = []
        self.on_identified = MagicMock()
        self.dispatcher = Dispatcher(
            self.session,
            self.table,
            self.bus,
            send_frame=self.send_frame,
            spawn=self.spawned.append,
            on_identified=self.on_identified,
        )

    async def run_spawned(self) -> None:
        spawned, self.spawned = self.spawned, []
        for coro in spawned:
            await coro

    async def identify(self) -> None:
        self.session.transport_opened()
        await self.dispatcher.on_frame(_frame(0, {"rpcVersion": 1}))
        await self.dispatcher.on_frame(_frame(2, {"negotiatedRpcVersion": 1}))


# =============================================================================
# Handshake
# =============================================================================


class TestHandshake:
    @pytest.mark.asyncio
    async def test_hello_sends_identify(self) -> None:
        h = Harness()
        h.session.transport_opened()

        await h.dispatcher.on_frame(_frame(0, {"rpcVersion": 1}))

        h.send_frame.assert_awaited_once()
        sent = json.loads(h.send_frame.await_args.args[0])
        assert sent == {"op": 1, "d": {"rpcVersion": 1}}
        assert h.session.state == SessionState.HANDSHAKING

    @pytest.mark.asyncio
    async def test_identified_fires_callback_once(self) -> None:
        h = Harness()
        await h.identify()

        await h.dispatcher.on_frame(_frame(2, {"negotiatedRpcVersion": 1}))

        h.on_identified.assert_called_once()
        assert h.session.is_identified

    @pytest.mark.asyncio
    async def test_identify_write_failure_logged(self) -> None:
        h = Harness()
        h.send_frame.side_effect = NotConnectedError()
        h.session.transport_opened()

        await h.dispatcher.on_frame(_frame(0, {"rpcVersion": 1}))

        assert h.session.state == SessionState.HANDSHAKING


# =============================================================================
# Responses
# =============================================================================


class TestResponses:
    @pytest.mark.asyncio
    async def test_response_completes_pending(self) -> None:
        h = Harness()
        await h.identify()
        future = h.table.register("r1")
        body = {"requestId": "r1", "requestStatus": {"result": True, "code": 100}}

        await h.dispatcher.on_frame(_frame(7, body))

        assert await future == body
        assert len(h.table) == 0

    @pytest.mark.asyncio
    async def test_batch_response_completes_pending(self) -> None:
        h = Harness()
        await h.identify()
        future = h.table.register("b1")

        await h.dispatcher.on_frame(_frame(9, {"requestId": "b1", "results": []}))

        assert (await future)["results"] == []

    @pytest.mark.asyncio
    async def test_unknown_response_dropped(self) -> None:
        h = Harness()
        await h.identify()
        future = h.table.register("r1")

        await h.dispatcher.on_frame(_frame(7, {"requestId": "other"}))
        await h.dispatcher.on_frame(_frame(7, {}))

        assert not future.done()

    @pytest.mark.asyncio
    async def test_reply_to_fire_and_forget_logged_at_debug(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        h = Harness()
        await h.identify()

        with caplog.at_level(logging.DEBUG, logger="obsws_client.dispatcher"):
            await h.dispatcher.on_frame(_frame(7, {"requestId": "never-registered"}))

        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
        assert any("No pending request" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_late_reply_after_timeout_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        h = Harness()
        await h.identify()
        h.table.register("slow")
        h.table.expire("slow")

        with caplog.at_level(logging.DEBUG, logger="obsws_client.dispatcher"):
            await h.dispatcher.on_frame(_frame(7, {"requestId": "slow"}))

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "timed-out request slow" in warnings[0].getMessage()

    @pytest.mark.asyncio
    async def test_response_before_identified_ignored(self) -> None:
        h = Harness()
        h.session.transport_opened()
        future = h.table.register("r1")

        await h.dispatcher.on_frame(_frame(7, {"requestId": "r1"}))

        assert not future.done()


# =============================================================================
# Events and unsupported traffic
# =============================================================================


class TestEvents:
    @pytest.mark.asyncio
    async def test_event_published_on_spawned_task(self) -> None:
        h = Harness()
        await h.identify()
        received: list[ObsEvent] = []
        h.bus.subscribe("InputMuteStateChanged", received.append)

        await h.dispatcher.on_frame(
            _frame(
                5,
                {
                    "eventType": "InputMuteStateChanged",
                    "eventIntent": 8,
                    "eventData": {"inputName": "Mic", "inputMuted": True},
                },
            )
        )
        assert received == []

        await h.run_spawned()
        assert received[0].get("inputMuted") is True

    @pytest.mark.asyncio
    async def test_event_without_type_is_unsupported(self) -> None:
        h = Harness()
        await h.identify()
        received: list[UnsupportedMessage] = []
        h.bus.subscribe_unsupported(received.append)

        await h.dispatcher.on_frame(_frame(5, {"eventData": {}}))
        await h.run_spawned()

        assert received[0].kind == "event"
        assert received[0].name == ""

    @pytest.mark.asyncio
    async def test_event_before_identified_ignored(self) -> None:
        h = Harness()
        h.session.transport_opened()

        await h.dispatcher.on_frame(_frame(5, {"eventType": "ExitStarted"}))

        assert h.spawned == []

    @pytest.mark.asyncio
    async def test_unknown_op_is_unsupported(self) -> None:
        h = Harness()
        await h.identify()
        received: list[UnsupportedMessage] = []
        h.bus.subscribe_unsupported(received.append)

        await h.dispatcher.on_frame(_frame(42, {"x": 1}))
        await h.run_spawned()

        assert received == [UnsupportedMessage(kind="op", name="42", body={"x": 1})]

    @pytest.mark.asyncio
    async def test_malformed_frame_dropped(self) -> None:
        """Decode failures are isolated to the frame."""
        h = Harness()
        await h.identify()
        future = h.table.register("r1")

        await h.dispatcher.on_frame("{not json")
        await h.dispatcher.on_frame(_frame(7, {"requestId": "r1"}))

        assert future.done()
