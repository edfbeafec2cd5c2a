"""Inbound frame dispatch.

The dispatcher is the single entry point for traffic from the server. The
client's read loop awaits ``on_frame`` once per text frame, in arrival
order, never concurrently. Each frame is routed by op code:

    HELLO                  -> session, identify written back
    IDENTIFIED             -> session, "identified" callback on a new task
    REQUEST_RESPONSE       -> correlation table (by requestId)
    REQUEST_BATCH_RESPONSE -> correlation table (by requestId)
    EVENT                  -> event bus on a new task
    anything else          -> unsupported channel

Observer work is always scheduled with ``spawn`` so a slow observer cannot
stall intake. A frame that fails to decode or to route is logged and
dropped; it never stops the loop.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

from pydantic import ValidationError

from .bus import EventBus
from .correlation import CorrelationTable
from .errors import MessageDecodeError, NotConnectedError
from .protocol.events import ObsEvent, UnsupportedMessage
from .protocol.messages import Envelope, decode, encode
from .protocol.opcodes import OpCode
from .session import Session

logger = logging.getLogger(__name__)

SendFrame = Callable[[str], Awaitable[None]]
Spawn = Callable[[Coroutine[Any, Any, Any]], None]


class Dispatcher:
    """Routes decoded envelopes to the session, the correlation table or the bus."""

    def __init__(
        self,
        session: Session,
        table: CorrelationTable,
        bus: EventBus,
        send_frame: SendFrame,
        spawn: Spawn,
        on_identified: Callable[[], None] | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            session: Handshake state of this connection
            table: Pending requests of this connection
            bus: Event fan-out of this connection
            send_frame: Raw transport write, used for identify (it must
                bypass the identified check that guards user requests)
            spawn: Schedules a coroutine on a separate task
            on_identified: Called once per connection when it becomes identified
        """
        self._session = session
        self._table = table
        self._bus = bus
        self._send_frame = send_frame
        self._spawn = spawn
        self._on_identified = on_identified

    async def on_frame(self, raw: str) -> None:
        """Process one inbound text frame. Never raises."""
        try:
            envelope = decode(raw)
        except MessageDecodeError as e:
            logger.warning(f"Dropping malformed frame: {e}")
            return

        logger.debug(f"Received op={envelope.op}: {raw[:200]}")

        try:
            await self._route(envelope)
        except Exception:
            logger.exception(f"Error dispatching op={envelope.op}")

    async def _route(self, envelope: Envelope) -> None:
        body = envelope.d
        opcode = envelope.opcode

        match opcode:
            case OpCode.HELLO:
                await self._handle_hello(body)

            case OpCode.IDENTIFIED:
                self._handle_identified(body)

            case OpCode.REQUEST_RESPONSE | OpCode.REQUEST_BATCH_RESPONSE:
                if self._before_identified(opcode):
                    return
                self._handle_response(body)

            case OpCode.EVENT:
                if self._before_identified(opcode):
                    return
                self._handle_event(body)

            case _:
                logger.warning(f"Unsupported message type: {envelope.op}")
                self._spawn(
                    self._bus.publish_unsupported(
                        UnsupportedMessage(kind="op", name=str(envelope.op), body=body)
                    )
                )

    def _before_identified(self, opcode: OpCode) -> bool:
        """Log and report True for traffic the server must not send yet."""
        if self._session.is_identified:
            return False
        logger.warning(
            f"Protocol violation: {opcode.name} received while {self._session.state.value}, ignored"
        )
        return True

    async def _handle_hello(self, body: dict[str, Any]) -> None:
        identify = self._session.handle_hello(body)
        if identify is None:
            return

        frame, _ = encode(OpCode.IDENTIFY, parameters=identify)
        try:
            await self._send_frame(frame)
        except NotConnectedError as e:
            # The close is reported through the read loop ending
            logger.warning(f"Could not send identify: {e}")
            return
        logger.debug("Identify sent")

    def _handle_identified(self, body: dict[str, Any]) -> None:
        if self._session.handle_identified(body) and self._on_identified is not None:
            self._on_identified()

    def _handle_response(self, body: dict[str, Any]) -> None:
        request_id = body.get("requestId")
        if not isinstance(request_id, str):
            logger.warning("Dropping response without requestId")
            return

        if self._table.complete(request_id, body):
            logger.debug(f"Completed request {request_id}")
        elif self._table.pop_expired(request_id):
            logger.warning(f"Late response for timed-out request {request_id}")
        else:
            # Replies to fire-and-forget requests land here
            logger.debug(f"No pending request for response {request_id}")

    def _handle_event(self, body: dict[str, Any]) -> None:
        event_type = body.get("eventType")
        if not isinstance(event_type, str):
            logger.warning("Event without eventType")
            self._spawn(
                self._bus.publish_unsupported(UnsupportedMessage(kind="event", name="", body=body))
            )
            return

        try:
            event = ObsEvent.model_validate(body)
        except ValidationError as e:
            logger.warning(f"Malformed {event_type} event: {e}")
            self._spawn(
                self._bus.publish_unsupported(
                    UnsupportedMessage(kind="event", name=event_type, body=body)
                )
            )
            return

        self._spawn(self._bus.publish(event, body))
