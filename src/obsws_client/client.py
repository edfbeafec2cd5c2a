"""obs-websocket client.

Owns one connection: the transport, the session state machine, the
correlation table, the dispatcher and the event bus. The verb APIs
(``client.scenes``, ``client.inputs`` ...) sit on top of ``send``.

Usage:
    async with ObsWebSocketClient(ClientConfig(password="secret")) as client:
        version = await client.general.get_version()

        @client.on("CurrentProgramSceneChanged")
        async def scene_changed(event: ObsEvent) -> None:
            print(event.get("sceneName"))

        await client.scenes.set_current_program("Scene 2")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine, Mapping, Sequence
from enum import Enum
from typing import Any

from .bus import EventBus, EventCallback, UnsupportedCallback, invoke_callback
from .config import ClientConfig
from .correlation import CorrelationTable
from .dispatcher import Dispatcher
from .errors import (
    AuthenticationError,
    NotConnectedError,
    ProtocolError,
    RequestTimeoutError,
    TransportLossError,
)
from .protocol.events import DisconnectionInfo
from .protocol.messages import (
    BatchRequest,
    RequestResult,
    encode,
    encode_batch,
    parse_request_result,
)
from .protocol.opcodes import OpCode, RequestBatchExecutionType
from .sdk.api import GeneralAPI, InputAPI, OutputAPI, SceneAPI, SourceAPI
from .session import Session, SessionState
from .transport.base import NORMAL_CLOSURE, ClientTransport
from .transport.websocket import WebSocketClientTransport

logger = logging.getLogger(__name__)

ConnectedCallback = Callable[[], Awaitable[None] | None]
DisconnectedCallback = Callable[[DisconnectionInfo], Awaitable[None] | None]
BatchItem = BatchRequest | str | tuple[str, Mapping[str, Any] | None]


class _Default(Enum):
    TIMEOUT = "timeout"


# Timeout default meaning "use config.request_timeout"; None waits forever
DEFAULT_TIMEOUT = _Default.TIMEOUT


class ObsWebSocketClient:
    """Client for one obs-websocket connection.

    Requests may be issued concurrently from any number of tasks once the
    session is identified. Responses are matched back by requestId; events
    are fanned out to observers on background tasks.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: ClientTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Connection settings (defaults to ClientConfig())
            transport: Transport to use (defaults to a WebSocket transport)
        """
        self.config = config or ClientConfig()
        self._transport: ClientTransport = transport or WebSocketClientTransport(
            open_timeout=self.config.connect_timeout
        )

        self._session = Session(
            password=self.config.password,
            rpc_version=self.config.rpc_version,
            event_subscriptions=self.config.event_subscriptions,
        )
        self._table = CorrelationTable()
        self._bus = EventBus()
        self._dispatcher = Dispatcher(
            self._session,
            self._table,
            self._bus,
            send_frame=self._transport.send,
            spawn=self._fire_task,
            on_identified=self._on_identified,
        )

        self._lock = asyncio.Lock()
        self._reader_task: asyncio.Task[None] | None = None
        self._handshake: asyncio.Future[None] | None = None
        self._closing = False
        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._connected_callbacks: list[ConnectedCallback] = []
        self._disconnected_callbacks: list[DisconnectedCallback] = []
        self.last_disconnection: DisconnectionInfo | None = None

        # Verb APIs
        self.general = GeneralAPI(self)
        self.scenes = SceneAPI(self)
        self.inputs = InputAPI(self)
        self.outputs = OutputAPI(self)
        self.sources = SourceAPI(self)

    # -- State ----------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Handshake state of the current connection."""
        return self._session.state

    @property
    def is_connected(self) -> bool:
        """True once identified, until the socket closes."""
        return self._session.is_identified

    @property
    def negotiated_rpc_version(self) -> int | None:
        return self._session.negotiated_rpc_version

    @property
    def pending_requests(self) -> int:
        """Number of requests waiting for a response."""
        return len(self._table)

    @property
    def transport(self) -> ClientTransport:
        return self._transport

    # -- Lifecycle ------------------------------------------------------------

    async def connect(self, wait: bool = True) -> None:
        """Open the connection and start the handshake.

        Args:
            wait: Return only once identified (bounded by connect_timeout)

        Raises:
            ValueError: If the configuration is invalid
            NotConnectedError: If the socket cannot be opened or closes
                during the handshake
            AuthenticationError: If the server rejects the credentials
        """
        async with self._lock:
            if self._reader_task is None or self._reader_task.done():
                await self._open()

        if wait:
            await self.wait_identified(self.config.connect_timeout)

    async def _open(self) -> None:
        self.config.validate()
        handshake: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        # May never be awaited when connect(wait=False)
        handshake.add_done_callback(_consume_exception)
        self._handshake = handshake
        self._closing = False

        try:
            await self._transport.connect(self.config.url)
        except ConnectionError as e:
            self._handshake = None
            raise NotConnectedError(f"Failed to connect to {self.config.url}: {e}") from e

        self._session.transport_opened()
        self._reader_task = asyncio.create_task(self._read_loop())

    async def wait_identified(self, timeout: float | None = None) -> None:
        """Wait until the current connection is identified.

        Raises:
            NotConnectedError: If no connection was started, the handshake
                timed out (the connection is then closed), or it closed
            AuthenticationError: If the server rejected the credentials
        """
        handshake = self._handshake
        if handshake is None:
            raise NotConnectedError("connect() has not been called")

        try:
            await asyncio.wait_for(asyncio.shield(handshake), timeout)
        except TimeoutError:
            await self.disconnect()
            raise NotConnectedError(f"Handshake did not complete within {timeout}s") from None

    async def disconnect(self) -> None:
        """Close the connection and wait for the read loop to finish.

        Pending requests fail with TransportLossError.
        """
        reader = self._reader_task
        if reader is None:
            return

        self._closing = True
        await self._transport.close(NORMAL_CLOSURE, "User disconnected")
        await reader
        self._reader_task = None

    async def wait_idle(self) -> None:
        """Wait for every observer task scheduled so far to finish."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def __aenter__(self) -> ObsWebSocketClient:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()

    # -- Requests -------------------------------------------------------------

    async def send(
        self,
        verb: str,
        parameters: Mapping[str, Any] | None = None,
        wait_for_reply: bool = True,
        timeout: float | None | _Default = DEFAULT_TIMEOUT,
    ) -> dict[str, Any] | None:
        """Send a request.

        Args:
            verb: Request type, e.g. "GetSceneList"
            parameters: requestData; None omits the key, {} sends an empty object
            wait_for_reply: False writes the frame and returns None at once
            timeout: Seconds to wait, None waits forever; defaults to
                config.request_timeout

        Returns:
            responseData when the server sent it (possibly empty), else None

        Raises:
            NotConnectedError: If the session is not identified; nothing is written
            TransportLossError: If the connection drops before the response
            RequestTimeoutError: If no response arrives in time
            ProtocolError: If the server reports failure
        """
        self._session.require_identified()
        frame, request_id = encode(OpCode.REQUEST, verb, parameters)

        if not wait_for_reply:
            await self._transport.send(frame)
            logger.debug(f"Sent {verb} (id={request_id}, no reply expected)")
            return None

        body = await self._roundtrip(request_id, frame, verb, timeout)
        result = parse_request_result(body)
        if result.request_type is None:
            result.request_type = verb
        result.raise_for_status()
        return result.response_data

    async def send_batch(
        self,
        requests: Sequence[BatchItem],
        halt_on_failure: bool = False,
        execution_type: RequestBatchExecutionType = RequestBatchExecutionType.SERIAL_REALTIME,
        timeout: float | None | _Default = DEFAULT_TIMEOUT,
    ) -> list[RequestResult]:
        """Send several requests in one RequestBatch.

        Items may be BatchRequest objects, bare verbs, or (verb, data) tuples.
        Per-request failures are reported in the returned results, not raised.

        Raises:
            NotConnectedError: If the session is not identified
            TransportLossError: If the connection drops before the response
            RequestTimeoutError: If no response arrives in time
            ProtocolError: If the batch response has no results list
        """
        self._session.require_identified()
        items = [_to_batch_request(item) for item in requests]
        frame, request_id = encode_batch(items, halt_on_failure, execution_type)

        body = await self._roundtrip(request_id, frame, "RequestBatch", timeout)
        results = body.get("results")
        if not isinstance(results, list):
            raise ProtocolError("Batch response carried no results", request_type="RequestBatch")
        return [parse_request_result(item) for item in results]

    async def reidentify(self, event_subscriptions: int) -> None:
        """Change the event subscriptions of the identified session."""
        self._session.require_identified()
        self._session.event_subscriptions = int(event_subscriptions)
        frame, _ = encode(
            OpCode.REIDENTIFY, parameters={"eventSubscriptions": int(event_subscriptions)}
        )
        await self._transport.send(frame)

    async def _roundtrip(
        self, request_id: str, frame: str, verb: str, timeout: float | None | _Default
    ) -> dict[str, Any]:
        # Register before writing so an immediate reply finds its entry
        future = self._table.register(request_id)
        try:
            await self._transport.send(frame)
        except BaseException:
            self._table.unregister(request_id)
            raise
        logger.debug(f"Sent {verb} (id={request_id})")

        if timeout is DEFAULT_TIMEOUT:
            timeout = self.config.request_timeout
        try:
            return await asyncio.wait_for(future, timeout)
        except TimeoutError:
            self._table.expire(request_id)
            raise RequestTimeoutError(verb, request_id, timeout or 0.0) from None
        except asyncio.CancelledError:
            self._table.unregister(request_id)
            raise

    # -- Observers ------------------------------------------------------------

    def on(self, event_type: str, callback: EventCallback | None = None) -> Any:
        """Register an event handler for one event type.

        With a callback, returns the unsubscribe function. Without one,
        returns a decorator.

        Example::

            @client.on("InputMuteStateChanged")
            async def handle(event: ObsEvent):
                print(event.get("inputName"), event.get("inputMuted"))
        """
        if callback is not None:
            return self._bus.subscribe(event_type, callback)

        def decorator(fn: EventCallback) -> EventCallback:
            self._bus.subscribe(event_type, fn)
            return fn

        return decorator

    def on_any(self, callback: EventCallback) -> Callable[[], None]:
        """Register a handler that receives every event."""
        return self._bus.subscribe_all(callback)

    def on_unsupported(self, callback: UnsupportedCallback) -> Callable[[], None]:
        """Register a handler for unsubscribed events and unknown op codes."""
        return self._bus.subscribe_unsupported(callback)

    def on_connected(self, callback: ConnectedCallback) -> Callable[[], None]:
        """Register a handler called each time a connection becomes identified."""
        self._connected_callbacks.append(callback)
        return lambda: _remove(self._connected_callbacks, callback)

    def on_disconnected(self, callback: DisconnectedCallback) -> Callable[[], None]:
        """Register a handler called with DisconnectionInfo when a connection ends."""
        self._disconnected_callbacks.append(callback)
        return lambda: _remove(self._disconnected_callbacks, callback)

    # -- Internal: connection events ------------------------------------------

    async def _read_loop(self) -> None:
        """Feed inbound frames to the dispatcher until the socket closes."""
        try:
            async for frame in self._transport.frames():
                await self._dispatcher.on_frame(frame)
        except Exception:
            logger.exception("Read loop error")
        finally:
            self._on_closed()

    def _on_identified(self) -> None:
        if self._handshake is not None and not self._handshake.done():
            self._handshake.set_result(None)
        logger.info("Connected and identified")
        for callback in list(self._connected_callbacks):
            self._fire_task(_call_no_args(callback))

    def _on_closed(self) -> None:
        code = self._transport.close_code
        reason = self._transport.close_reason
        auth_failed = self._session.transport_closed(code, local_close=self._closing)
        self._closing = False
        info = DisconnectionInfo(close_code=code, reason=reason, authentication_failed=auth_failed)
        self.last_disconnection = info

        failed = self._table.cancel_all(lambda: TransportLossError(code, reason))
        logger.info(
            f"Disconnected (code={code}, reason={reason!r}, "
            f"auth_failed={auth_failed}, pending_failed={failed})"
        )

        if self._handshake is not None and not self._handshake.done():
            if auth_failed:
                self._handshake.set_exception(
                    AuthenticationError(f"Authentication failed: {reason or code}", close_code=code)
                )
            else:
                self._handshake.set_exception(
                    NotConnectedError(
                        f"Connection closed during handshake (code={code}, reason={reason!r})"
                    )
                )

        for callback in list(self._disconnected_callbacks):
            self._fire_task(invoke_callback(callback, info, "disconnected"))

    def _fire_task(self, coro: Coroutine[Any, Any, Any]) -> None:
        """Schedule a coroutine with a strong reference to prevent GC."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)


def _to_batch_request(item: BatchItem) -> BatchRequest:
    if isinstance(item, BatchRequest):
        return item
    if isinstance(item, str):
        return BatchRequest(request_type=item)
    verb, data = item
    return BatchRequest(request_type=verb, request_data=None if data is None else dict(data))


async def _call_no_args(callback: ConnectedCallback) -> None:
    await invoke_callback(lambda _: callback(), None, "connected")


def _remove(callbacks: list[Any], callback: Any) -> None:
    if callback in callbacks:
        callbacks.remove(callback)


def _consume_exception(future: asyncio.Future[Any]) -> None:
    if not future.cancelled():
        future.exception()
