"""Event Bus - fan-out of server events to observers.

One bus per client connection. Observers subscribe to an event type (e.g.
"CurrentProgramSceneChanged"), to every event ("*"), or to the unsupported
channel, which receives events nobody subscribed to and op codes the
dispatcher does not route.

Callbacks may be plain functions or coroutine functions. A callback that
raises is logged and does not affect the others.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from .protocol.events import ObsEvent, UnsupportedMessage

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Type for observer callbacks
EventCallback = Callable[[ObsEvent], Awaitable[None] | None]
UnsupportedCallback = Callable[[UnsupportedMessage], Awaitable[None] | None]

WILDCARD = "*"


class EventBus:
    """Per-connection pub/sub keyed by event type."""

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[EventCallback]] = {}
        self._unsupported: list[UnsupportedCallback] = []

    def subscribe(self, event_type: str, callback: EventCallback) -> Callable[[], None]:
        """Subscribe to one event type.

        Args:
            event_type: obs-websocket event name, or "*" for every event
            callback: Called with the ObsEvent

        Returns:
            Unsubscribe function
        """
        self._subscriptions.setdefault(event_type, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscriptions.get(event_type)
            if callbacks and callback in callbacks:
                callbacks.remove(callback)
                if not callbacks:
                    del self._subscriptions[event_type]

        return unsubscribe

    def subscribe_all(self, callback: EventCallback) -> Callable[[], None]:
        """Subscribe to every event."""
        return self.subscribe(WILDCARD, callback)

    def subscribe_unsupported(self, callback: UnsupportedCallback) -> Callable[[], None]:
        """Subscribe to the unsupported channel."""
        self._unsupported.append(callback)

        def unsubscribe() -> None:
            if callback in self._unsupported:
                self._unsupported.remove(callback)

        return unsubscribe

    def has_subscribers(self, event_type: str) -> bool:
        """True if at least one observer is registered for exactly this type."""
        return bool(self._subscriptions.get(event_type))

    async def publish(self, event: ObsEvent, body: dict[str, Any] | None = None) -> int:
        """Deliver an event.

        Events with no type-specific subscriber go to the unsupported channel
        instead. Wildcard subscribers receive every event either way.

        Args:
            event: The event
            body: Raw event body, forwarded on the unsupported channel

        Returns:
            Number of type-specific subscribers notified
        """
        # Copy lists so callbacks may unsubscribe while we iterate
        specific_subs = list(self._subscriptions.get(event.event_type, []))
        wildcard_subs = list(self._subscriptions.get(WILDCARD, []))

        for callback in specific_subs:
            await self._invoke(callback, event, event.event_type)

        if not specific_subs:
            if body is None:
                body = event.model_dump(by_alias=True, exclude_none=True)
            await self.publish_unsupported(
                UnsupportedMessage(kind="event", name=event.event_type, body=body)
            )

        for callback in wildcard_subs:
            await self._invoke(callback, event, event.event_type)

        return len(specific_subs)

    async def publish_unsupported(self, message: UnsupportedMessage) -> None:
        """Deliver a message to the unsupported channel."""
        if not self._unsupported:
            logger.debug(f"Unsupported {message.kind} {message.name!r} (no observer)")
            return
        for callback in list(self._unsupported):
            await self._invoke(callback, message, f"unsupported {message.kind}")

    async def _invoke(
        self, callback: Callable[[T], Awaitable[None] | None], payload: T, label: str
    ) -> None:
        await invoke_callback(callback, payload, label)


async def invoke_callback(
    callback: Callable[[T], Awaitable[None] | None], payload: T, label: str
) -> None:
    """Call a sync or async observer, logging instead of raising."""
    try:
        result = callback(payload)
        if asyncio.iscoroutine(result):
            await result
    except Exception:
        logger.exception(f"Error in subscriber for {label}")
