"""Correlation table: matches responses to the requests waiting for them.

Each pending request owns one future keyed by its requestId. Every
operation looks up and removes the entry without awaiting in between, so on
a single event loop the first of complete / fail / unregister wins and every
later attempt for the same id is a no-op.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

# Timed-out ids remembered so a late reply can be told apart from a stray one
EXPIRED_HISTORY = 256


class CorrelationTable:
    """Pending-completion futures keyed by request id."""

    def __init__(self) -> None:
        self._pending: dict[str, asyncio.Future[dict[str, Any]]] = {}
        self._expired: dict[str, None] = {}

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def pending_ids(self) -> list[str]:
        """Snapshot of the ids still waiting."""
        return list(self._pending)

    def register(self, request_id: str) -> asyncio.Future[dict[str, Any]]:
        """Create the completion handle for ``request_id``.

        Must be called before the request frame is written so a fast reply
        always finds its entry.

        Raises:
            ValueError: If ``request_id`` is already pending
        """
        if request_id in self._pending:
            raise ValueError(f"Request id already pending: {request_id}")

        future: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        return future

    def complete(self, request_id: str, body: dict[str, Any]) -> bool:
        """Resolve the entry with a response body.

        Returns:
            False if the id is unknown, already completed, or timed out
        """
        future = self._pending.pop(request_id, None)
        if future is None or future.done():
            return False
        future.set_result(body)
        return True

    def fail(self, request_id: str, exc: BaseException) -> bool:
        """Resolve the entry with an exception. Same rules as complete()."""
        future = self._pending.pop(request_id, None)
        if future is None or future.done():
            return False
        future.set_exception(exc)
        return True

    def unregister(self, request_id: str) -> bool:
        """Drop the entry from the waiting side (timeout or cancellation).

        A reply that arrives afterwards is ignored by complete().
        """
        future = self._pending.pop(request_id, None)
        if future is None:
            return False
        if not future.done():
            future.cancel()
        return True

    def expire(self, request_id: str) -> bool:
        """Unregister after a timeout and remember the id for late replies."""
        if not self.unregister(request_id):
            return False
        self._expired[request_id] = None
        while len(self._expired) > EXPIRED_HISTORY:
            del self._expired[next(iter(self._expired))]
        return True

    def pop_expired(self, request_id: str) -> bool:
        """True once if ``request_id`` timed out in this table."""
        return self._expired.pop(request_id, False) is None

    def cancel_all(self, make_exc: Callable[[], BaseException]) -> int:
        """Fail every pending entry and empty the table.

        Args:
            make_exc: Builds the exception for each entry, so no two waiters
                share one exception object

        Returns:
            Number of entries that were failed
        """
        pending, self._pending = self._pending, {}
        failed = 0
        for future in pending.values():
            if not future.done():
                future.set_exception(make_exc())
                failed += 1
        if failed:
            logger.debug(f"Failed {failed} pending request(s)")
        return failed
