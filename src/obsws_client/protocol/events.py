"""Notifications delivered to observers.

Events are unsolicited messages from the server (op 5). They carry no
correlation id and no ordering relationship to request responses.

Example:
    {
        "op": 5,
        "d": {
            "eventType": "CurrentProgramSceneChanged",
            "eventIntent": 4,
            "eventData": {"sceneName": "Scene 2"}
        }
    }
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .opcodes import CloseCode


class ObsEvent(BaseModel):
    """An event notification.

    ``event_data`` is None when the server sent no ``eventData`` key, which is
    distinct from an empty dict.
    """

    model_config = ConfigDict(populate_by_name=True)

    event_type: str = Field(alias="eventType")
    event_intent: int | None = Field(default=None, alias="eventIntent")
    event_data: dict[str, Any] | None = Field(default=None, alias="eventData")

    def get(self, key: str, default: Any = None) -> Any:
        """Read a field of ``event_data``."""
        if self.event_data is None:
            return default
        return self.event_data.get(key, default)


class UnsupportedMessage(BaseModel):
    """A message the client has no handler for.

    ``kind`` is "event" for events nobody subscribed to (or without an
    eventType) and "op" for envelopes whose op code the client does not route.
    ``name`` is the event type, or the op code as a string.
    """

    kind: Literal["event", "op"]
    name: str
    body: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class DisconnectionInfo:
    """Why a connection ended."""

    close_code: int | None
    reason: str = ""
    authentication_failed: bool = False

    @property
    def obs_close_code(self) -> CloseCode | None:
        """The server's close code as an enum member, if it is one."""
        if self.close_code is None:
            return None
        try:
            return CloseCode(self.close_code)
        except ValueError:
            return None
