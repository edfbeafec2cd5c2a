"""Client configuration.

Values come from, in increasing precedence: defaults, a YAML file or the
environment, and explicit keyword overrides.

Environment variables:
    OBSWS_URL                  Server URL (ws:// or wss://)
    OBSWS_PASSWORD             Server password
    OBSWS_REQUEST_TIMEOUT      Seconds to wait for a response, "none" to wait forever
    OBSWS_CONNECT_TIMEOUT      Seconds allowed for connect + handshake
    OBSWS_EVENT_SUBSCRIPTIONS  Integer mask or names, e.g. "all" or "scenes|inputs"

YAML file keys are the ClientConfig field names (dashes allowed):

    url: ws://studio.local:4455
    password: hunter2
    request-timeout: 5
    event-subscriptions: all|input_volume_meters
"""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .protocol.opcodes import EventSubscription
from .session import SUPPORTED_RPC_VERSION

logger = logging.getLogger(__name__)

DEFAULT_URL = "ws://localhost:4455"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 10.0

ENV_VARS = {
    "url": "OBSWS_URL",
    "password": "OBSWS_PASSWORD",
    "request_timeout": "OBSWS_REQUEST_TIMEOUT",
    "connect_timeout": "OBSWS_CONNECT_TIMEOUT",
    "event_subscriptions": "OBSWS_EVENT_SUBSCRIPTIONS",
}

_NO_TIMEOUT = {"none", "off", "never", ""}


@dataclass
class ClientConfig:
    """Settings for one ObsWebSocketClient."""

    url: str = DEFAULT_URL
    password: str | None = None
    rpc_version: int = SUPPORTED_RPC_VERSION

    # None leaves the server default (all non-high-volume events)
    event_subscriptions: int | None = None

    # None waits forever
    request_timeout: float | None = DEFAULT_REQUEST_TIMEOUT
    connect_timeout: float | None = DEFAULT_CONNECT_TIMEOUT

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: On a non-WebSocket URL or a non-positive timeout
        """
        if not self.url.lower().startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid url, must start with 'ws://' or 'wss://': {self.url}")
        for name in ("request_timeout", "connect_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be positive or None, got {value}")
        if self.rpc_version < 1:
            raise ValueError(f"rpc_version must be >= 1, got {self.rpc_version}")

    def merged(self, **overrides: Any) -> ClientConfig:
        """Copy with the non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> ClientConfig:
        """Build from a mapping of field names (dashes or underscores) to raw values."""
        fields = {f.name for f in dataclasses.fields(cls)}
        kwargs: dict[str, Any] = {}
        for raw_key, value in values.items():
            key = str(raw_key).replace("-", "_")
            if key not in fields:
                raise ValueError(f"Unknown configuration key: {raw_key}")
            kwargs[key] = _coerce(key, value)
        return cls(**kwargs)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> ClientConfig:
        """Build from OBSWS_* environment variables."""
        environ = os.environ if environ is None else environ
        values = {field: environ[var] for field, var in ENV_VARS.items() if var in environ}
        return cls.from_mapping(values).merged(**overrides)

    @classmethod
    def from_file(cls, path: str | Path, **overrides: Any) -> ClientConfig:
        """Build from a YAML file."""
        path = Path(path)
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at top level")

        logger.debug(f"Loaded configuration from {path}")
        return cls.from_mapping(data).merged(**overrides)


def parse_event_subscriptions(value: int | str) -> int:
    """Parse an event subscription mask.

    Accepts an integer, a numeric string, or flag names joined with "|"
    (case-insensitive), e.g. "all|input_volume_meters".
    """
    if isinstance(value, int):
        return value

    text = value.strip()
    if text.lstrip("-").isdigit():
        return int(text)

    mask = EventSubscription.NONE
    for name in text.split("|"):
        name = name.strip().upper()
        try:
            mask |= EventSubscription[name]
        except KeyError:
            raise ValueError(f"Unknown event subscription: {name.lower()}") from None
    return int(mask)


def _parse_timeout(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in _NO_TIMEOUT:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid timeout: {value!r}") from None


def _coerce(key: str, value: Any) -> Any:
    match key:
        case "request_timeout" | "connect_timeout":
            return _parse_timeout(value)
        case "event_subscriptions":
            return None if value is None else parse_event_subscriptions(value)
        case "rpc_version":
            return int(value)
        case "password":
            return None if value is None else str(value)
        case _:
            return str(value)
