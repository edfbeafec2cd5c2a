"""Numeric constants of the obs-websocket v5 protocol."""

from __future__ import annotations

from enum import IntEnum, IntFlag


class OpCode(IntEnum):
    """Operation codes carried in the ``op`` field of every envelope."""

    # Handshake
    HELLO = 0  # server -> client, first message on a new socket
    IDENTIFY = 1  # client -> server, answers hello
    IDENTIFIED = 2  # server -> client, session ready
    REIDENTIFY = 3  # client -> server, change session parameters

    # Traffic
    EVENT = 5
    REQUEST = 6
    REQUEST_RESPONSE = 7
    REQUEST_BATCH = 8
    REQUEST_BATCH_RESPONSE = 9

    @classmethod
    def lookup(cls, value: int) -> OpCode | None:
        """Return the member for ``value`` or None when the code is unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


class CloseCode(IntEnum):
    """WebSocket close codes the server uses to explain a disconnect."""

    DONT_CLOSE = 0
    UNKNOWN_REASON = 4000
    MESSAGE_DECODE_ERROR = 4002
    MISSING_DATA_FIELD = 4003
    INVALID_DATA_FIELD_TYPE = 4004
    INVALID_DATA_FIELD_VALUE = 4005
    UNKNOWN_OP_CODE = 4006
    NOT_IDENTIFIED = 4007
    ALREADY_IDENTIFIED = 4008
    AUTHENTICATION_FAILED = 4009
    UNSUPPORTED_RPC_VERSION = 4010
    SESSION_INVALIDATED = 4011
    UNSUPPORTED_FEATURE = 4012


class RequestBatchExecutionType(IntEnum):
    """How the server runs the requests of a batch."""

    NONE = -1
    SERIAL_REALTIME = 0
    SERIAL_FRAME = 1
    PARALLEL = 2


class EventSubscription(IntFlag):
    """Bit flags selecting which event categories the server sends."""

    NONE = 0
    GENERAL = 1 << 0
    CONFIG = 1 << 1
    SCENES = 1 << 2
    INPUTS = 1 << 3
    TRANSITIONS = 1 << 4
    FILTERS = 1 << 5
    OUTPUTS = 1 << 6
    SCENE_ITEMS = 1 << 7
    MEDIA_INPUTS = 1 << 8
    VENDORS = 1 << 9
    UI = 1 << 10
    ALL = (
        GENERAL
        | CONFIG
        | SCENES
        | INPUTS
        | TRANSITIONS
        | FILTERS
        | OUTPUTS
        | SCENE_ITEMS
        | MEDIA_INPUTS
        | VENDORS
        | UI
    )

    # High-volume categories, never part of ALL
    INPUT_VOLUME_METERS = 1 << 16
    INPUT_ACTIVE_STATE_CHANGED = 1 << 17
    INPUT_SHOW_STATE_CHANGED = 1 << 18
    SCENE_ITEM_TRANSFORM_CHANGED = 1 << 19
