"""obs-websocket v5 wire protocol.

Defines the envelope codec, op codes and the notification types that the
connection engine hands to observers.

Key concepts:
- Envelope: {op, d} JSON object, one per text frame
- Request/Response: op 6 / op 7, correlated by requestId
- Events: op 5, uncorrelated
- Handshake: hello (0) -> identify (1) -> identified (2)
"""

from .auth import AuthChallenge, compute_authentication
from .events import DisconnectionInfo, ObsEvent, UnsupportedMessage
from .messages import (
    BatchRequest,
    Envelope,
    RequestResult,
    RequestStatus,
    decode,
    encode,
    encode_batch,
    new_request_id,
    parse_request_result,
)
from .opcodes import CloseCode, EventSubscription, OpCode, RequestBatchExecutionType

__all__ = [
    # Codec
    "Envelope",
    "encode",
    "encode_batch",
    "decode",
    "new_request_id",
    "parse_request_result",
    "BatchRequest",
    "RequestResult",
    "RequestStatus",
    # Constants
    "OpCode",
    "CloseCode",
    "EventSubscription",
    "RequestBatchExecutionType",
    # Handshake
    "AuthChallenge",
    "compute_authentication",
    # Notifications
    "ObsEvent",
    "UnsupportedMessage",
    "DisconnectionInfo",
]
