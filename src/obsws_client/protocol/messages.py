"""Wire envelope codec.

Every frame on the socket is a JSON object ``{"op": <int>, "d": <object>}``.
This module turns logical messages into frames and frames back into
``Envelope`` objects. It does not interpret bodies beyond what is needed to
build them; routing is the dispatcher's job.

Example (request):
    {
        "op": 6,
        "d": {
            "requestType": "GetInputVolume",
            "requestId": "5f0d2c1e-...",
            "requestData": {"inputName": "Mic/Aux"}
        }
    }
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from ..errors import MessageDecodeError, ProtocolError
from .opcodes import OpCode, RequestBatchExecutionType


def new_request_id() -> str:
    """Generate a fresh correlation id."""
    return str(uuid.uuid4())


class Envelope(BaseModel):
    """A decoded frame.

    ``op`` stays a plain int so codes this client does not know survive
    decoding; use ``opcode`` to get the enum member (None when unknown).
    A frame without ``d`` decodes with an empty body.
    """

    op: StrictInt
    d: dict[str, Any] = Field(default_factory=dict)

    @property
    def opcode(self) -> OpCode | None:
        return OpCode.lookup(self.op)

    def to_json(self) -> str:
        """Serialize to a text frame."""
        return json.dumps({"op": self.op, "d": self.d})

    @classmethod
    def from_json(cls, data: str | bytes) -> Envelope:
        """Deserialize a text frame."""
        return decode(data)


class RequestStatus(BaseModel):
    """The ``requestStatus`` object of a response."""

    result: bool
    code: int | None = None
    comment: str | None = None


class RequestResult(BaseModel):
    """Typed view of a RequestResponse body or one item of a batch response.

    ``response_data`` is None when the server omitted ``responseData`` and a
    dict (possibly empty) when it sent one. ``request_status`` is None when the
    body carried no status at all, which counts as a failure.
    """

    model_config = ConfigDict(populate_by_name=True)

    request_type: str | None = Field(default=None, alias="requestType")
    request_id: str | None = Field(default=None, alias="requestId")
    request_status: RequestStatus | None = Field(default=None, alias="requestStatus")
    response_data: dict[str, Any] | None = Field(default=None, alias="responseData")

    @property
    def ok(self) -> bool:
        return self.request_status is not None and self.request_status.result

    def raise_for_status(self) -> None:
        """Raise ProtocolError unless the server reported success."""
        if self.request_status is None:
            raise ProtocolError(
                "Response carried no requestStatus", request_type=self.request_type
            )
        if not self.request_status.result:
            raise ProtocolError(
                self.request_status.comment,
                code=self.request_status.code,
                request_type=self.request_type,
            )


class BatchRequest(BaseModel):
    """One request inside a RequestBatch."""

    model_config = ConfigDict(populate_by_name=True)

    request_type: str = Field(alias="requestType")
    request_data: dict[str, Any] | None = Field(default=None, alias="requestData")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def encode(
    op: OpCode | int,
    verb: str = "",
    parameters: Mapping[str, Any] | None = None,
    request_id: str | None = None,
) -> tuple[str, str]:
    """Build a frame for ``op``.

    Args:
        op: Operation code
        verb: Request type, only used for REQUEST
        parameters: Request data for REQUEST; flat body fields for IDENTIFY,
            REIDENTIFY and any other op; ignored for REQUEST_BATCH
        request_id: Correlation id to use instead of a fresh one

    Returns:
        (frame, request_id)
    """
    request_id = request_id or new_request_id()
    data: dict[str, Any] = {}

    match OpCode.lookup(int(op)):
        case OpCode.REQUEST:
            data["requestType"] = verb
            data["requestId"] = request_id
            # An empty mapping is still sent; only None omits the key
            if parameters is not None:
                data["requestData"] = dict(parameters)
        case OpCode.REQUEST_BATCH:
            data["requestId"] = request_id
        case _:
            if parameters:
                data.update(parameters)

    return Envelope(op=int(op), d=data).to_json(), request_id


def encode_batch(
    requests: Sequence[BatchRequest],
    halt_on_failure: bool = False,
    execution_type: RequestBatchExecutionType = RequestBatchExecutionType.SERIAL_REALTIME,
    request_id: str | None = None,
) -> tuple[str, str]:
    """Build a RequestBatch frame around ``requests``."""
    frame, request_id = encode(OpCode.REQUEST_BATCH, request_id=request_id)
    envelope = decode(frame)
    envelope.d["haltOnFailure"] = halt_on_failure
    envelope.d["executionType"] = int(execution_type)
    envelope.d["requests"] = [item.to_wire() for item in requests]
    return envelope.to_json(), request_id


def decode(frame: str | bytes) -> Envelope:
    """Parse a text frame into an Envelope.

    Raises:
        MessageDecodeError: If the frame is not JSON, not an object, has no
            integer ``op``, or has a ``d`` that is not an object
    """
    try:
        parsed = json.loads(frame)
    except ValueError as e:
        raise MessageDecodeError(f"Invalid JSON frame: {e}") from e

    if not isinstance(parsed, dict):
        raise MessageDecodeError(f"Frame is not a JSON object: {type(parsed).__name__}")

    try:
        return Envelope.model_validate(parsed)
    except ValidationError as e:
        raise MessageDecodeError(f"Invalid envelope: {e}") from e


def parse_request_result(body: Mapping[str, Any]) -> RequestResult:
    """Build a RequestResult from a response body."""
    try:
        return RequestResult.model_validate(body)
    except ValidationError as e:
        raise ProtocolError(f"Malformed response: {e}") from e
