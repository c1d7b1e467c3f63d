# presence_gateway/core/protocol.py
"""
Wire protocol for the presence WebSocket.

Every frame is a JSON object with a "type" discriminator.

Inbound:
  {"type": "identify", "userId": "..."}   -> IdentifyMessage
  {"type": "heartbeat"}                   -> HeartbeatMessage

Outbound:
  {"type": "identify_ack", "serverTime": <epoch ms>}
  {"type": "pong", "serverTime": <epoch ms>}
  {"type": "notification", ...payload fields}

Older clients send {"type": "connection", "username": "..."} and {"type": "ping"};
both are accepted as aliases of identify / heartbeat.
"""
import json
import time
from typing import Any, Dict, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, StrictStr, ValidationError


class ProtocolError(ValueError):
    """Raised when an inbound frame is not a valid envelope or a known kind has a bad payload."""


class IdentifyMessage(BaseModel):
    """First message on a connection: claims ownership of the connection for userId."""
    type: Literal["identify"] = "identify"
    user_id: StrictStr = Field(
        min_length=1,
        validation_alias=AliasChoices("userId", "username"),
    )


class HeartbeatMessage(BaseModel):
    """Liveness signal; always answered with a pong."""
    type: Literal["heartbeat"] = "heartbeat"


class IdentifyAck(BaseModel):
    type: Literal["identify_ack"] = "identify_ack"
    serverTime: int


class Pong(BaseModel):
    type: Literal["pong"] = "pong"
    serverTime: int


InboundMessage = Union[IdentifyMessage, HeartbeatMessage]

# Wire kind -> model. Legacy kinds map onto the canonical models.
_INBOUND_KINDS: Dict[str, type] = {
    "identify": IdentifyMessage,
    "connection": IdentifyMessage,
    "heartbeat": HeartbeatMessage,
    "ping": HeartbeatMessage,
}


def server_time() -> int:
    """Wall-clock milliseconds since the Unix epoch."""
    return int(time.time() * 1000)


def decode_message(raw: Union[str, bytes]) -> Optional[InboundMessage]:
    """
    Decode one inbound frame.

    Returns:
        IdentifyMessage / HeartbeatMessage for known kinds,
        None for any unrecognized kind (ignored by the caller).

    Raises:
        ProtocolError: invalid or too deeply nested JSON, non-object envelope,
                       missing/non-string type, or a known kind whose payload does not validate.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as e:
        raise ProtocolError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError("envelope must be a JSON object")

    kind = data.get("type")
    if not isinstance(kind, str):
        raise ProtocolError("envelope is missing a string 'type'")

    model = _INBOUND_KINDS.get(kind)
    if model is None:
        return None

    fields = {k: v for k, v in data.items() if k != "type"}
    try:
        return model.model_validate(fields)
    except ValidationError as e:
        raise ProtocolError(f"invalid '{kind}' payload: {e.error_count()} error(s)") from e


def encode_identify_ack(now_ms: Optional[int] = None) -> str:
    ack = IdentifyAck(serverTime=server_time() if now_ms is None else now_ms)
    return ack.model_dump_json()


def encode_pong(now_ms: Optional[int] = None) -> str:
    pong = Pong(serverTime=server_time() if now_ms is None else now_ms)
    return pong.model_dump_json()


def encode_notification(payload: Dict[str, Any]) -> str:
    """
    Wrap a notification payload in the notification envelope.
    The discriminator always wins over a "type" key inside the payload.
    """
    return json.dumps({**payload, "type": "notification"})
