"""
Wire Decoding

Converts the raw envelope delivered by the host runtime into a typed
ClientEvent.

ENVELOPE CONTRACT:
==================
    {"payload": {<TagName>: <TagSpecificData>}}

- Exactly one tag key per payload
- Field names follow the backend (msg, dt, file_extension, ...)
- Unknown tags decode to UnknownEvent, never to an error
- A known tag with an invalid body raises MalformedEventError
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from .base import NetworkedPublicKey
from .state import (
    AttachmentDescriptor, ChatMessage, DebugLevel, TransferState, TransferStatistics
)
from . import events as ev


class MalformedEventError(ValueError):
    """Raised when an envelope or a known tag's body cannot be decoded."""

    def __init__(self, tag: Optional[str], reason: str):
        super().__init__(f"Malformed event {tag or '<no tag>'}: {reason}")
        self.tag = tag
        self.reason = reason


# =============================================================================
# WIRE MODELS
# =============================================================================

class PublicKeyModel(BaseModel):
    n: str
    e: str

    def to_identity(self) -> NetworkedPublicKey:
        return NetworkedPublicKey(n=self.n, e=self.e)


class PreparedFileModel(BaseModel):
    file_id: str
    file_name: str
    file_extension: str = ""
    total_length: int = 0

    def to_descriptor(self) -> AttachmentDescriptor:
        return AttachmentDescriptor(
            file_id=self.file_id,
            display_name=self.file_name,
            extension=self.file_extension.lstrip('.'),
            total_length=self.total_length
        )


class ChatMessageModel(BaseModel):
    id: str
    author: PublicKeyModel
    recipient: PublicKeyModel
    msg: str
    attachments: Optional[List[PreparedFileModel]] = None
    dt: datetime

    @field_validator('dt')
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_message(self) -> ChatMessage:
        return ChatMessage(
            id=self.id,
            author=self.author.to_identity(),
            recipient=self.recipient.to_identity(),
            body=self.msg,
            timestamp=self.dt,
            attachments=tuple(a.to_descriptor() for a in self.attachments or ())
        )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _since(seconds: float, microseconds: float) -> datetime:
    """Instant that lies the given elapsed time before now."""
    try:
        return datetime.now(timezone.utc) - timedelta(seconds=seconds, microseconds=microseconds)
    except (OverflowError, TypeError) as e:
        raise ValueError(f"elapsed time out of range: {e}") from e


class TransferStatisticsModel(BaseModel):
    started: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    bytes_written: int = 0
    bytes_read: int = 0
    state: Literal["Transfering", "Complete"] = "Transfering"

    @field_validator('started', mode='before')
    @classmethod
    def _elapsed_to_instant(cls, value: Any) -> Any:
        # The backend serializes a monotonic instant as the time elapsed since it.
        if isinstance(value, Mapping) and 'secs' in value:
            secs, nanos = value['secs'], value.get('nanos', 0)
            if not _is_number(secs) or not _is_number(nanos):
                raise ValueError("elapsed secs and nanos must be numbers")
            return _since(secs, nanos / 1000)
        if _is_number(value):
            return _since(value, 0)
        return value

    @field_validator('started')
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_statistics(self) -> TransferStatistics:
        return TransferStatistics(
            started=self.started,
            bytes_written=self.bytes_written,
            bytes_read=self.bytes_read,
            state=TransferState(self.state)
        )


_IDENTITY = TypeAdapter(PublicKeyModel)
_IDENTITY_LIST = TypeAdapter(List[PublicKeyModel])
_DEVICES = TypeAdapter(Optional[List[str]])
_STATISTICS = TypeAdapter(Dict[str, TransferStatisticsModel])
_DEBUG = TypeAdapter(Tuple[str, Union[int, str]])

_DEBUG_LEVELS_BY_INDEX = (DebugLevel.INFO, DebugLevel.WARNING, DebugLevel.ERROR)

_IDENTITY_EVENTS = {
    cls.TAG: cls for cls in (
        ev.PeerDisconnected, ev.Call, ev.CallAccepted, ev.CallDenied, ev.PunchThroughSuccessful
    )
}


# =============================================================================
# DECODING
# =============================================================================

def split_envelope(envelope: Any) -> Tuple[str, Any]:
    """Return the (tag, body) pair carried by an envelope."""
    if not isinstance(envelope, Mapping):
        raise MalformedEventError(None, "envelope is not a mapping")
    payload = envelope.get('payload')
    if not isinstance(payload, Mapping) or len(payload) != 1:
        raise MalformedEventError(None, "payload must carry exactly one tag")
    (tag, body), = payload.items()
    return str(tag), body


def _debug_level(raw: Union[int, str]) -> DebugLevel:
    if isinstance(raw, int):
        if not 0 <= raw < len(_DEBUG_LEVELS_BY_INDEX):
            raise ValueError(f"unknown debug level index {raw}")
        return _DEBUG_LEVELS_BY_INDEX[raw]
    return DebugLevel(raw)


def _decode_body(tag: str, body: Any) -> ev.ClientEvent:
    if tag in _IDENTITY_EVENTS:
        return _IDENTITY_EVENTS[tag](identity=_IDENTITY.validate_python(body).to_identity())

    if tag == ev.AnnounceResponse.TAG:
        keys = _IDENTITY_LIST.validate_python(body)
        return ev.AnnounceResponse(identities=tuple(k.to_identity() for k in keys))

    if tag == ev.OnChatMessage.TAG:
        return ev.OnChatMessage(message=ChatMessageModel.model_validate(body).to_message())

    if tag == ev.OnChatMessageReceived.TAG:
        if not isinstance(body, str):
            raise MalformedEventError(tag, "message id must be a string")
        return ev.OnChatMessageReceived(message_id=body)

    if tag == ev.TransferStatisticsUpdate.TAG:
        table = _STATISTICS.validate_python(body)
        return ev.TransferStatisticsUpdate(
            snapshot={key: model.to_statistics() for key, model in table.items()}
        )

    if tag == ev.DebugMessage.TAG:
        message, level = _DEBUG.validate_python(body)
        return ev.DebugMessage(message=message, level=_debug_level(level))

    if tag in (ev.AudioNewInputDevices.TAG, ev.AudioNewOutputDevices.TAG):
        devices = _DEVICES.validate_python(body)
        return ev.EVENT_TYPES[tag](devices=tuple(devices) if devices is not None else None)

    if tag == ev.ConnectionStatistics.TAG:
        return ev.ConnectionStatistics(raw=body)

    return ev.UnknownEvent(tag=tag, raw=body)


def decode_envelope(envelope: Any) -> ev.ClientEvent:
    """
    Decode a raw host envelope.

    Raises MalformedEventError for structural problems or invalid bodies
    of known tags. Unknown tags are not an error here.
    """
    tag, body = split_envelope(envelope)
    try:
        return _decode_body(tag, body)
    except ValidationError as e:
        raise MalformedEventError(tag, f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}") from e
    except (ValueError, TypeError, ArithmeticError, IndexError, KeyError) as e:
        if isinstance(e, MalformedEventError):
            raise
        raise MalformedEventError(tag, str(e)) from e
