"""
Inbound Event Contracts

Closed set of typed events the backend delivers to the client.

Every event class carries its wire tag in TAG. Tags not in this set
decode to UnknownEvent, which the dispatcher reports and drops so
newer backends never crash an older client.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type, Union

from .base import NetworkedPublicKey
from .state import ChatMessage, DebugLevel, TransferStatistics


# =============================================================================
# LOGGING / DISCOVERY
# =============================================================================

@dataclass(frozen=True)
class DebugMessage:
    TAG: ClassVar[str] = "DebugMessage"
    message: str
    level: DebugLevel


@dataclass(frozen=True)
class AnnounceResponse:
    TAG: ClassVar[str] = "AnnounceResponse"
    identities: Tuple[NetworkedPublicKey, ...]


@dataclass(frozen=True)
class PeerDisconnected:
    TAG: ClassVar[str] = "PeerDisconnected"
    identity: NetworkedPublicKey


# =============================================================================
# CALL SIGNALLING
# =============================================================================

@dataclass(frozen=True)
class Call:
    """The peer is calling us."""
    TAG: ClassVar[str] = "Call"
    identity: NetworkedPublicKey


@dataclass(frozen=True)
class CallAccepted:
    TAG: ClassVar[str] = "CallAccepted"
    identity: NetworkedPublicKey


@dataclass(frozen=True)
class CallDenied:
    TAG: ClassVar[str] = "CallDenied"
    identity: NetworkedPublicKey


@dataclass(frozen=True)
class PunchThroughSuccessful:
    # Backend spelling of the tag is kept as-is.
    TAG: ClassVar[str] = "PunchThroughSuccessfull"
    identity: NetworkedPublicKey


# =============================================================================
# CHAT
# =============================================================================

@dataclass(frozen=True)
class OnChatMessage:
    """A message received from a peer, or the echo of one we sent."""
    TAG: ClassVar[str] = "OnChatMessage"
    message: ChatMessage


@dataclass(frozen=True)
class OnChatMessageReceived:
    """The other peer acknowledged delivery of message_id."""
    TAG: ClassVar[str] = "OnChatMessageReceived"
    message_id: str


# =============================================================================
# STATISTICS
# =============================================================================

@dataclass(frozen=True)
class TransferStatisticsUpdate:
    TAG: ClassVar[str] = "TransferStatistics"
    snapshot: Mapping[str, TransferStatistics]

    def __post_init__(self):
        object.__setattr__(self, 'snapshot', MappingProxyType(dict(self.snapshot)))


# =============================================================================
# RESERVED (accepted, not acted on)
# =============================================================================

@dataclass(frozen=True)
class AudioNewInputDevices:
    TAG: ClassVar[str] = "AudioNewInputDevices"
    devices: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class AudioNewOutputDevices:
    TAG: ClassVar[str] = "AudioNewOutputDevices"
    devices: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class ConnectionStatistics:
    TAG: ClassVar[str] = "ConnectionStatistics"
    raw: Any = None


# =============================================================================
# FORWARD COMPATIBILITY
# =============================================================================

@dataclass(frozen=True)
class UnknownEvent:
    """A tag this client does not know. Carried verbatim for reporting."""
    TAG: ClassVar[str] = ""
    tag: str
    raw: Any = field(default=None, compare=False)


KnownEvent = Union[
    DebugMessage,
    AnnounceResponse,
    PeerDisconnected,
    Call,
    CallAccepted,
    CallDenied,
    PunchThroughSuccessful,
    OnChatMessage,
    OnChatMessageReceived,
    TransferStatisticsUpdate,
    AudioNewInputDevices,
    AudioNewOutputDevices,
    ConnectionStatistics,
]

ClientEvent = Union[KnownEvent, UnknownEvent]

EVENT_TYPES: Dict[str, Type] = {
    cls.TAG: cls for cls in (
        DebugMessage,
        AnnounceResponse,
        PeerDisconnected,
        Call,
        CallAccepted,
        CallDenied,
        PunchThroughSuccessful,
        OnChatMessage,
        OnChatMessageReceived,
        TransferStatisticsUpdate,
        AudioNewInputDevices,
        AudioNewOutputDevices,
        ConnectionStatistics,
    )
}


def event_tag(event: ClientEvent) -> str:
    """Wire tag of a decoded event."""
    if isinstance(event, UnknownEvent):
        return event.tag
    return event.TAG
