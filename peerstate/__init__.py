"""
peerstate: client-side state reconciliation for a peer-to-peer
communication client.

Turns the backend's tagged event stream (peer discovery, call
signalling, chat delivery, transfer progress) into an observable
in-memory model for a rendering layer.
"""

from .config import ClientConfig
from .contracts import (
    ErrorCode, Error, NetworkedPublicKey,
    CallStatus, DeliveryStatus, ResolutionState, TransferState, DebugLevel,
    AttachmentDescriptor, ChatMessage, PeerRecord, TransferStatistics, DebugEntry
)
from .store import ReactiveContainer, DerivedValue, ClientState
from .dispatch import EventDispatchEngine, DispatchOutcome, build_event_handler
from .engine import ClientStateEngine

__version__ = "0.1.0"

__all__ = [
    'ClientConfig',
    'ErrorCode', 'Error', 'NetworkedPublicKey',
    'CallStatus', 'DeliveryStatus', 'ResolutionState', 'TransferState', 'DebugLevel',
    'AttachmentDescriptor', 'ChatMessage', 'PeerRecord', 'TransferStatistics', 'DebugEntry',
    'ReactiveContainer', 'DerivedValue', 'ClientState',
    'EventDispatchEngine', 'DispatchOutcome', 'build_event_handler',
    'ClientStateEngine',
]
