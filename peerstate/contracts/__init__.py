"""
Contracts Module

Immutable types exchanged between the dispatch layer, the state
owner and the rendering layer.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses)
2. Identity is value-equal
3. Errors are data, returned alongside results
4. Wire decoding is isolated in wire.py
"""

from .base import ErrorCode, Error, NetworkedPublicKey
from .state import (
    CallStatus, DeliveryStatus, ResolutionState, TransferState, DebugLevel,
    AttachmentDescriptor, ChatMessage, PeerRecord, TransferStatistics, DebugEntry
)

__all__ = [
    'ErrorCode', 'Error', 'NetworkedPublicKey',
    'CallStatus', 'DeliveryStatus', 'ResolutionState', 'TransferState', 'DebugLevel',
    'AttachmentDescriptor', 'ChatMessage', 'PeerRecord', 'TransferStatistics', 'DebugEntry',
]
