"""
Client State Records

Immutable records that make up the observable client model.

RECORDS:
========
- PeerRecord: one per known identity, owns the chat transcript
- ChatMessage: one transcript entry, delivery status carried as a field
- AttachmentDescriptor: backend file descriptor plus local resolution
- TransferStatistics: mirror of the backend's per-transfer counters
- DebugEntry: a backend debug line kept for display

Mutation always means building a new record (dataclasses.replace)
and committing it through a ReactiveContainer.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Tuple
from enum import Enum

from .base import NetworkedPublicKey


# =============================================================================
# ENUMS
# =============================================================================

class CallStatus(Enum):
    """Per-peer call status, owned by the call state machine."""
    NONE = "None"
    SENT_REQUEST = "SentRequest"
    PUNCHTHROUGH_IN_PROGRESS = "PunchthroughInProgress"
    REQUEST_FAILED = "RequestFailed"
    PUNCHTHROUGH_SUCCESSFUL = "PunchthroughSuccessful"
    WAITING_FOR_ANSWER = "WaitingForAnswer"


class DeliveryStatus(Enum):
    """Delivery of a chat message to the other party."""
    PENDING = "pending"
    DELIVERED = "delivered"


class ResolutionState(Enum):
    """Local path resolution of an attachment."""
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


class TransferState(Enum):
    """Backend transfer state. Wire values keep the backend spelling."""
    TRANSFERING = "Transfering"
    COMPLETE = "Complete"


class DebugLevel(Enum):
    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"


# =============================================================================
# ATTACHMENTS
# =============================================================================

@dataclass(frozen=True)
class AttachmentDescriptor:
    """
    A file attached to a chat message.

    resolved_path stays None until the resolver runs. A failed
    resolution records resolution_error instead, so a committed
    message never carries a PENDING attachment.
    """
    file_id: str
    display_name: str
    extension: str
    total_length: int
    resolved_path: Optional[str] = None
    resolution_error: Optional[str] = None

    @property
    def resolution(self) -> ResolutionState:
        if self.resolved_path is not None:
            return ResolutionState.RESOLVED
        if self.resolution_error is not None:
            return ResolutionState.FAILED
        return ResolutionState.PENDING

    @property
    def file_name(self) -> str:
        """Name of the downloaded file: <file_id>.<extension>."""
        if not self.extension:
            return self.file_id
        return f"{self.file_id}.{self.extension}"

    def resolved(self, path: str) -> AttachmentDescriptor:
        return replace(self, resolved_path=path, resolution_error=None)

    def failed(self, reason: str) -> AttachmentDescriptor:
        return replace(self, resolution_error=reason)


# =============================================================================
# CHAT
# =============================================================================

@dataclass(frozen=True)
class ChatMessage:
    """
    One transcript entry.

    own is True when the local identity authored the message
    (an echo of something we sent).
    """
    id: str
    author: NetworkedPublicKey
    recipient: NetworkedPublicKey
    body: str
    timestamp: datetime
    attachments: Tuple[AttachmentDescriptor, ...] = field(default_factory=tuple)
    delivery: DeliveryStatus = DeliveryStatus.PENDING
    own: bool = False

    @property
    def delivered(self) -> bool:
        return self.delivery is DeliveryStatus.DELIVERED

    def mark_delivered(self) -> ChatMessage:
        return replace(self, delivery=DeliveryStatus.DELIVERED)


# =============================================================================
# PEERS
# =============================================================================

@dataclass(frozen=True)
class PeerRecord:
    """Everything the client knows about one peer."""
    identity: NetworkedPublicKey
    call_status: CallStatus = CallStatus.NONE
    messages: Tuple[ChatMessage, ...] = field(default_factory=tuple)
    selected: bool = False

    def has_message(self, message_id: str) -> bool:
        return any(m.id == message_id for m in self.messages)


# =============================================================================
# TRANSFERS
# =============================================================================

@dataclass(frozen=True)
class TransferStatistics:
    """Counters for one file transfer, as aggregated by the backend."""
    started: datetime
    bytes_written: int
    bytes_read: int
    state: TransferState

    @property
    def is_complete(self) -> bool:
        return self.state is TransferState.COMPLETE


# =============================================================================
# DEBUG LOG
# =============================================================================

@dataclass(frozen=True)
class DebugEntry:
    message: str
    level: DebugLevel
    received_at: datetime

    def __str__(self) -> str:
        return f"{self.received_at.strftime('%H:%M:%S')}: {self.message}"
