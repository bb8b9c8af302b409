"""
Reconciliation Core

Domain logic driven by the dispatch layer.

Modules:
- call_state: per-peer call status machine
- transcript: chat append and delivery acknowledgement
- attachments: local path resolution for message attachments
- statistics: transfer statistics mirror
"""

from .call_state import CallStateMachine, TRANSITIONS, target_status
from .attachments import AttachmentResolver, AttachmentResolutionError
from .transcript import ChatTranscript, other_party
from .statistics import replace_transfer_statistics, transfer_progress, active_transfers

__all__ = [
    'CallStateMachine',
    'TRANSITIONS',
    'target_status',
    'AttachmentResolver',
    'AttachmentResolutionError',
    'ChatTranscript',
    'other_party',
    'replace_transfer_statistics',
    'transfer_progress',
    'active_transfers',
]
