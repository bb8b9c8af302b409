"""
Transfer Statistics

The backend aggregates per-transfer counters; the client is a pure
mirror. Each snapshot replaces the table wholesale - no merge, no
partial update.
"""

from __future__ import annotations
from typing import Mapping, Tuple

from ..contracts.state import TransferStatistics
from ..store.client_state import ClientState


def replace_transfer_statistics(state: ClientState, snapshot: Mapping[str, TransferStatistics]) -> None:
    state.replace_transfer_statistics(snapshot)


def transfer_progress(stats: TransferStatistics, total_length: int) -> float:
    """Completion ratio in [0, 1] for a transfer of total_length bytes."""
    if stats.is_complete or total_length <= 0:
        return 1.0
    done = max(stats.bytes_written, stats.bytes_read)
    return min(done / total_length, 1.0)


def active_transfers(table: Mapping[str, TransferStatistics]) -> Tuple[str, ...]:
    """Ids of transfers still in flight, in table order."""
    return tuple(key for key, stats in table.items() if not stats.is_complete)
