"""
Client State Owner

Owns every observable container of the client model. Handlers receive
the ClientState for one dispatch and mutate only through the
containers' update primitive.

CONTAINERS:
===========
- peers: Roster (tuple of PeerRecord)
- own_identity: the local NetworkedPublicKey, provided by the host
- transfer_statistics: read-only mapping transfer id -> TransferStatistics
- debug_log: bounded tuple of DebugEntry, newest last

DERIVED:
========
- selected_peer: the PeerRecord with selected=True, or None
"""

from __future__ import annotations
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional, Tuple

from ..contracts.base import NetworkedPublicKey
from ..contracts.state import DebugEntry, PeerRecord, TransferStatistics
from .container import DerivedValue, ReactiveContainer
from . import roster as rs


class ClientState:
    """Single owner of the client's mutable model."""

    def __init__(
        self,
        own_identity: Optional[NetworkedPublicKey] = None,
        debug_log_capacity: int = 100
    ):
        if debug_log_capacity < 1:
            raise ValueError("debug_log_capacity must be at least 1")
        self._debug_log_capacity = debug_log_capacity

        self.peers: ReactiveContainer[rs.Roster] = ReactiveContainer(rs.EMPTY_ROSTER, "peers")
        self.own_identity: ReactiveContainer[Optional[NetworkedPublicKey]] = ReactiveContainer(
            own_identity, "own_identity"
        )
        self.transfer_statistics: ReactiveContainer[Mapping[str, TransferStatistics]] = ReactiveContainer(
            MappingProxyType({}), "transfer_statistics"
        )
        self.debug_log: ReactiveContainer[Tuple[DebugEntry, ...]] = ReactiveContainer((), "debug_log")

        self.selected_peer: DerivedValue[Optional[PeerRecord]] = DerivedValue(self.peers, rs.selected_peer)

    # =========================================================================
    # ROSTER ACCESS
    # =========================================================================

    def get_peer(self, identity: NetworkedPublicKey) -> Optional[PeerRecord]:
        return rs.find_peer(self.peers.get(), identity)

    def update_peer(
        self,
        identity: NetworkedPublicKey,
        change: Callable[[PeerRecord], PeerRecord]
    ) -> bool:
        """
        Find the peer and apply change, notifying subscribers.

        Returns False (and commits nothing) when the peer is unknown.
        """
        found = [False]

        def transform(roster: rs.Roster) -> rs.Roster:
            updated, found[0] = rs.replace_peer(roster, identity, change)
            return updated

        self.peers.update(transform)
        return found[0]

    def add_peers(self, identities: Iterable[NetworkedPublicKey]) -> int:
        """Upsert identities. Returns how many records were created."""
        identities = tuple(identities)
        added = [0]

        def transform(roster: rs.Roster) -> rs.Roster:
            updated = rs.upsert_peers(roster, identities)
            added[0] = len(updated) - len(roster)
            return updated

        self.peers.update(transform)
        return added[0]

    def remove_peer(self, identity: NetworkedPublicKey) -> Optional[PeerRecord]:
        removed = [None]

        def transform(roster: rs.Roster) -> rs.Roster:
            updated, removed[0] = rs.remove_peer(roster, identity)
            return updated

        self.peers.update(transform)
        return removed[0]

    def select_peer(self, identity: NetworkedPublicKey) -> bool:
        found = [False]

        def transform(roster: rs.Roster) -> rs.Roster:
            updated, found[0] = rs.select_peer(roster, identity)
            return updated

        self.peers.update(transform)
        return found[0]

    def clear_selection(self) -> None:
        self.peers.update(rs.clear_selection)

    # =========================================================================
    # OTHER CONTAINERS
    # =========================================================================

    def replace_transfer_statistics(self, snapshot: Mapping[str, TransferStatistics]) -> None:
        self.transfer_statistics.set(MappingProxyType(dict(snapshot)))

    def append_debug(self, entry: DebugEntry) -> None:
        capacity = self._debug_log_capacity
        self.debug_log.update(lambda log: (log + (entry,))[-capacity:])
