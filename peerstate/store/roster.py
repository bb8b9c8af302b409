"""
Peer Roster
===========

Pure functions over the roster value: a tuple of PeerRecord in
insertion order.

INVARIANT: at most one PeerRecord per identity (value equality).

Every function returns the SAME tuple object when nothing changed,
so ReactiveContainer.update skips the commit and no subscriber is
woken for a no-op.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Callable, Iterable, Optional, Tuple

from ..contracts.base import NetworkedPublicKey
from ..contracts.state import PeerRecord

Roster = Tuple[PeerRecord, ...]

EMPTY_ROSTER: Roster = ()


def find_peer(roster: Roster, identity: NetworkedPublicKey) -> Optional[PeerRecord]:
    for peer in roster:
        if peer.identity == identity:
            return peer
    return None


def upsert_peers(roster: Roster, identities: Iterable[NetworkedPublicKey]) -> Roster:
    """
    Append a default record for each identity not already present.

    Known identities are left untouched, so re-announcing is idempotent.
    """
    added = []
    for identity in identities:
        if find_peer(roster, identity) is None and identity not in added:
            added.append(identity)
    if not added:
        return roster
    return roster + tuple(PeerRecord(identity=identity) for identity in added)


def remove_peer(
    roster: Roster,
    identity: NetworkedPublicKey
) -> Tuple[Roster, Optional[PeerRecord]]:
    """Remove the record for identity. Returns (roster, removed record or None)."""
    removed = find_peer(roster, identity)
    if removed is None:
        return roster, None
    return tuple(p for p in roster if p.identity != identity), removed


def replace_peer(
    roster: Roster,
    identity: NetworkedPublicKey,
    change: Callable[[PeerRecord], PeerRecord]
) -> Tuple[Roster, bool]:
    """
    Apply change to the record for identity.

    Returns (roster, found). A missing peer leaves the roster untouched.
    """
    for index, peer in enumerate(roster):
        if peer.identity == identity:
            changed = change(peer)
            if changed is peer:
                return roster, True
            return roster[:index] + (changed,) + roster[index + 1:], True
    return roster, False


def select_peer(roster: Roster, identity: NetworkedPublicKey) -> Tuple[Roster, bool]:
    """Deselect everyone, then select identity. Returns (roster, found)."""
    if find_peer(roster, identity) is None:
        return roster, False
    if all(p.selected == (p.identity == identity) for p in roster):
        return roster, True
    return tuple(
        replace(p, selected=(p.identity == identity)) if p.selected != (p.identity == identity) else p
        for p in roster
    ), True


def clear_selection(roster: Roster) -> Roster:
    if not any(p.selected for p in roster):
        return roster
    return tuple(replace(p, selected=False) if p.selected else p for p in roster)


def selected_peer(roster: Roster) -> Optional[PeerRecord]:
    for peer in roster:
        if peer.selected:
            return peer
    return None


def identities(roster: Roster) -> Tuple[NetworkedPublicKey, ...]:
    return tuple(p.identity for p in roster)
