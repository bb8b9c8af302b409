"""
Property Tests for Client State Contracts
Verifies roster, call and transcript invariants over generated event streams.
"""

from hypothesis import given, settings, strategies as st
from hypothesis.strategies import composite

from peerstate.contracts import events as ev
from peerstate.contracts.base import NetworkedPublicKey
from peerstate.contracts.state import CallStatus
from peerstate.core.call_state import TRANSITIONS
from peerstate.store import roster as rs

from tests.fixtures import OWN, chat_envelope, envelope, make_engine, run, wire_key

# =============================================================================
# STRATEGIES (Generators)
# =============================================================================

components = st.text(alphabet="0123456789abcdef", min_size=1, max_size=12)


@composite
def identities(draw):
    """Generates peer identities distinct from OWN."""
    key = NetworkedPublicKey(n=draw(components), e=draw(st.sampled_from(["3", "17", "65537"])))
    return key if key != OWN else NetworkedPublicKey(n=key.n + "f", e=key.e)


identity_pools = st.lists(identities(), min_size=1, max_size=6, unique=True)

CALL_EVENTS = tuple(TRANSITIONS)


@composite
def call_streams(draw):
    """A roster plus a sequence of (event class, peer) call events over it."""
    pool = draw(identity_pools)
    steps = draw(st.lists(st.tuples(st.sampled_from(CALL_EVENTS), st.sampled_from(pool)), max_size=20))
    return pool, steps


def announce(pool):
    return envelope("AnnounceResponse", [wire_key(i) for i in pool])


# =============================================================================
# ROSTER
# =============================================================================

@given(identity_pools, identity_pools)
def test_announce_is_idempotent(first, second):
    once = rs.upsert_peers(rs.upsert_peers(rs.EMPTY_ROSTER, first), second)
    twice = rs.upsert_peers(once, second)

    assert twice is once
    assert len(set(rs.identities(once))) == len(once)


@given(identity_pools)
def test_identity_lookup_by_value(pool):
    roster = rs.upsert_peers(rs.EMPTY_ROSTER, pool)

    for identity in pool:
        copy = NetworkedPublicKey(n=str(identity.n), e=str(identity.e))
        assert rs.find_peer(roster, copy).identity == identity


@given(identity_pools, st.data())
def test_at_most_one_selected(pool, data):
    roster = rs.upsert_peers(rs.EMPTY_ROSTER, pool)
    for identity in data.draw(st.lists(st.sampled_from(pool), max_size=10)):
        roster, _ = rs.select_peer(roster, identity)

    assert sum(p.selected for p in roster) <= 1


# =============================================================================
# CALLS
# =============================================================================

@settings(max_examples=50, deadline=None)
@given(call_streams())
def test_last_call_event_wins(stream):
    pool, steps = stream
    engine = make_engine()

    async def scenario():
        await engine.handle(announce(pool))
        for event_cls, identity in steps:
            await engine.handle(envelope(event_cls.TAG, wire_key(identity)))

    run(scenario())

    expected = {identity: CallStatus.NONE for identity in pool}
    for event_cls, identity in steps:
        expected[identity] = TRANSITIONS[event_cls]
    for identity, status in expected.items():
        assert engine.state.get_peer(identity).call_status is status


@settings(max_examples=50, deadline=None)
@given(identity_pools, st.lists(st.text(min_size=1, max_size=8), max_size=5))
def test_non_call_events_leave_call_status(pool, message_ids):
    engine = make_engine()
    target = pool[0]

    async def scenario():
        await engine.handle(announce(pool))
        await engine.handle(envelope("Call", wire_key(target)))
        for message_id in message_ids:
            await engine.handle(chat_envelope(message_id, target, OWN))
            await engine.handle(envelope("OnChatMessageReceived", message_id))
        await engine.handle(envelope("DebugMessage", ["tick", "Info"]))
        await engine.handle(announce(pool))

    run(scenario())

    assert engine.state.get_peer(target).call_status is CallStatus.WAITING_FOR_ANSWER


# =============================================================================
# TRANSCRIPT
# =============================================================================

@settings(max_examples=50, deadline=None)
@given(identity_pools, st.lists(st.sampled_from(["a", "b", "c", "d"]), max_size=12))
def test_message_ids_unique_per_transcript(pool, message_ids):
    engine = make_engine()
    peer = pool[0]

    async def scenario():
        await engine.handle(announce(pool))
        for message_id in message_ids:
            await engine.handle(chat_envelope(message_id, peer, OWN))

    run(scenario())

    stored = [m.id for m in engine.state.get_peer(peer).messages]
    assert stored == list(dict.fromkeys(message_ids))
