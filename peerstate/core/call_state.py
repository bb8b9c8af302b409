"""
Call State Machine
==================

Per-peer call status, driven one-for-one by inbound call events.

    NONE -> SENT_REQUEST -> WAITING_FOR_ANSWER
         -> PUNCHTHROUGH_IN_PROGRESS -> PUNCHTHROUGH_SUCCESSFUL

REQUEST_FAILED is reachable from any state. The machine never blocks
on a previous failure: the status is always the one implied by the
last call event for that peer.

Peers are independent. No cross-peer call limit is enforced here,
that belongs to the signalling protocol.
"""

from __future__ import annotations
from dataclasses import replace
from types import MappingProxyType
from typing import Mapping, Optional, Type
import logging

from ..contracts.base import Error, ErrorCode, NetworkedPublicKey
from ..contracts.state import CallStatus
from ..contracts import events as ev
from ..store.client_state import ClientState

logger = logging.getLogger(__name__)


TRANSITIONS: Mapping[Type, CallStatus] = MappingProxyType({
    ev.Call: CallStatus.WAITING_FOR_ANSWER,
    ev.CallAccepted: CallStatus.PUNCHTHROUGH_IN_PROGRESS,
    ev.CallDenied: CallStatus.REQUEST_FAILED,
    ev.PunchThroughSuccessful: CallStatus.PUNCHTHROUGH_SUCCESSFUL,
})


def target_status(event: object) -> Optional[CallStatus]:
    """Status implied by event, or None if it is not a call event."""
    return TRANSITIONS.get(type(event))


class CallStateMachine:
    """
    Applies call transitions to the roster.

    GUARANTEES:
    ===========
    1. Only call events touch call_status
    2. A transition on an unknown peer is a reported no-op
    3. Re-applying the current status commits nothing
    """

    def apply(self, state: ClientState, event: object) -> Optional[Error]:
        target = target_status(event)
        if target is None:
            raise TypeError(f"Not a call event: {type(event).__name__}")
        return self._transition(state, event.identity, target, cause=event.TAG)

    def request_call(self, state: ClientState, identity: NetworkedPublicKey) -> Optional[Error]:
        """Local intent: we asked the backend to call identity."""
        return self._transition(state, identity, CallStatus.SENT_REQUEST, cause="request_call")

    def _transition(
        self,
        state: ClientState,
        identity: NetworkedPublicKey,
        target: CallStatus,
        cause: str
    ) -> Optional[Error]:
        def change(peer):
            if peer.call_status is target:
                return peer
            logger.debug("call %s: %s -> %s (%s)", identity.short(), peer.call_status.value, target.value, cause)
            return replace(peer, call_status=target)

        if state.update_peer(identity, change):
            return None

        return Error.create(
            ErrorCode.PEER_NOT_FOUND,
            f"{cause} for a peer that is not in the roster",
            peer=identity.short(),
            target=target.value
        )
