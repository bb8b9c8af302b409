"""
Chat Transcript Synchronization

Appends inbound chat messages to the transcript of the other party and
applies delivery acknowledgements.

TWO-PHASE APPEND:
=================
1. Resolve every attachment (concurrently, collecting failures)
2. Commit the fully built entry in one roster update

A subscriber to the roster therefore never observes an attachment in
the PENDING resolution state.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Optional, Tuple
import logging

from ..contracts.base import Error, ErrorCode, NetworkedPublicKey
from ..contracts.state import ChatMessage, DeliveryStatus, PeerRecord
from ..store.client_state import ClientState
from ..store import roster as rs
from .attachments import AttachmentResolver

logger = logging.getLogger(__name__)


def other_party(
    message: ChatMessage,
    own_identity: NetworkedPublicKey
) -> Optional[NetworkedPublicKey]:
    """The participant that is not us, or None for a self-addressed message."""
    if message.author != own_identity:
        return message.author
    if message.recipient != own_identity:
        return message.recipient
    return None


def _acknowledge(roster: rs.Roster, message_id: str) -> rs.Roster:
    for p_index, peer in enumerate(roster):
        for m_index, message in enumerate(peer.messages):
            if message.id != message_id:
                continue
            if message.delivered:
                return roster
            messages = peer.messages[:m_index] + (message.mark_delivered(),) + peer.messages[m_index + 1:]
            return roster[:p_index] + (replace(peer, messages=messages),) + roster[p_index + 1:]
    return roster


class ChatTranscript:

    def __init__(self, resolver: AttachmentResolver):
        self._resolver = resolver

    async def append(self, state: ClientState, message: ChatMessage) -> Tuple[Error, ...]:
        """
        Append a received message (or the echo of a sent one).

        Returns the errors encountered. Attachment failures do not stop
        the append; every other error means nothing was committed.
        """
        own = state.own_identity.get()
        if own is None:
            return (Error.create(
                ErrorCode.OWN_IDENTITY_UNKNOWN,
                "Chat message arrived before the local identity was set",
                message_id=message.id
            ),)

        peer_identity = other_party(message, own)
        if peer_identity is None:
            return (Error.create(
                ErrorCode.SELF_ADDRESSED_MESSAGE,
                "Tried sending message to yourself",
                message_id=message.id
            ),)

        peer = state.get_peer(peer_identity)
        if peer is None:
            return (self._peer_missing(message, peer_identity),)
        if peer.has_message(message.id):
            logger.debug("message %s already in transcript of %s", message.id, peer_identity.short())
            return ()

        # Phase 1: resolve
        attachments, errors = await self._resolver.resolve_all(message.attachments)
        entry = replace(
            message,
            attachments=attachments,
            delivery=DeliveryStatus.PENDING,
            own=(message.author == own)
        )

        # Phase 2: commit
        def add(record: PeerRecord) -> PeerRecord:
            if record.has_message(entry.id):
                return record
            return replace(record, messages=record.messages + (entry,))

        if not state.update_peer(peer_identity, add):
            return errors + (self._peer_missing(message, peer_identity),)
        return errors

    def acknowledge(self, state: ClientState, message_id: str) -> bool:
        """
        Mark message_id delivered. Returns True if a message changed.

        An unknown id is not an error: the ack may overtake the message.
        """
        changed = [False]

        def transform(roster: rs.Roster) -> rs.Roster:
            updated = _acknowledge(roster, message_id)
            changed[0] = updated is not roster
            return updated

        state.peers.update(transform)
        if not changed[0]:
            logger.debug("delivery ack for %s changed nothing", message_id)
        return changed[0]

    @staticmethod
    def _peer_missing(message: ChatMessage, identity: NetworkedPublicKey) -> Error:
        return Error.create(
            ErrorCode.PEER_NOT_FOUND,
            "Chat message for a peer that is not in the roster",
            message_id=message.id,
            peer=identity.short()
        )
