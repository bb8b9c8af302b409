"""
Event Handlers

One coroutine per inbound tag. build_event_handler wires them into an
EventDispatchEngine.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional, Tuple
import logging

from ..contracts.base import Error, ErrorCode
from ..contracts.state import DebugEntry, DebugLevel
from ..contracts import events as ev
from ..core.attachments import AttachmentResolver
from ..core.call_state import CallStateMachine
from ..core.statistics import replace_transfer_statistics
from ..core.transcript import ChatTranscript
from ..observability import ErrorCollector
from ..store.client_state import ClientState
from .engine import EventDispatchEngine

logger = logging.getLogger(__name__)

# Backend debug lines go to their own logger.
backend_logger = logging.getLogger("peerstate.backend")

_DEBUG_LOG_LEVELS = {
    DebugLevel.INFO: logging.INFO,
    DebugLevel.WARNING: logging.WARNING,
    DebugLevel.ERROR: logging.ERROR,
}


class EventHandlers:
    """Handler coroutines bound to the domain services they drive."""

    def __init__(self, calls: CallStateMachine, transcript: ChatTranscript):
        self._calls = calls
        self._transcript = transcript

    async def on_debug_message(self, state: ClientState, event: ev.DebugMessage) -> None:
        backend_logger.log(_DEBUG_LOG_LEVELS[event.level], "%s: %s", event.level.value, event.message)
        state.append_debug(DebugEntry(
            message=event.message,
            level=event.level,
            received_at=datetime.now(timezone.utc)
        ))

    async def on_announce_response(self, state: ClientState, event: ev.AnnounceResponse) -> None:
        added = state.add_peers(event.identities)
        logger.info("announce: %d peer(s) reported, %d new", len(event.identities), added)

    async def on_peer_disconnected(self, state: ClientState, event: ev.PeerDisconnected) -> Optional[Error]:
        removed = state.remove_peer(event.identity)
        if removed is None:
            return Error.create(
                ErrorCode.PEER_NOT_FOUND,
                "Disconnect for a peer that is not in the roster",
                peer=event.identity.short()
            )
        logger.info("peer %s disconnected%s", event.identity.short(), " (was selected)" if removed.selected else "")
        return None

    async def on_call_event(self, state: ClientState, event: object) -> Optional[Error]:
        return self._calls.apply(state, event)

    async def on_chat_message(self, state: ClientState, event: ev.OnChatMessage) -> Tuple[Error, ...]:
        return await self._transcript.append(state, event.message)

    async def on_chat_message_received(self, state: ClientState, event: ev.OnChatMessageReceived) -> None:
        self._transcript.acknowledge(state, event.message_id)

    async def on_transfer_statistics(self, state: ClientState, event: ev.TransferStatisticsUpdate) -> None:
        replace_transfer_statistics(state, event.snapshot)

    async def on_reserved(self, state: ClientState, event: object) -> None:
        pass


def build_event_handler(
    state: ClientState,
    resolver: AttachmentResolver,
    collector: Optional[ErrorCollector] = None
) -> EventDispatchEngine:
    """Dispatcher with a handler for every tag the client understands."""
    handlers = EventHandlers(CallStateMachine(), ChatTranscript(resolver))
    return (
        EventDispatchEngine(state, collector)
        .add_handler(ev.DebugMessage.TAG, handlers.on_debug_message)
        .add_handler(ev.AnnounceResponse.TAG, handlers.on_announce_response)
        .add_handler(ev.PeerDisconnected.TAG, handlers.on_peer_disconnected)
        .add_handler(ev.CallDenied.TAG, handlers.on_call_event)
        .add_handler(ev.PunchThroughSuccessful.TAG, handlers.on_call_event)
        .add_handler(ev.Call.TAG, handlers.on_call_event)
        .add_handler(ev.CallAccepted.TAG, handlers.on_call_event)
        .add_handler(ev.OnChatMessage.TAG, handlers.on_chat_message)
        .add_handler(ev.OnChatMessageReceived.TAG, handlers.on_chat_message_received)
        .add_handler(ev.AudioNewInputDevices.TAG, handlers.on_reserved)
        .add_handler(ev.AudioNewOutputDevices.TAG, handlers.on_reserved)
        .add_handler(ev.ConnectionStatistics.TAG, handlers.on_reserved)
        .add_handler(ev.TransferStatisticsUpdate.TAG, handlers.on_transfer_statistics)
    )
