"""
Engine Orchestration Module

Single entry point wiring configuration, state owner, attachment
resolver and dispatcher together for a host runtime.

LAYER FLOW:
===========
1. Host delivers a raw envelope (one at a time)
2. Dispatch decodes it and routes it to one handler
3. Handlers reconcile the ClientState through its containers
4. Subscribers (the renderer) are notified by the containers

The host supplies the path converter and, once known, the local
identity. Nothing else crosses the boundary.
"""

from __future__ import annotations
from typing import Any, AsyncIterable, Mapping, Optional, Union
import logging

from .config import ClientConfig
from .contracts.base import Error, ErrorCode, NetworkedPublicKey
from .core.attachments import AttachmentResolver, PathConverter
from .core.call_state import CallStateMachine
from .dispatch.engine import DispatchOutcome, EventDispatchEngine
from .dispatch.handlers import build_event_handler
from .observability import ErrorCollector, configure_logging, report
from .store.client_state import ClientState

logger = logging.getLogger(__name__)


class ClientStateEngine:
    """
    Unified client-side reconciliation engine.

    Owns exactly one ClientState. Events are processed serially; run()
    drains a host channel until it is exhausted.
    """

    def __init__(
        self,
        convert_path: PathConverter,
        config: Optional[ClientConfig] = None,
        own_identity: Optional[NetworkedPublicKey] = None,
        setup_logging: bool = False
    ):
        self._config = config or ClientConfig()
        if setup_logging:
            configure_logging(self._config.log_level)

        self._state = ClientState(
            own_identity=own_identity,
            debug_log_capacity=self._config.debug_log_capacity
        )
        self._collector = ErrorCollector(self._config.error_log_capacity)
        self._resolver = AttachmentResolver(convert_path, self._config.download_root)
        self._calls = CallStateMachine()
        self._dispatcher = build_event_handler(self._state, self._resolver, self._collector)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def dispatcher(self) -> EventDispatchEngine:
        return self._dispatcher

    @property
    def errors(self) -> ErrorCollector:
        return self._collector

    # =========================================================================
    # INBOUND
    # =========================================================================

    async def handle(self, envelope: Union[Mapping[str, Any], object]) -> DispatchOutcome:
        return await self._dispatcher.handle(envelope)

    async def run(self, source: AsyncIterable[Any]) -> int:
        """Process every envelope from source in order. Returns the count."""
        processed = 0
        async for envelope in source:
            await self._dispatcher.handle(envelope)
            processed += 1
        logger.info("event source exhausted after %d event(s)", processed)
        return processed

    # =========================================================================
    # LOCAL INTENTS
    # =========================================================================

    def set_own_identity(self, identity: Union[NetworkedPublicKey, Mapping[str, Any]]) -> None:
        if not isinstance(identity, NetworkedPublicKey):
            identity = NetworkedPublicKey.from_wire(identity)
        self._state.own_identity.set(identity)

    def select_peer(self, identity: NetworkedPublicKey) -> Optional[Error]:
        if self._state.select_peer(identity):
            return None
        error = Error.create(
            ErrorCode.PEER_NOT_FOUND,
            "Cannot select a peer that is not in the roster",
            peer=identity.short()
        )
        self._collector.collect(error)
        report(error, logger)
        return error

    def clear_selection(self) -> None:
        self._state.clear_selection()

    def request_call(self, identity: NetworkedPublicKey) -> Optional[Error]:
        """Record that we asked the backend to call identity."""
        error = self._calls.request_call(self._state, identity)
        if error is not None:
            self._collector.collect(error)
            report(error, logger)
        return error
