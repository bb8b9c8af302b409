"""
Event Dispatch Engine

Routes one inbound event to exactly one registered handler.

DISPATCH CONTRACT:
==================
1. At most one handler per tag; the first registration wins
2. Raw envelopes are decoded to typed events before routing
3. Unknown tags, malformed payloads and handler failures are reported
   in the DispatchOutcome and logged - handle() never raises for them
4. Events are processed one at a time, in arrival order; a handler is
   awaited to completion before the next event is accepted
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union
import asyncio
import logging

from ..contracts.base import Error, ErrorCode
from ..contracts.events import ClientEvent, UnknownEvent, event_tag
from ..contracts.wire import MalformedEventError, decode_envelope
from ..observability import ErrorCollector, report
from ..store.client_state import ClientState

logger = logging.getLogger(__name__)

HandlerResult = Union[None, Error, Iterable[Error]]
Handler = Callable[[ClientState, Any], Awaitable[HandlerResult]]


@dataclass(frozen=True)
class DispatchOutcome:
    """What happened to one event."""
    tag: Optional[str]
    handled: bool
    errors: Tuple[Error, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.handled and not self.errors


class EventDispatchEngine:
    """
    Tag-keyed dispatcher over a single ClientState.

    Handlers receive the state and the typed event. They return None,
    an Error, or an iterable of Errors.
    """

    def __init__(self, state: ClientState, collector: Optional[ErrorCollector] = None):
        self._state = state
        self._collector = collector or ErrorCollector()
        self._handlers: Dict[str, Handler] = {}
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def collector(self) -> ErrorCollector:
        return self._collector

    @property
    def tags(self) -> Tuple[str, ...]:
        return tuple(self._handlers)

    def has_handler(self, tag: str) -> bool:
        return tag in self._handlers

    def add_handler(self, tag: str, handler: Handler) -> EventDispatchEngine:
        """
        Bind handler to tag. A second binding for the same tag is
        reported and ignored. Returns self for chaining.
        """
        if tag in self._handlers:
            self._report(Error.create(
                ErrorCode.DUPLICATE_HANDLER,
                "A handler for this event has already been registered",
                tag=tag
            ))
            return self
        self._handlers[tag] = handler
        return self

    async def handle(self, event: Union[ClientEvent, Mapping[str, Any]]) -> DispatchOutcome:
        async with self._serial():
            return await self._dispatch(event)

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _serial(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def _dispatch(self, event: Union[ClientEvent, Mapping[str, Any]]) -> DispatchOutcome:
        if isinstance(event, Mapping) or not hasattr(event, 'TAG'):
            try:
                event = decode_envelope(event)
            except MalformedEventError as e:
                error = Error.create(ErrorCode.MALFORMED_PAYLOAD, e.reason, tag=e.tag)
                self._report(error)
                return DispatchOutcome(tag=e.tag, handled=False, errors=(error,))

        tag = event_tag(event)
        handler = self._handlers.get(tag)
        if handler is None:
            error = Error.create(
                ErrorCode.UNROUTABLE_EVENT,
                "Failed to find a handler for the given event",
                tag=tag,
                known=not isinstance(event, UnknownEvent)
            )
            self._report(error)
            return DispatchOutcome(tag=tag, handled=False, errors=(error,))

        try:
            result = await handler(self._state, event)
        except Exception as e:
            logger.exception("handler for %s failed", tag)
            error = Error.create(ErrorCode.HANDLER_FAILED, f"{type(e).__name__}: {e}", tag=tag)
            self._collector.collect(error)
            return DispatchOutcome(tag=tag, handled=False, errors=(error,))

        errors = tuple(e.with_context("tag", tag) for e in self._normalize(result))
        for error in errors:
            self._report(error)
        return DispatchOutcome(tag=tag, handled=True, errors=errors)

    @staticmethod
    def _normalize(result: HandlerResult) -> Tuple[Error, ...]:
        if result is None:
            return ()
        if isinstance(result, Error):
            return (result,)
        return tuple(result)

    def _report(self, error: Error) -> None:
        self._collector.collect(error)
        report(error, logger)
