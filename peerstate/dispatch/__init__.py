"""
Dispatch Layer

Routes decoded inbound events to their handlers.
"""

from .engine import EventDispatchEngine, DispatchOutcome, Handler
from .handlers import EventHandlers, build_event_handler

__all__ = [
    'EventDispatchEngine',
    'DispatchOutcome',
    'Handler',
    'EventHandlers',
    'build_event_handler',
]
