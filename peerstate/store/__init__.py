"""
State Layer

Observable, single-owner client model.

Modules:
- container: ReactiveContainer (get / set / update / subscribe)
- roster: pure roster functions keyed by identity equality
- client_state: ClientState, the owner of every container
"""

from .container import ReactiveContainer, DerivedValue
from .client_state import ClientState

__all__ = [
    'ReactiveContainer',
    'DerivedValue',
    'ClientState',
]
