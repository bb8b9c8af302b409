"""
Base Contracts and Shared Types

Foundational value types shared by every layer of the client state.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- Identity is compared by VALUE, never by object reference
- Errors are data: they are returned and logged, not raised
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Tuple
from enum import Enum, auto


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for the reconciliation layer.
    None of these is fatal to the dispatch loop.
    """
    # Dispatch errors
    UNROUTABLE_EVENT = auto()
    MALFORMED_PAYLOAD = auto()
    DUPLICATE_HANDLER = auto()
    HANDLER_FAILED = auto()

    # Domain errors
    PEER_NOT_FOUND = auto()
    SELF_ADDRESSED_MESSAGE = auto()
    OWN_IDENTITY_UNKNOWN = auto()

    # Attachment errors
    RESOLUTION_FAILED = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be collected and inspected.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(code: ErrorCode, message: str, **context: object) -> Error:
        return Error(
            code=code,
            message=message,
            timestamp=datetime.now(timezone.utc),
            context=tuple((key, str(value)) for key, value in context.items())
        )

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )


# =============================================================================
# IDENTITY TYPES (Immutable, value-equal)
# =============================================================================

@dataclass(frozen=True)
class NetworkedPublicKey:
    """
    Identity of a peer: the public half of its RSA key pair.

    Both components are opaque strings. Two keys with the same
    components are the same peer, whichever object carries them.
    """
    n: str
    e: str

    def __post_init__(self):
        if not isinstance(self.n, str) or not isinstance(self.e, str):
            raise ValueError("NetworkedPublicKey components must be strings")

    @staticmethod
    def from_wire(raw: Mapping[str, Any]) -> NetworkedPublicKey:
        """Build an identity from the backend's {n, e} mapping."""
        return NetworkedPublicKey(n=str(raw["n"]), e=str(raw["e"]))

    def to_wire(self) -> dict:
        return {"n": self.n, "e": self.e}

    def short(self) -> str:
        """Abbreviated form for log lines."""
        return f"{self.n[:8]}..{self.e}"
