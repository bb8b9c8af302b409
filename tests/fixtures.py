"""
Shared Test Fixtures

Explicit identities, envelopes and path converters.
All fixtures are deterministic - no random generation.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
import asyncio

from peerstate.config import ClientConfig
from peerstate.contracts.base import NetworkedPublicKey
from peerstate.contracts.state import AttachmentDescriptor, ChatMessage
from peerstate.engine import ClientStateEngine


# =============================================================================
# FIXED TIMESTAMPS
# =============================================================================

T1 = datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
T2 = datetime(2026, 1, 1, 10, 5, 0, tzinfo=timezone.utc)


# =============================================================================
# IDENTITIES
# =============================================================================

def key(index: int) -> NetworkedPublicKey:
    return NetworkedPublicKey(n=f"modulus-{index:04d}", e="65537")


OWN = key(0)
ALICE = key(1)
BOB = key(2)
CAROL = key(3)


def wire_key(identity: NetworkedPublicKey) -> Dict[str, str]:
    return {"n": identity.n, "e": identity.e}


# =============================================================================
# ENVELOPES
# =============================================================================

def envelope(tag: str, body: Any = None) -> Dict[str, Any]:
    return {"payload": {tag: body}}


def wire_file(file_id: str, name: str = "photo.png", extension: str = "png", length: int = 2048) -> Dict[str, Any]:
    return {
        "file_id": file_id,
        "file_name": name,
        "file_extension": extension,
        "total_length": length,
    }


def chat_envelope(
    message_id: str,
    author: NetworkedPublicKey,
    recipient: NetworkedPublicKey,
    text: str = "hello",
    attachments: Optional[List[Dict[str, Any]]] = None,
    dt: datetime = T1
) -> Dict[str, Any]:
    return envelope("OnChatMessage", {
        "id": message_id,
        "author": wire_key(author),
        "recipient": wire_key(recipient),
        "msg": text,
        "attachments": attachments,
        "dt": dt.isoformat(),
    })


def make_attachment(file_id: str, extension: str = "png") -> AttachmentDescriptor:
    return AttachmentDescriptor(
        file_id=file_id,
        display_name=f"{file_id}.{extension}",
        extension=extension,
        total_length=1024
    )


def make_message(
    message_id: str,
    author: NetworkedPublicKey,
    recipient: NetworkedPublicKey,
    attachments: Iterable[AttachmentDescriptor] = ()
) -> ChatMessage:
    return ChatMessage(
        id=message_id,
        author=author,
        recipient=recipient,
        body=f"body of {message_id}",
        timestamp=T1,
        attachments=tuple(attachments)
    )


# =============================================================================
# PATH CONVERTERS
# =============================================================================

async def asset_converter(path: str) -> str:
    await asyncio.sleep(0)
    return f"asset://localhost/{path}"


class FailingConverter:
    """Async converter that raises for the given file ids."""

    def __init__(self, failing_ids: Iterable[str]):
        self.failing_ids = set(failing_ids)
        self.calls: List[str] = []

    async def __call__(self, path: str) -> str:
        self.calls.append(path)
        await asyncio.sleep(0)
        if any(file_id in path for file_id in self.failing_ids):
            raise OSError(f"cannot convert {path}")
        return f"asset://localhost/{path}"


def make_engine(converter=asset_converter, own: Optional[NetworkedPublicKey] = OWN, **config) -> ClientStateEngine:
    return ClientStateEngine(
        convert_path=converter,
        config=ClientConfig(**config),
        own_identity=own
    )


def run(coro):
    return asyncio.run(coro)
