"""
Observability Layer

RESPONSIBILITY: logging setup and error reporting
OUTPUTS: log records, ErrorCollector

WHAT THIS LAYER MUST NOT DO:
============================
- Modify client state
- Filter or reinterpret errors (only record them)
- Raise on any reported error
"""

from __future__ import annotations
from collections import deque
from types import MappingProxyType
from typing import Deque, List, Mapping, Optional, Union
import logging

from ..contracts.base import Error, ErrorCode

ROOT_LOGGER = "peerstate"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


# Forward-compatible outcomes log at WARNING, the rest at ERROR.
ERROR_LEVELS: Mapping[ErrorCode, int] = MappingProxyType({
    ErrorCode.UNROUTABLE_EVENT: logging.WARNING,
    ErrorCode.MALFORMED_PAYLOAD: logging.ERROR,
    ErrorCode.DUPLICATE_HANDLER: logging.ERROR,
    ErrorCode.HANDLER_FAILED: logging.ERROR,
    ErrorCode.PEER_NOT_FOUND: logging.ERROR,
    ErrorCode.SELF_ADDRESSED_MESSAGE: logging.ERROR,
    ErrorCode.OWN_IDENTITY_UNKNOWN: logging.ERROR,
    ErrorCode.RESOLUTION_FAILED: logging.WARNING,
})


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """
    Attach a stream handler to the package logger.

    Safe to call more than once: the handler is only added the first time.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    return root


def format_error(error: Error) -> str:
    context = ", ".join(f"{key}={value}" for key, value in error.context)
    if context:
        return f"[{error.code.name}] {error.message} ({context})"
    return f"[{error.code.name}] {error.message}"


def report(error: Error, log: Optional[logging.Logger] = None) -> None:
    (log or logger).log(ERROR_LEVELS.get(error.code, logging.ERROR), format_error(error))


DEFAULT_ERROR_CAPACITY = 1000


class ErrorCollector:
    """
    Bounded record of reported errors, oldest dropped first.

    The dispatcher feeds every error it reports into its collector so
    callers and tests can inspect what went wrong without parsing logs.
    """

    def __init__(self, capacity: int = DEFAULT_ERROR_CAPACITY):
        if capacity < 1:
            raise ValueError("ErrorCollector capacity must be at least 1")
        self._entries: Deque[Error] = deque(maxlen=capacity)
        self._dropped = 0

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    def collect(self, error: Error) -> None:
        if len(self._entries) == self._entries.maxlen:
            self._dropped += 1
        self._entries.append(error)

    def get_entries(self, code: Optional[ErrorCode] = None) -> List[Error]:
        if code is None:
            return list(self._entries)
        return [e for e in self._entries if e.code == code]

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    @property
    def dropped_count(self) -> int:
        return self._dropped


__all__ = [
    'ROOT_LOGGER',
    'LOG_FORMAT',
    'ERROR_LEVELS',
    'configure_logging',
    'format_error',
    'report',
    'DEFAULT_ERROR_CAPACITY',
    'ErrorCollector',
]
