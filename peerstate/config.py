"""
Client Configuration

Explicit, immutable settings for the reconciliation layer. Defaults
match the backend's own layout (downloads/ under the working directory).

Environment overrides:
    PEERSTATE_DOWNLOAD_DIR        download root handed to the path converter
    PEERSTATE_DEBUG_LOG_CAPACITY  number of backend debug lines kept
    PEERSTATE_ERROR_LOG_CAPACITY  number of reported errors kept
    PEERSTATE_LOG_LEVEL           level for configure_logging
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Optional
import logging
import os

from .core.attachments import DEFAULT_DOWNLOAD_ROOT
from .observability import DEFAULT_ERROR_CAPACITY

DEFAULT_DEBUG_LOG_CAPACITY = 100


@dataclass(frozen=True)
class ClientConfig:
    download_root: str = DEFAULT_DOWNLOAD_ROOT
    debug_log_capacity: int = DEFAULT_DEBUG_LOG_CAPACITY
    error_log_capacity: int = DEFAULT_ERROR_CAPACITY
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.download_root:
            raise ValueError("download_root must be a non-empty path")
        if self.debug_log_capacity < 1:
            raise ValueError("debug_log_capacity must be at least 1")
        if self.error_log_capacity < 1:
            raise ValueError("error_log_capacity must be at least 1")
        level = self.log_level.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {self.log_level}")
        object.__setattr__(self, 'log_level', level)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> ClientConfig:
        env = os.environ if environ is None else environ
        capacity = env.get("PEERSTATE_DEBUG_LOG_CAPACITY")
        error_capacity = env.get("PEERSTATE_ERROR_LOG_CAPACITY")
        return cls(
            download_root=env.get("PEERSTATE_DOWNLOAD_DIR", DEFAULT_DOWNLOAD_ROOT),
            debug_log_capacity=int(capacity) if capacity else DEFAULT_DEBUG_LOG_CAPACITY,
            error_log_capacity=int(error_capacity) if error_capacity else DEFAULT_ERROR_CAPACITY,
            log_level=env.get("PEERSTATE_LOG_LEVEL", "INFO")
        )
