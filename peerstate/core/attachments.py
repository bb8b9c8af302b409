"""
Attachment Resolver

Maps a backend file descriptor to a locally addressable path.

    <download_root>/<file_id>.<extension>  --(host path converter)-->  uri

The converter is supplied by the host runtime and may be a plain
function or a coroutine function.

GUARANTEES:
===========
1. Deterministic: same descriptor + same root -> same relative path
2. Idempotent: an already resolved descriptor is returned unchanged
3. Isolated: one failing attachment never aborts its siblings
"""

from __future__ import annotations
from pathlib import PurePosixPath
from typing import Awaitable, Callable, Iterable, List, Tuple, Union
import asyncio
import inspect
import logging

from ..contracts.base import Error, ErrorCode
from ..contracts.state import AttachmentDescriptor

logger = logging.getLogger(__name__)

PathConverter = Callable[[str], Union[str, Awaitable[str]]]

DEFAULT_DOWNLOAD_ROOT = "downloads"


class AttachmentResolutionError(Exception):
    """The path converter failed for a single attachment."""

    def __init__(self, file_id: str, reason: str):
        super().__init__(f"Could not resolve attachment {file_id}: {reason}")
        self.file_id = file_id
        self.reason = reason


class AttachmentResolver:

    def __init__(self, convert: PathConverter, download_root: str = DEFAULT_DOWNLOAD_ROOT):
        self._convert = convert
        self._download_root = PurePosixPath(download_root)

    @property
    def download_root(self) -> str:
        return str(self._download_root)

    def relative_path(self, descriptor: AttachmentDescriptor) -> str:
        return str(self._download_root / descriptor.file_name)

    async def resolve(self, descriptor: AttachmentDescriptor) -> AttachmentDescriptor:
        """
        Resolve one descriptor.

        Raises AttachmentResolutionError if the converter raises or
        returns something that is not a non-empty string.
        """
        if descriptor.resolved_path is not None:
            return descriptor

        relative = self.relative_path(descriptor)
        try:
            uri = self._convert(relative)
            if inspect.isawaitable(uri):
                uri = await uri
        except Exception as e:
            raise AttachmentResolutionError(descriptor.file_id, f"{type(e).__name__}: {e}") from e

        if not isinstance(uri, str) or not uri:
            raise AttachmentResolutionError(descriptor.file_id, f"converter returned {uri!r}")

        logger.debug("resolved attachment %s -> %s", descriptor.file_id, uri)
        return descriptor.resolved(uri)

    async def resolve_all(
        self,
        descriptors: Iterable[AttachmentDescriptor]
    ) -> Tuple[Tuple[AttachmentDescriptor, ...], Tuple[Error, ...]]:
        """
        Resolve every descriptor concurrently and collect failures.

        Failed descriptors come back with resolution_error set, in their
        original position, alongside one RESOLUTION_FAILED error each.
        """
        descriptors = tuple(descriptors)
        if not descriptors:
            return (), ()

        results = await asyncio.gather(
            *(self.resolve(d) for d in descriptors),
            return_exceptions=True
        )

        resolved: List[AttachmentDescriptor] = []
        errors: List[Error] = []
        for descriptor, result in zip(descriptors, results):
            if isinstance(result, AttachmentResolutionError):
                resolved.append(descriptor.failed(result.reason))
                errors.append(Error.create(
                    ErrorCode.RESOLUTION_FAILED,
                    str(result),
                    file_id=descriptor.file_id,
                    path=self.relative_path(descriptor)
                ))
            elif isinstance(result, BaseException):
                raise result
            else:
                resolved.append(result)

        return tuple(resolved), tuple(errors)
