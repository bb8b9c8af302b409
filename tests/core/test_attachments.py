"""
Attachment Resolver Tests

GUARANTEES TESTED:
1. Deterministic relative path under the download root
2. Idempotent: resolved descriptors are not converted again
3. Isolated: one failure never aborts its siblings
"""

import pytest

from peerstate.contracts.base import ErrorCode
from peerstate.contracts.state import ResolutionState
from peerstate.core.attachments import AttachmentResolutionError, AttachmentResolver

from tests.fixtures import FailingConverter, asset_converter, make_attachment, run


class TestRelativePath:

    def test_default_root(self):
        resolver = AttachmentResolver(asset_converter)
        assert resolver.relative_path(make_attachment("f1", "png")) == "downloads/f1.png"

    def test_custom_root(self):
        resolver = AttachmentResolver(asset_converter, "/var/peer/files")
        assert resolver.relative_path(make_attachment("f1", "txt")) == "/var/peer/files/f1.txt"

    def test_no_extension(self):
        resolver = AttachmentResolver(asset_converter)
        assert resolver.relative_path(make_attachment("f1", "")) == "downloads/f1"


class TestResolve:

    def test_resolves_through_converter(self):
        resolver = AttachmentResolver(asset_converter)

        resolved = run(resolver.resolve(make_attachment("f1")))

        assert resolved.resolved_path == "asset://localhost/downloads/f1.png"
        assert resolved.resolution is ResolutionState.RESOLVED

    def test_sync_converter_is_accepted(self):
        resolver = AttachmentResolver(lambda path: f"file://{path}")

        resolved = run(resolver.resolve(make_attachment("f1")))

        assert resolved.resolved_path == "file://downloads/f1.png"

    def test_already_resolved_is_not_converted_again(self):
        converter = FailingConverter(failing_ids=[])
        resolver = AttachmentResolver(converter)
        resolved = run(resolver.resolve(make_attachment("f1")))

        again = run(resolver.resolve(resolved))

        assert again is resolved
        assert len(converter.calls) == 1

    def test_converter_exception_is_wrapped(self):
        resolver = AttachmentResolver(FailingConverter(failing_ids=["f1"]))

        with pytest.raises(AttachmentResolutionError) as info:
            run(resolver.resolve(make_attachment("f1")))
        assert info.value.file_id == "f1"
        assert "OSError" in info.value.reason

    @pytest.mark.parametrize("bad", ["", None, 42])
    def test_unusable_result_is_a_failure(self, bad):
        resolver = AttachmentResolver(lambda path: bad)

        with pytest.raises(AttachmentResolutionError):
            run(resolver.resolve(make_attachment("f1")))


class TestResolveAll:

    def test_empty(self):
        resolver = AttachmentResolver(asset_converter)
        assert run(resolver.resolve_all([])) == ((), ())

    def test_failure_is_isolated_and_ordered(self):
        resolver = AttachmentResolver(FailingConverter(failing_ids=["bad"]))
        descriptors = [make_attachment("a"), make_attachment("bad"), make_attachment("c")]

        resolved, errors = run(resolver.resolve_all(descriptors))

        assert [d.file_id for d in resolved] == ["a", "bad", "c"]
        assert [d.resolution for d in resolved] == [
            ResolutionState.RESOLVED, ResolutionState.FAILED, ResolutionState.RESOLVED
        ]
        assert len(errors) == 1
        assert errors[0].code is ErrorCode.RESOLUTION_FAILED
        assert ("file_id", "bad") in errors[0].context

    def test_unexpected_exception_propagates(self):
        class Broken(AttachmentResolver):
            async def resolve(self, descriptor):
                raise RuntimeError("not a resolution failure")

        with pytest.raises(RuntimeError):
            run(Broken(asset_converter).resolve_all([make_attachment("a")]))
