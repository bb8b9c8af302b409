"""
Observability Tests

Errors are recorded and logged at the level mapped from their code,
and logging setup is idempotent.
"""

import logging

import pytest

from peerstate.contracts.base import Error, ErrorCode
from peerstate.observability import (
    ERROR_LEVELS, ROOT_LOGGER, ErrorCollector, configure_logging, format_error, report
)


class TestFormatting:

    def test_with_context(self):
        error = Error.create(ErrorCode.PEER_NOT_FOUND, "gone", peer="abc", tag="Call")
        assert format_error(error) == "[PEER_NOT_FOUND] gone (peer=abc, tag=Call)"

    def test_without_context(self):
        assert format_error(Error.create(ErrorCode.HANDLER_FAILED, "x")) == "[HANDLER_FAILED] x"

    def test_every_code_has_a_level(self):
        assert set(ERROR_LEVELS) == set(ErrorCode)


class TestReport:

    def test_unroutable_logs_at_warning(self, caplog):
        log = logging.getLogger("peerstate.test")

        with caplog.at_level(logging.DEBUG, logger="peerstate"):
            report(Error.create(ErrorCode.UNROUTABLE_EVENT, "no handler"), log)

        [record] = caplog.records
        assert record.levelno == logging.WARNING
        assert record.name == "peerstate.test"

    def test_domain_error_logs_at_error(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="peerstate"):
            report(Error.create(ErrorCode.SELF_ADDRESSED_MESSAGE, "to self"))

        assert caplog.records[0].levelno == logging.ERROR


class TestCollector:

    def test_filter_by_code(self):
        collector = ErrorCollector()
        collector.collect(Error.create(ErrorCode.PEER_NOT_FOUND, "a"))
        collector.collect(Error.create(ErrorCode.MALFORMED_PAYLOAD, "b"))

        assert collector.entry_count == 2
        assert [e.message for e in collector.get_entries(ErrorCode.MALFORMED_PAYLOAD)] == ["b"]

    def test_oldest_entries_are_dropped(self):
        collector = ErrorCollector(capacity=2)
        for message in ("a", "b", "c"):
            collector.collect(Error.create(ErrorCode.UNROUTABLE_EVENT, message))

        assert [e.message for e in collector.get_entries()] == ["b", "c"]
        assert collector.capacity == 2
        assert collector.dropped_count == 1

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            ErrorCollector(capacity=0)


class TestConfigureLogging:

    def test_single_handler(self):
        root = logging.getLogger(ROOT_LOGGER)
        saved = list(root.handlers)
        for handler in saved:
            root.removeHandler(handler)
        try:
            configure_logging("DEBUG")
            configure_logging("DEBUG")

            assert len(root.handlers) == 1
            assert root.level == logging.DEBUG
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
            for handler in saved:
                root.addHandler(handler)
            root.setLevel(logging.NOTSET)
