"""Tests for request correlation IDs on log records."""

import logging

from booking_engine.logging_context import (
    RequestIdFilter,
    get_request_id,
    get_request_logger,
    new_request_id,
    set_request_id,
)


class TestRequestId:
    def test_set_and_get(self):
        set_request_id("BKREQ-test")
        assert get_request_id() == "BKREQ-test"

    def test_new_id_has_prefix(self):
        request_id = new_request_id("RECUR")
        assert request_id.startswith("RECUR-")
        assert get_request_id() == request_id

    def test_filter_injects_id(self):
        set_request_id("BKREQ-filter")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert RequestIdFilter().filter(record)
        assert record.request_id == "BKREQ-filter"

    def test_filter_attached_once(self):
        logger = get_request_logger("booking_engine.test")
        get_request_logger("booking_engine.test")
        assert sum(isinstance(f, RequestIdFilter) for f in logger.filters) == 1
