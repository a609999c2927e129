"""Tests for the structured JSON log format."""

import json
import sys
import logging

from diagnostic.logging_config import (
    StructuredJsonFormatter, get_logger, request_id_var, generate_request_id
)


def make_record(logger, message, level=logging.INFO, exc_info=None, **extra):
    record = logger.makeRecord(logger.name, level, __file__, 1, message, (), exc_info, extra=extra)
    return json.loads(StructuredJsonFormatter().format(record))


class TestStructuredJsonFormatter:
    def test_entry_fields(self):
        logger = get_logger("adaptive")
        token = request_id_var.set("req-1")
        try:
            entry = make_record(logger, "Served question",
                                context={"attempt_id": "a1"},
                                extra_data={"duration_ms": 1.5},
                                channel="adaptive")
        finally:
            request_id_var.reset(token)

        assert entry["level"] == "INFO"
        assert entry["message"] == "Served question"
        assert entry["channel"] == "adaptive"
        assert entry["context"] == {"request_id": "req-1", "attempt_id": "a1"}
        assert entry["extra"] == {"duration_ms": 1.5}
        assert entry["timestamp"].endswith("Z")

    def test_channel_from_logger_name(self):
        entry = make_record(get_logger("scoring"), "Scored")
        assert entry["channel"] == "scoring"
        assert entry["context"] == {"request_id": ""}

    def test_exception_attached(self):
        try:
            raise ValueError("boom")
        except ValueError:
            entry = make_record(get_logger("db"), "Failed", level=logging.ERROR, exc_info=sys.exc_info())
        assert "ValueError: boom" in entry["exception"]

    def test_request_ids_are_unique(self):
        assert generate_request_id() != generate_request_id()
