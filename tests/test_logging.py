"""Tests for structured logging."""

import json
import logging
import sys

from assetflow.core.logging import StructuredLogFormatter, request_id_context


def make_record(msg="hello", level=logging.INFO, extra=None, exc_info=None):
    logger = logging.getLogger("assetflow.test")
    return logger.makeRecord(
        "assetflow.test", level, __file__, 10, msg, (), exc_info, func="fn", extra=extra
    )


def test_formatter_emits_single_line_json():
    output = StructuredLogFormatter().format(make_record(extra={"original_url": "https://x/a.jpg"}))

    assert "\n" not in output
    entry = json.loads(output)
    assert entry["message"] == "hello"
    assert entry["severity"] == "INFO"
    assert entry["logger"] == "assetflow.test"
    assert entry["function"] == "fn"
    assert entry["original_url"] == "https://x/a.jpg"
    assert entry["timestamp"].endswith("Z")


def test_formatter_includes_request_id_from_context():
    token = request_id_context.set("req-42")
    try:
        entry = json.loads(StructuredLogFormatter().format(make_record()))
    finally:
        request_id_context.reset(token)

    assert entry["request_id"] == "req-42"


def test_formatter_without_request_id():
    entry = json.loads(StructuredLogFormatter().format(make_record()))

    assert "request_id" not in entry


def test_formatter_includes_exception():
    try:
        raise ValueError("bad crop")
    except ValueError:
        record = make_record(level=logging.ERROR, exc_info=sys.exc_info())

    entry = json.loads(StructuredLogFormatter().format(record))

    assert entry["severity"] == "ERROR"
    assert entry["exception_type"] == "ValueError"
    assert entry["exception_message"] == "bad crop"
    assert "Traceback" in entry["exception"]
