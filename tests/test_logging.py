"""
Tests for JSON log formatting and per-call logging context.
"""
import json
import logging

from app.utils.ids import current_request_id, request_id
from app.utils.logging import JSONFormatter, call_logger


class _Capture(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def _logger_with_capture(name):
    logger = logging.getLogger(name)
    handler = _Capture()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return logger, handler


def test_call_logger_binds_context_and_request_id():
    logger, handler = _logger_with_capture("tests.call_logger")
    token = current_request_id.set("req-abc")
    try:
        call_logger(logger, tool="time_tracker", operation="get_status").info(
            "done", extra={"exit_code": 0}
        )
    finally:
        current_request_id.reset(token)

    record = handler.records[0]
    assert record.tool == "time_tracker"
    assert record.operation == "get_status"
    assert record.request_id == "req-abc"
    assert record.exit_code == 0


def test_json_formatter_includes_context_fields():
    logger, handler = _logger_with_capture("tests.json_formatter")
    call_logger(logger, tool="invoice").warning("stale pdf", extra={"command": "-m src.main"})

    line = json.loads(JSONFormatter().format(handler.records[0]))
    assert line["msg"] == "stale pdf"
    assert line["level"] == "WARNING"
    assert line["tool"] == "invoice"
    assert line["command"] == "-m src.main"
    assert line["service"] == "kb-freelance-api"
    assert line["ts"].endswith("Z")


def test_request_id_prefers_header_then_context():
    assert request_id(" hdr-1 ") == "hdr-1"
    token = current_request_id.set("ctx-1")
    try:
        assert request_id(None) == "ctx-1"
    finally:
        current_request_id.reset(token)
    generated = request_id(None)
    assert len(generated) == 26
