import json
import logging
import sys

from services.logging import JsonFormatter, setup_logging


def _json_handlers():
    return [h for h in logging.getLogger().handlers if isinstance(h.formatter, JsonFormatter)]


def test_setup_logging_is_idempotent():
    setup_logging()
    setup_logging("DEBUG")
    assert len(_json_handlers()) == 1
    assert logging.getLogger().level == logging.DEBUG


def test_unknown_level_falls_back_to_info():
    setup_logging("nonsense")
    assert logging.getLogger().level == logging.INFO


def test_json_formatter_payload():
    record = logging.LogRecord("processing.matcher", logging.WARNING, __file__, 10, "hello %s", ("world",), None)
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "hello world"
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "processing.matcher"
    assert "timestamp" in payload
    assert "exc_info" not in payload


def test_json_formatter_includes_exception():
    try:
        raise ValueError("broken")
    except ValueError:
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
    payload = json.loads(JsonFormatter().format(record))
    assert "ValueError: broken" in payload["exc_info"]
