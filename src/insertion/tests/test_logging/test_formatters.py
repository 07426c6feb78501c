# src/insertion/tests/test_logging/test_formatters.py
import json
import logging
import sys

from insertion.core.logging.formatters import JsonFormatter, ColorFormatter


def make_record():
    return logging.LogRecord("insertion", logging.INFO, __file__, 10, "hello %s", ("tester",), None)


def test_json_formatter_basic_fields():
    rec = make_record()
    rec.model = "User"
    rec.operation_id = "op-1"
    fmt = JsonFormatter(env="testing", service="svc")
    data = json.loads(fmt.format(rec))

    assert data["message"] == "hello tester"
    assert data["level"] == "INFO"
    assert data["service"] == "svc"
    assert data["env"] == "testing"
    assert "timestamp" in data
    assert data["operation_id"] == "op-1"
    assert data["model"] == "User"
    assert "version" in data
    # LogRecord internals are not repeated as extras
    assert "args" not in data
    assert "msg" not in data


def test_json_formatter_operation_id_defaults_to_dash():
    data = json.loads(JsonFormatter().format(make_record()))
    assert data["operation_id"] == "-"
    assert data["service"] == "insertion"


def test_json_formatter_non_serializable_extra():
    rec = make_record()

    class X:
        def __repr__(self):
            return "<X>"

    rec.obj = X()
    data = json.loads(JsonFormatter(env="dev", service="svc").format(rec))
    assert data["obj"] == "<X>"


def test_json_formatter_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        rec = logging.LogRecord("insertion", logging.ERROR, __file__, 10, "failed", (), sys.exc_info())

    data = json.loads(JsonFormatter().format(rec))
    assert "ValueError: boom" in data["exc_info"]


def test_color_formatter_line_layout():
    rec = make_record()
    rec.operation_id = "abc123"
    out = ColorFormatter().format(rec)

    assert "hello tester" in out
    assert "abc123" in out
    assert "\033[32m" in out  # INFO is green
