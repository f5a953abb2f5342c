import json
import logging

from brokerlib.observability.logging import JsonTraceFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("profiler.test", logging.INFO, __file__, 1, "Event %s.", ("recorded",), None)
    record.__dict__.update(extra)
    return record


def test_formatter_emits_single_line_json_with_extras():
    line = JsonTraceFormatter("fakebroker-profiler").format(_record(user_id="u1", summary_updated=True))

    payload = json.loads(line)
    assert "\n" not in line
    assert payload["message"] == "Event recorded."
    assert payload["level"] == "INFO"
    assert payload["service"] == "fakebroker-profiler"
    assert payload["user_id"] == "u1"
    assert payload["summary_updated"] is True
    assert payload["trace_id"] is None
    assert "args" not in payload


def test_formatter_stringifies_non_json_extras():
    payload = json.loads(JsonTraceFormatter().format(_record(keys=object())))

    assert payload["keys"].startswith("<object object")
