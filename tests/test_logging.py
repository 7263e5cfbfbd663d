import json
import logging

from opentelemetry import trace
from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags

from prompt_builder.logging import EVENT_LOGGER, configure_logging, log_json


def get_last_log_json(caplog):
    for rec in reversed(caplog.records):
        try:
            return json.loads(rec.getMessage())
        except Exception:
            continue
    return {}


def test_log_json_emits_event_and_fields(caplog):
    caplog.set_level(logging.INFO, logger=EVENT_LOGGER)
    configure_logging("test")
    log_json(logging.INFO, "mutation.start", operation="create_category", entity_id="temp-1")
    payload = get_last_log_json(caplog)
    assert payload["event"] == "mutation.start"
    assert payload["operation"] == "create_category"
    assert "trace_id" not in payload


def test_sensitive_keys_are_redacted(caplog):
    caplog.set_level(logging.INFO, logger=EVENT_LOGGER)
    log_json(logging.INFO, "gateway.retry", authorization="Bearer abc", nested={"api_key": "k", "path": "/x"})
    payload = get_last_log_json(caplog)
    assert payload["authorization"] == "[REDACTED]"
    assert payload["nested"] == {"api_key": "[REDACTED]", "path": "/x"}


def test_active_span_ids_are_attached(caplog):
    caplog.set_level(logging.INFO, logger=EVENT_LOGGER)
    ctx = SpanContext(trace_id=0x1234, span_id=0x42, is_remote=False, trace_flags=TraceFlags(1))
    with trace.use_span(NonRecordingSpan(ctx)):
        log_json(logging.INFO, "fetch.failed")
    payload = get_last_log_json(caplog)
    assert payload["trace_id"] == format(0x1234, "032x")
    assert payload["span_id"] == format(0x42, "016x")
