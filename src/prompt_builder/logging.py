import logging
import json
from opentelemetry import trace

EVENT_LOGGER = "prompt_builder.events"

SENSITIVE_KEYS = {
    "authorization",
    "proxy-authorization",
    "api_key",
    "apikey",
    "api-key",
    "password",
    "secret",
    "token",
    "access_token",
    "refresh_token",
    "cookie",
    "set-cookie",
}


def configure_logging(name: str, level: str = "INFO"):
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format='%(message)s')
    return logger


def _get_trace_fields() -> dict:
    """Current OpenTelemetry span ids, if a span is active."""
    fields = {}
    span = trace.get_current_span()
    ctx = span.get_span_context() if span else None
    if ctx and ctx.is_valid:
        fields["trace_id"] = format(ctx.trace_id, '032x')
        fields["span_id"] = format(ctx.span_id, '016x')
    return fields


def _scrub(obj):
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if str(k).lower() in SENSITIVE_KEYS:
                out[k] = "[REDACTED]"
            else:
                out[k] = _scrub(v)
        return out
    if isinstance(obj, (list, tuple)):
        return [_scrub(i) for i in obj]
    return obj


def log_json(level: int, event: str, **kwargs):
    """Emit one JSON object per line on the event logger."""
    for k, v in _get_trace_fields().items():
        kwargs.setdefault(k, v)
    payload = _scrub({"event": event, **kwargs})
    logging.getLogger(EVENT_LOGGER).log(level, json.dumps(payload, default=str, sort_keys=True))
