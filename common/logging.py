import logging
from contextvars import ContextVar

from opentelemetry import trace
from pythonjsonlogger.json import JsonFormatter


# ContextVar to hold the current request id for the executing context
REQUEST_ID: ContextVar[str | None] = ContextVar("request_id", default=None)


class TraceContextFilter(logging.Filter):
    """Stamp records with the request id and the active span's ids."""

    def filter(self, record):
        record.request_id = REQUEST_ID.get() or getattr(record, "request_id", None)
        ctx = trace.get_current_span().get_span_context()
        if ctx.is_valid:
            record.trace_id = trace.format_trace_id(ctx.trace_id)
            record.span_id = trace.format_span_id(ctx.span_id)
        else:
            record.trace_id = None
            record.span_id = None
        return True


def configure_logging(level: str = "INFO"):
    """Configure root logger to output JSON to stdout."""
    root = logging.getLogger()
    root.setLevel(level)
    # httpx logs every request URL at INFO, query string (and API key) included
    logging.getLogger("httpx").setLevel(logging.WARNING)
    # avoid adding multiple handlers when re-importing
    if any(isinstance(h.formatter, JsonFormatter) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    fmt = '%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s %(trace_id)s %(span_id)s'
    handler.setFormatter(JsonFormatter(fmt))
    handler.addFilter(TraceContextFilter())
    root.addHandler(handler)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that keeps per-call `extra` fields next to its own."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str = "app", request_id: str | None = None) -> logging.LoggerAdapter:
    """Return a LoggerAdapter that injects `request_id` into log records."""
    base = logging.getLogger(name)
    return ContextLoggerAdapter(base, {"request_id": request_id})
