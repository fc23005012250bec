"""OpenTelemetry bootstrap and the traced outbound HTTP call.

Both services export spans the same way and propagate W3C trace context on
every hop, so one client request shows up as a single trace.
"""
import httpx
from opentelemetry import propagate, trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from opentelemetry.trace import SpanKind, Status, StatusCode
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from common.config import Settings

tracer = trace.get_tracer(__name__)


def make_exporter(settings: Settings):
    """Pick the span exporter named by OTEL_EXPORTER; None disables export."""
    if settings.otel_exporter == "otlp":
        return OTLPSpanExporter(endpoint=settings.otlp_endpoint, insecure=True)
    if settings.otel_exporter == "console":
        return ConsoleSpanExporter()
    if settings.otel_exporter == "none":
        return None
    raise ValueError(f"unknown OTEL_EXPORTER: {settings.otel_exporter!r}")


def init_tracer(service_name: str, settings: Settings, install: bool = True) -> TracerProvider:
    provider = TracerProvider(
        resource=Resource.create({SERVICE_NAME: service_name}),
        sampler=ALWAYS_ON,
    )
    exporter = make_exporter(settings)
    if exporter is not None:
        provider.add_span_processor(BatchSpanProcessor(exporter))
    if install:
        propagate.set_global_textmap(TraceContextTextMapPropagator())
        trace.set_tracer_provider(provider)
    return provider


async def traced_get(
    client: httpx.AsyncClient,
    url: str,
    span_name: str,
    timeout: float | None = None,
    headers: dict | None = None,
) -> httpx.Response:
    """GET ``url`` inside a client span, carrying the current trace context.

    The span is ended whether the call succeeds or raises; transport errors
    (timeouts included) propagate to the caller as ``httpx.HTTPError``.
    """
    with tracer.start_as_current_span(
        span_name, kind=SpanKind.CLIENT, record_exception=False, set_status_on_exception=False
    ) as span:
        span.set_attribute("http.request.method", "GET")
        span.set_attribute("url.full", str(httpx.URL(url).copy_remove_param("key")))
        outbound = dict(headers or {})
        propagate.inject(outbound)
        try:
            resp = await client.get(url, headers=outbound, timeout=timeout)
        except httpx.HTTPError as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, type(exc).__name__))
            raise
        span.set_attribute("http.response.status_code", resp.status_code)
        if resp.status_code >= 500:
            span.set_status(Status(StatusCode.ERROR))
        return resp
