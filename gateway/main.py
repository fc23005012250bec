"""Gateway - FastAPI service that validates a CEP and asks the resolver for its temperature.

This service starts or continues the trace for each client request, forwards
valid codes to the resolver with the trace context and request id attached, and
translates the resolver's answer into one of three client-facing outcomes.
"""
import uuid
from urllib.parse import quote
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from common.config import Settings
from common.errors import ValidationError
from common.logging import REQUEST_ID, configure_logging, get_logger
from common.tracing import init_tracer, traced_get
from common.zipcode import validate
from gateway.translator import classify, invalid_zipcode, to_response, upstream_failure

SERVICE_NAME = "gateway"
tracer = trace.get_tracer(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    provider = init_tracer(SERVICE_NAME, app.state.settings)
    try:
        yield
    finally:
        await app.state.http.aclose()
        provider.shutdown()


def create_app(settings: Settings | None = None, client: httpx.AsyncClient | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    app = FastAPI(title="gateway", lifespan=lifespan)
    app.state.settings = settings
    app.state.http = client or httpx.AsyncClient()
    # spans resolve through the global provider, which the lifespan installs later
    FastAPIInstrumentor().instrument_app(app)

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Bind a request id and logger to each request.

        The id comes from the X-Request-ID header when the client sends one, is
        forwarded to the resolver, and is echoed on the response.
        """
        req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = req_id
        request.state.logger = get_logger(SERVICE_NAME, request_id=req_id)
        token = REQUEST_ID.set(req_id)
        try:
            request.state.logger.info("request.start", extra={"path": request.url.path})
            response = await call_next(request)
            request.state.logger.info("request.end", extra={"status_code": response.status_code})
        finally:
            REQUEST_ID.reset(token)
        response.headers["X-Request-ID"] = req_id
        return response

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": SERVICE_NAME}

    @app.post("/temperature")
    async def temperature(request: Request):
        """Validate the posted CEP and return the resolver's temperature report.

        Invalid input is rejected with 422 before the resolver is contacted.
        """
        logger = request.state.logger
        with tracer.start_as_current_span("gateway.handler") as span:
            try:
                payload = await request.json()
                raw = payload.get("cep") if isinstance(payload, dict) else None
                code = validate(raw, strict=settings.strict_zipcode)
            except (ValueError, ValidationError) as exc:
                logger.info("zipcode.invalid", extra={"error": str(exc)})
                return invalid_zipcode()
            span.set_attribute("zipcode", code)

            url = f"{settings.resolver_url}/temperature/{quote(code, safe='')}"
            headers = {"X-Request-ID": request.state.request_id}
            try:
                resp = await traced_get(
                    app.state.http, url, "gateway.resolver_call",
                    timeout=settings.http_timeout, headers=headers,
                )
            except httpx.HTTPError as exc:
                logger.warning("resolver.unreachable", extra={"zipcode": code, "error": repr(exc)})
                outcome = upstream_failure()
            else:
                outcome = classify(resp.status_code, resp.content)
                logger.info(
                    "resolver.response",
                    extra={"zipcode": code, "status_code": resp.status_code, "outcome": outcome.kind.value},
                )
            span.set_attribute("outcome", outcome.kind.value)
            return to_response(outcome)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("gateway.main:app", host="0.0.0.0", port=8080, log_level="info")
