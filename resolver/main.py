"""Resolver - FastAPI service that turns a CEP into a city and its current temperature.

It geocodes the code through ViaCEP, looks up the temperature through WeatherAPI,
and answers with the reading in Celsius, Fahrenheit and Kelvin. The incoming trace
context is continued on both outbound calls.
"""
import uuid
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from common.config import Settings
from common.errors import TemperatureServiceError
from common.logging import REQUEST_ID, configure_logging, get_logger
from common.temperature import TemperatureReport
from common.tracing import init_tracer
from common.zipcode import validate
from resolver.providers import lookup_temperature, resolve_location

SERVICE_NAME = "resolver"
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
    app = FastAPI(title="resolver", lifespan=lifespan)
    app.state.settings = settings
    app.state.http = client or httpx.AsyncClient()
    # spans resolve through the global provider, which the lifespan installs later
    FastAPIInstrumentor().instrument_app(app)

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
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

    @app.exception_handler(TemperatureServiceError)
    async def service_error(request: Request, exc: TemperatureServiceError):
        request.state.logger.info(
            "temperature.failed",
            extra={"kind": type(exc).__name__, "status_code": exc.status_code, "detail": exc.detail},
        )
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": SERVICE_NAME}

    @app.get("/temperature/{zipcode}")
    async def temperature(zipcode: str, request: Request):
        """Resolve a CEP to its city's current temperature in three scales."""
        with tracer.start_as_current_span("resolver.handler") as span:
            span.set_attribute("zipcode.raw", zipcode)
            code = validate(zipcode, strict=settings.strict_zipcode)
            location = await resolve_location(app.state.http, settings, code)
            celsius = await lookup_temperature(app.state.http, settings, location.city)
            report = TemperatureReport.from_celsius(location.city, celsius)
            span.set_attribute("city", report.city)
            request.state.logger.info(
                "temperature.resolved", extra={"zipcode": code, **report.to_body()}
            )
            return report.to_body()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("resolver.main:app", host="0.0.0.0", port=8081, log_level="info")
