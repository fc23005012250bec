import httpx
import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from common.config import Settings

# The global tracer provider can only be set once per process, so every test
# shares this exporter and clears it between tests.
SPANS = InMemorySpanExporter()
_provider = TracerProvider()
_provider.add_span_processor(SimpleSpanProcessor(SPANS))
trace.set_tracer_provider(_provider)


@pytest.fixture
def spans():
    SPANS.clear()
    yield SPANS
    SPANS.clear()


@pytest.fixture
def settings():
    return Settings(
        resolver_url="http://resolver.test",
        geocoding_url="http://viacep.test",
        weather_url="http://weather.test",
        weather_api_key="test-key",
        http_timeout=2.0,
        otel_exporter="none",
    )


VIACEP_SAO_PAULO = {
    "cep": "01310-100",
    "logradouro": "Avenida Paulista",
    "bairro": "Bela Vista",
    "localidade": "São Paulo",
    "uf": "SP",
    "ibge": "3550308",
}


class FakeProviders:
    """Stands in for ViaCEP and WeatherAPI, recording every request it gets."""

    def __init__(self, location=None, temp_c=23.4):
        self.location = VIACEP_SAO_PAULO if location is None else location
        self.temp_c = temp_c
        self.geocode_response = None
        self.weather_response = None
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "viacep.test":
            return self.geocode_response or httpx.Response(200, json=self.location)
        if request.url.host == "weather.test":
            return self.weather_response or httpx.Response(
                200, json={"location": {"name": "Sao Paulo"}, "current": {"temp_c": self.temp_c}}
            )
        return httpx.Response(599)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def providers():
    return FakeProviders()
