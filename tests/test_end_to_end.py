"""Client → gateway → resolver → providers, wired in-process."""
import httpx
import pytest
from fastapi.testclient import TestClient

from gateway.main import create_app as create_gateway
from resolver.main import create_app as create_resolver


@pytest.fixture
def chain(settings, providers):
    resolver_app = create_resolver(settings, client=providers.client())
    to_resolver = httpx.AsyncClient(transport=httpx.ASGITransport(app=resolver_app))
    return TestClient(create_gateway(settings, client=to_resolver))


def test_known_code(chain):
    response = chain.post("/temperature", json={"cep": "01310-100"})

    assert response.status_code == 200
    assert response.json() == {"city": "São Paulo", "temp_C": 23.4, "temp_F": 74.1, "temp_K": 296.5}


def test_short_code_is_rejected_at_the_gateway(chain, providers):
    response = chain.post("/temperature", json={"cep": "123"})

    assert response.status_code == 422
    assert response.text == "invalid zipcode"
    assert providers.requests == []


def test_empty_city_is_not_found(chain, providers):
    providers.location = {"cep": "01310-100", "localidade": ""}
    response = chain.post("/temperature", json={"cep": "01310100"})

    assert response.status_code == 404
    assert response.text == "can not find zipcode"


def test_weather_outage_is_not_found(chain, providers):
    providers.weather_response = httpx.Response(500, text="boom")
    response = chain.post("/temperature", json={"cep": "01310100"})

    assert response.status_code == 404


def test_request_id_reaches_the_resolver(chain):
    response = chain.post("/temperature", json={"cep": "01310100"}, headers={"X-Request-ID": "e2e-1"})
    assert response.headers["X-Request-ID"] == "e2e-1"


def test_one_trace_across_every_hop(chain, providers, spans):
    chain.post("/temperature", json={"cep": "01310100"})

    finished = spans.get_finished_spans()
    names = {s.name for s in finished}
    assert {
        "gateway.handler",
        "gateway.resolver_call",
        "resolver.handler",
        "resolver.geocode",
        "resolver.weather",
    } <= names
    assert len({s.context.trace_id for s in finished}) == 1

    trace_id = format(finished[0].context.trace_id, "032x")
    for request in providers.requests:
        assert request.headers["traceparent"].split("-")[1] == trace_id


def test_incoming_trace_is_continued(chain, spans):
    trace_id = "4bf92f3577b34da6a3ce929d0e0e4736"
    chain.post(
        "/temperature",
        json={"cep": "01310100"},
        headers={"traceparent": f"00-{trace_id}-00f067aa0ba902b7-01"},
    )

    finished = spans.get_finished_spans()
    assert finished
    assert {format(s.context.trace_id, "032x") for s in finished} == {trace_id}


def test_resolver_spans_nest_under_the_gateway_call(chain, spans):
    chain.post("/temperature", json={"cep": "01310100"})

    by_name = {s.name: s for s in spans.get_finished_spans()}
    call = by_name["gateway.resolver_call"]
    handler = by_name["resolver.handler"]
    # the resolver's server span sits between the outbound call and the handler
    server = next(s for s in spans.get_finished_spans() if s.parent and s.parent.span_id == call.context.span_id)
    assert server.context.trace_id == handler.context.trace_id
    assert by_name["resolver.geocode"].parent.span_id == handler.context.span_id
    assert by_name["resolver.weather"].parent.span_id == handler.context.span_id
