"""Turn whatever the resolver answered into the gateway's client-facing response.

The resolver's answer is first classified into a closed set of outcomes, and
each outcome has exactly one response. A failure to reach the resolver at all
is reported like an invalid zipcode.
"""
import enum
import json
from dataclasses import dataclass

from fastapi.responses import JSONResponse, PlainTextResponse, Response

from common.errors import NotFoundError, ValidationError
from common.temperature import TemperatureReport


class OutcomeKind(enum.Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    UPSTREAM = "upstream"


@dataclass(frozen=True)
class ResolverOutcome:
    kind: OutcomeKind
    report: TemperatureReport | None = None


NOT_FOUND = ResolverOutcome(OutcomeKind.NOT_FOUND)
INVALID = ResolverOutcome(OutcomeKind.INVALID)
UPSTREAM = ResolverOutcome(OutcomeKind.UPSTREAM)


def classify(status_code: int, body: bytes) -> ResolverOutcome:
    if status_code == ValidationError.status_code:
        return INVALID
    if status_code != 200:
        return NOT_FOUND
    try:
        report = TemperatureReport.model_validate(json.loads(body))
    except ValueError:
        return NOT_FOUND
    if not report.city:
        return NOT_FOUND
    return ResolverOutcome(OutcomeKind.SUCCESS, report)


def upstream_failure() -> ResolverOutcome:
    return UPSTREAM


def to_response(outcome: ResolverOutcome) -> Response:
    if outcome.kind is OutcomeKind.SUCCESS:
        return JSONResponse(outcome.report.to_body(), status_code=200)
    if outcome.kind is OutcomeKind.NOT_FOUND:
        return PlainTextResponse(NotFoundError.message, status_code=NotFoundError.status_code)
    # INVALID and UPSTREAM share the response
    return invalid_zipcode()


def invalid_zipcode() -> Response:
    return PlainTextResponse(ValidationError.message, status_code=ValidationError.status_code)
