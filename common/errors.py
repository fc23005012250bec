"""Failure kinds shared by both services.

Each carries the status code and plain-text body it is reported with at an
HTTP boundary.
"""


class TemperatureServiceError(Exception):
    status_code = 500
    message = "internal error"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class ValidationError(TemperatureServiceError):
    status_code = 422
    message = "invalid zipcode"


class NotFoundError(TemperatureServiceError):
    status_code = 404
    message = "can not find zipcode"


class UpstreamError(TemperatureServiceError):
    # reported like a miss; callers only learn the lookup failed
    status_code = 404
    message = "can not find zipcode"
