"""Outbound lookups made by the resolver: ViaCEP for the city, WeatherAPI for the temperature."""
import logging
import unicodedata
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field

from common.config import Settings
from common.errors import NotFoundError, UpstreamError
from common.tracing import traced_get

logger = logging.getLogger(__name__)


def _failure(exc: Exception) -> dict:
    """Loggable summary of a provider failure; never the URL, which carries the API key."""
    detail = {"error": type(exc).__name__}
    if isinstance(exc, httpx.HTTPStatusError):
        detail["status_code"] = exc.response.status_code
    return detail


class LocationResult(BaseModel):
    """The fields of a ViaCEP answer that the resolver keeps."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    cep: str = ""
    city: str = Field(default="", alias="localidade")
    state: str = Field(default="", alias="uf")
    neighborhood: str = Field(default="", alias="bairro")
    street: str = Field(default="", alias="logradouro")
    ibge: str = ""


class CurrentWeather(BaseModel):
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    temp_c: float


class WeatherAnswer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current: CurrentWeather


def normalize_city_name(name: str) -> str:
    """Strip diacritics and percent-encode the name for the weather query string.

    >>> normalize_city_name("São Paulo")
    'Sao%20Paulo'
    """
    decomposed = unicodedata.normalize("NFD", name)
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return quote(unicodedata.normalize("NFC", stripped), safe="")


async def resolve_location(client: httpx.AsyncClient, settings: Settings, code: str) -> LocationResult:
    url = f"{settings.geocoding_url}/ws/{quote(code, safe='')}/json/"
    try:
        resp = await traced_get(client, url, "resolver.geocode", timeout=settings.http_timeout)
        resp.raise_for_status()
        location = LocationResult.model_validate(resp.json())
    except (httpx.HTTPError, ValueError) as exc:
        # pydantic's ValidationError is a ValueError, as is a JSON decode failure
        logger.warning("geocode.failed", extra={"zipcode": code, **_failure(exc)})
        raise UpstreamError(f"geocoding failed for {code}") from exc

    if not location.cep or not location.city:
        raise NotFoundError(f"no location for {code}")
    return location


async def lookup_temperature(client: httpx.AsyncClient, settings: Settings, city: str) -> float:
    query = normalize_city_name(city)
    url = f"{settings.weather_url}/v1/current.json?key={settings.weather_api_key}&q={query}&aqi=no"
    try:
        resp = await traced_get(client, url, "resolver.weather", timeout=settings.http_timeout)
        resp.raise_for_status()
        answer = WeatherAnswer.model_validate(resp.json())
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("weather.failed", extra={"city": city, **_failure(exc)})
        raise UpstreamError(f"weather lookup failed for {city}") from exc
    return answer.current.temp_c
