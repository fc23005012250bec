"""Process-wide configuration, read once from the environment at startup."""
import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    resolver_url: str = "http://resolver:8081"
    geocoding_url: str = "https://viacep.com.br"
    weather_url: str = "https://api.weatherapi.com"
    weather_api_key: str = ""
    http_timeout: float = 10.0
    strict_zipcode: bool = False
    otel_exporter: str = "console"
    otlp_endpoint: str = "http://otel-collector:4317"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            resolver_url=os.getenv("RESOLVER_URL", cls.resolver_url).rstrip("/"),
            geocoding_url=os.getenv("GEOCODING_URL", cls.geocoding_url).rstrip("/"),
            weather_url=os.getenv("WEATHER_URL", cls.weather_url).rstrip("/"),
            weather_api_key=os.getenv("WEATHER_API_KEY", cls.weather_api_key),
            http_timeout=float(os.getenv("HTTP_TIMEOUT", str(cls.http_timeout))),
            strict_zipcode=_env_bool("STRICT_ZIPCODE", cls.strict_zipcode),
            otel_exporter=os.getenv("OTEL_EXPORTER", cls.otel_exporter).lower(),
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", cls.otlp_endpoint),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
