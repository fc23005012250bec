from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def convert(celsius: float) -> tuple[float, float, float]:
    """Return (celsius, fahrenheit, kelvin), unrounded."""
    return celsius, celsius * 1.8 + 32, celsius + 273.15


class TemperatureReport(BaseModel):
    """Response body shared by the resolver and the gateway.

    Scale values are rounded to one decimal place on construction, so a report
    parsed back from JSON serializes to the same body.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)

    city: str
    celsius: float = Field(alias="temp_C")
    fahrenheit: float = Field(alias="temp_F")
    kelvin: float = Field(alias="temp_K")

    @field_validator("celsius", "fahrenheit", "kelvin")
    @classmethod
    def _one_decimal(cls, value: float) -> float:
        # shortest repr first, so 373.15 rounds up rather than as 373.149999...
        return float(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))

    @classmethod
    def from_celsius(cls, city: str, celsius: float) -> "TemperatureReport":
        c, f, k = convert(celsius)
        return cls(city=city, celsius=c, fahrenheit=f, kelvin=k)

    def to_body(self) -> dict:
        return self.model_dump(by_alias=True)
