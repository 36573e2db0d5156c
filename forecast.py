from datetime import datetime, timedelta, timezone

from pydantic import AliasPath, BaseModel, ConfigDict, Field, ValidationError

from errors import DecodeError

ICON_URL = "https://openweathermap.org/img/wn/{code}@2x.png"
KELVIN_OFFSET = 273.15


class Condition(BaseModel):
    model_config = ConfigDict(frozen=True)

    condition_code: int = Field(alias="id")
    description: str
    icon_code: str = Field(alias="icon")


class WeatherRecord(BaseModel):
    """
    One current-weather observation as returned by the provider.
    Provider keys are remapped here: main.temp_min -> temp_min_kelvin,
    clouds.all -> cloud_cover_percent, and so on.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    location_name: str = Field(alias="name")
    observed_at: datetime = Field(alias="dt")
    utc_offset_seconds: int = Field(alias="timezone")
    temp_min_kelvin: float = Field(validation_alias=AliasPath("main", "temp_min"))
    temp_max_kelvin: float = Field(validation_alias=AliasPath("main", "temp_max"))
    humidity_percent: int = Field(validation_alias=AliasPath("main", "humidity"))
    conditions: tuple[Condition, ...] = Field(alias="weather")
    cloud_cover_percent: int = Field(validation_alias=AliasPath("clouds", "all"))

    @property
    def primary_condition(self) -> Condition | None:
        return self.conditions[0] if self.conditions else None

    @property
    def description(self) -> str:
        primary = self.primary_condition
        return primary.description if primary else ""

    @property
    def icon_code(self) -> str | None:
        primary = self.primary_condition
        return primary.icon_code if primary else None

    # headline temperature is the minimum
    @property
    def temp_celsius(self) -> float:
        return kelvin_to_celsius(self.temp_min_kelvin)

    @property
    def local_time(self) -> datetime:
        return self.observed_at.astimezone(timezone(timedelta(seconds=self.utc_offset_seconds)))


def decode_weather(raw) -> WeatherRecord:
    """Decode a raw JSON body (bytes or str) into a WeatherRecord, or raise DecodeError."""
    try:
        return WeatherRecord.model_validate_json(raw)
    except ValidationError as e:
        raise DecodeError(f"Error: could not decode weather data ({e.error_count()} invalid field(s))") from e


def kelvin_to_celsius(kelvin: float) -> float:
    return kelvin - KELVIN_OFFSET


def format_celsius(celsius: float) -> str:
    return f"{celsius:.1f}°C"


# "Monday, Dec 1, 9:05 AM" in the observed location's own offset.
def format_observed(record: WeatherRecord) -> str:
    local = record.local_time
    hour = local.hour % 12 or 12
    return f"{local:%A, %b} {local.day}, {hour}:{local:%M %p}"


# "Dec 2, 9:05 AM UTC" for the naive-UTC timestamps history entries carry.
def format_saved(saved_at: datetime) -> str:
    hour = saved_at.hour % 12 or 12
    return f"{saved_at:%b} {saved_at.day}, {hour}:{saved_at:%M %p} UTC"


def icon_url(code: str | None) -> str | None:
    if not code:
        return None
    return ICON_URL.format(code=code)
