from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from weatherwidget.units import c_to_f

TemperatureUnit = Literal["celsius", "fahrenheit"]
Theme = Literal["night", "sunny", "rainy", "snowy", "cloudy"]


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lon: float = Field(..., ge=-180, le=180, allow_inf_nan=False)

    def as_query(self) -> str:
        return f"{self.lat},{self.lon}"


QueryLocation = Union[Coordinates, str]


class LocationMatch(BaseModel):
    name: str
    country: str = ""
    coordinates: Coordinates

    @property
    def label(self) -> str:
        return f"{self.name}, {self.country}" if self.country else self.name


class Location(BaseModel):
    name: str
    country: str = ""
    latitude: float
    longitude: float
    local_time_iso: str


class CurrentConditions(BaseModel):
    temp_c: float
    temp_f: float
    feels_like_c: float
    feels_like_f: float
    humidity_pct: int = Field(..., ge=0, le=100)
    wind_kph: float
    wind_direction: str
    pressure_mb: float
    visibility_km: float
    uv_index: float = Field(0.0, ge=0)
    condition_text: str
    condition_icon_ref: str = ""

    @classmethod
    def from_celsius(cls, temp_c: float, feels_like_c: float, **fields) -> "CurrentConditions":
        return cls(
            temp_c=temp_c,
            temp_f=c_to_f(temp_c),
            feels_like_c=feels_like_c,
            feels_like_f=c_to_f(feels_like_c),
            **fields,
        )


class HourSample(BaseModel):
    time_iso: str
    temp_c: float
    temp_f: float

    @classmethod
    def from_celsius(cls, time_iso: str, temp_c: float) -> "HourSample":
        return cls(time_iso=time_iso, temp_c=temp_c, temp_f=c_to_f(temp_c))


class ForecastDay(BaseModel):
    date_iso: str
    max_temp_c: float
    max_temp_f: float
    min_temp_c: float
    min_temp_f: float
    condition_text: str
    condition_icon: str = ""
    sunrise: str = ""
    sunset: str = ""
    hours: List[HourSample] = Field(default_factory=list)


class CanonicalWeather(BaseModel):
    """Provider-agnostic snapshot handed to the renderer and the cache."""

    location: Location
    current: CurrentConditions
    days: List[ForecastDay] = Field(..., min_length=1, max_length=3)

    @model_validator(mode="after")
    def _days_in_order(self) -> "CanonicalWeather":
        dates = [day.date_iso for day in self.days]
        if dates != sorted(dates):
            raise ValueError("forecast days must be chronological")
        return self


class RawSample(BaseModel):
    """One flat forecast sample before it is grouped into days."""

    time_iso: str
    temp_c: float
    condition_text: str = ""
    condition_icon: str = ""


class CacheEntry(BaseModel):
    snapshot: CanonicalWeather
    captured_at_epoch_ms: int
    query_location: QueryLocation


class Preferences(BaseModel):
    temperature_unit: TemperatureUnit = "celsius"
    theme: str = "auto"
    show_chart: bool = True


class ChartPoint(BaseModel):
    time_iso: str
    temp: float


class ServiceState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class WeatherEmission(BaseModel):
    weather: CanonicalWeather
    is_cached: bool = False
    as_of_epoch_ms: int


class ErrorEmission(BaseModel):
    kind: str
    message: str


Emission = Union[WeatherEmission, ErrorEmission]


class WeatherResponse(BaseModel):
    weather: CanonicalWeather
    is_cached: bool
    as_of_epoch_ms: int
    theme: Theme
    unit: TemperatureUnit
    chart: Optional[List[ChartPoint]] = None
