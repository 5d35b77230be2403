import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from weatherwidget.errors import LocationNotFound, SearchFailed, UpstreamError
from weatherwidget.models import (
    CanonicalWeather,
    Coordinates,
    CurrentConditions,
    Location,
    LocationMatch,
    RawSample,
)
from weatherwidget.services.aggregator import aggregate_days
from weatherwidget.services.base import ProviderAdapter
from weatherwidget.units import bucket_compass, meters_to_km, to_kph


def _local_time(unix: int, offset_seconds: int) -> datetime:
    # wall-clock time at the location, without tzinfo
    return datetime.fromtimestamp(unix, tz=timezone.utc).replace(tzinfo=None) + timedelta(seconds=offset_seconds)


def _clock(unix: Optional[int], offset_seconds: int) -> str:
    if unix is None:
        return ""
    return _local_time(unix, offset_seconds).strftime("%I:%M %p")


def _icon_url(icon: str) -> str:
    return f"https://openweathermap.org/img/wn/{icon}@2x.png" if icon else ""


class OpenWeatherProvider(ProviderAdapter):
    """OpenWeather 2.5: geocoding plus separate current and 3-hourly forecast endpoints."""

    name = "openweather"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openweathermap.org/data/2.5",
        geo_url: str = "https://api.openweathermap.org/geo/1.0",
        days: int = 3,
        **kwargs,
    ):
        super().__init__(api_key, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.geo_url = geo_url.rstrip("/")
        self.days = days

    async def _geocode(self, query: str, limit: int) -> List[Dict[str, Any]]:
        url = f"{self.geo_url}/direct"
        params = {"q": query, "limit": limit, "appid": self.api_key}
        return await self._get_json(url, params)

    async def search_locations(self, query: str) -> List[LocationMatch]:
        try:
            results = await self._geocode(query, self.search_limit)
        except UpstreamError as exc:
            raise SearchFailed(exc.message) from exc

        return [
            LocationMatch(
                name=loc.get("name", query),
                country=loc.get("country", ""),
                coordinates=Coordinates(lat=loc["lat"], lon=loc["lon"]),
            )
            for loc in results[: self.search_limit]
        ]

    async def fetch_by_query(self, location_text: str) -> CanonicalWeather:
        """Resolve the text to coordinates, then fetch as for a coordinate lookup."""
        results = await self._geocode(location_text, 1)
        if not results:
            raise LocationNotFound(f"City not found: {location_text!r}")

        loc = results[0]
        weather = await self.fetch_by_coordinates(loc["lat"], loc["lon"])
        weather.location.name = loc.get("name", weather.location.name)
        weather.location.country = loc.get("country", weather.location.country)
        return weather

    async def fetch_by_coordinates(self, lat: float, lon: float) -> CanonicalWeather:
        # gather propagates the first failure; the sibling's result is dropped
        current, forecast = await asyncio.gather(
            self.get_current(lat, lon),
            self.get_forecast(lat, lon),
        )
        return self.parse(current, forecast)

    async def get_current(self, lat: float, lon: float) -> Dict[str, Any]:
        url = f"{self.base_url}/weather"
        params = {"lat": lat, "lon": lon, "units": "metric", "appid": self.api_key}
        return await self._get_json(url, params)

    async def get_forecast(self, lat: float, lon: float) -> Dict[str, Any]:
        url = f"{self.base_url}/forecast"
        params = {"lat": lat, "lon": lon, "units": "metric", "appid": self.api_key}
        return await self._get_json(url, params)

    def parse(self, current: Dict[str, Any], forecast: Dict[str, Any]) -> CanonicalWeather:
        try:
            main = current["main"]
            condition = (current.get("weather") or [{}])[0]
            offset = int(current.get("timezone", 0))
            sys_info = current.get("sys", {})
            wind = current.get("wind", {})
            samples = forecast["list"]
        except (KeyError, TypeError) as exc:
            raise UpstreamError(None, "Unexpected API shape: missing main/list") from exc

        sunrise = _clock(sys_info.get("sunrise"), offset)
        sunset = _clock(sys_info.get("sunset"), offset)
        city_offset = int(forecast.get("city", {}).get("timezone", offset))
        raw = self._samples(samples, city_offset)
        if not raw:
            # days must not be empty while current conditions are populated
            raw.append(
                RawSample(
                    time_iso=_local_time(current["dt"], offset).isoformat(timespec="minutes"),
                    temp_c=main["temp"],
                    condition_text=condition.get("description", "").capitalize(),
                    condition_icon=_icon_url(condition.get("icon", "")),
                )
            )

        return CanonicalWeather(
            location=Location(
                name=current.get("name", ""),
                country=sys_info.get("country", ""),
                latitude=current.get("coord", {}).get("lat", 0.0),
                longitude=current.get("coord", {}).get("lon", 0.0),
                local_time_iso=_local_time(current["dt"], offset).isoformat(timespec="minutes"),
            ),
            current=CurrentConditions.from_celsius(
                temp_c=main["temp"],
                feels_like_c=main.get("feels_like", main["temp"]),
                humidity_pct=main["humidity"],
                wind_kph=to_kph(wind.get("speed", 0.0), "mps"),
                wind_direction=bucket_compass(wind.get("deg", 0)),
                pressure_mb=main["pressure"],
                visibility_km=meters_to_km(current.get("visibility", 0)),
                # not on the free tier
                uv_index=0,
                condition_text=condition.get("description", "").capitalize(),
                condition_icon_ref=_icon_url(condition.get("icon", "")),
            ),
            days=aggregate_days(raw, sunrise, sunset, max_days=self.days),
        )

    def _samples(self, items: List[Dict[str, Any]], offset: int) -> List[RawSample]:
        raw: List[RawSample] = []
        for item in items:
            condition = (item.get("weather") or [{}])[0]
            raw.append(
                RawSample(
                    time_iso=_local_time(item["dt"], offset).isoformat(timespec="minutes"),
                    temp_c=item["main"]["temp"],
                    condition_text=condition.get("description", "").capitalize(),
                    condition_icon=_icon_url(condition.get("icon", "")),
                )
            )
        return raw
