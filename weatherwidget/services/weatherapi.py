from typing import Any, Dict, List, Optional

from weatherwidget.errors import LocationNotFound, SearchFailed, UpstreamError
from weatherwidget.models import (
    CanonicalWeather,
    Coordinates,
    CurrentConditions,
    ForecastDay,
    HourSample,
    Location,
    LocationMatch,
)
from weatherwidget.services.base import ProviderAdapter
from weatherwidget.units import bucket_compass, c_to_f, to_kph


def _iso(local_time: str) -> str:
    # "2024-01-15 14:30" -> "2024-01-15T14:30"
    return local_time.strip().replace(" ", "T", 1)


def _icon_url(icon: str) -> str:
    return f"https:{icon}" if icon.startswith("//") else icon


class WeatherApiProvider(ProviderAdapter):
    """weatherapi.com: one combined forecast endpoint with per-day summaries."""

    name = "weatherapi"

    def __init__(self, api_key: str, base_url: str = "https://api.weatherapi.com/v1", days: int = 3, **kwargs):
        super().__init__(api_key, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.days = days

    def _error_message(self, payload: Any) -> Optional[str]:
        # {"error": {"code": 1006, "message": "No matching location found."}}
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            return payload["error"].get("message")
        return None

    async def search_locations(self, query: str) -> List[LocationMatch]:
        url = f"{self.base_url}/search.json"
        try:
            results = await self._get_json(url, {"key": self.api_key, "q": query})
        except UpstreamError as exc:
            raise SearchFailed(exc.message) from exc

        return [
            LocationMatch(
                name=item["name"],
                country=item.get("country", ""),
                coordinates=Coordinates(lat=item["lat"], lon=item["lon"]),
            )
            for item in results[: self.search_limit]
        ]

    async def fetch_by_query(self, location_text: str) -> CanonicalWeather:
        url = f"{self.base_url}/forecast.json"
        params = {"key": self.api_key, "q": location_text, "days": self.days, "aqi": "no", "alerts": "no"}
        try:
            data = await self._get_json(url, params)
        except UpstreamError as exc:
            if "no matching location" in exc.message.lower():
                raise LocationNotFound() from exc
            raise
        return self.parse(data)

    async def fetch_by_coordinates(self, lat: float, lon: float) -> CanonicalWeather:
        return await self.fetch_by_query(Coordinates(lat=lat, lon=lon).as_query())

    def parse(self, data: Dict[str, Any]) -> CanonicalWeather:
        try:
            location = data["location"]
            current = data["current"]
            forecast_days = data["forecast"]["forecastday"]
        except (KeyError, TypeError) as exc:
            raise UpstreamError(None, "Unexpected API shape: missing location/current/forecast") from exc

        if "wind_degree" in current:
            wind_direction = bucket_compass(current["wind_degree"])
        else:
            wind_direction = current.get("wind_dir", "N")

        return CanonicalWeather(
            location=Location(
                name=location["name"],
                country=location.get("country", ""),
                latitude=location["lat"],
                longitude=location["lon"],
                local_time_iso=_iso(location["localtime"]),
            ),
            current=CurrentConditions.from_celsius(
                temp_c=current["temp_c"],
                feels_like_c=current["feelslike_c"],
                humidity_pct=current["humidity"],
                wind_kph=to_kph(current["wind_kph"], "kph"),
                wind_direction=wind_direction,
                pressure_mb=current["pressure_mb"],
                visibility_km=current["vis_km"],
                uv_index=current.get("uv") or 0,
                condition_text=current["condition"]["text"],
                condition_icon_ref=_icon_url(current["condition"].get("icon", "")),
            ),
            days=[self._parse_day(day) for day in forecast_days[: self.days]],
        )

    def _parse_day(self, day: Dict[str, Any]) -> ForecastDay:
        summary = day["day"]
        astro = day.get("astro", {})
        return ForecastDay(
            date_iso=day["date"],
            max_temp_c=summary["maxtemp_c"],
            max_temp_f=c_to_f(summary["maxtemp_c"]),
            min_temp_c=summary["mintemp_c"],
            min_temp_f=c_to_f(summary["mintemp_c"]),
            condition_text=summary["condition"]["text"],
            condition_icon=_icon_url(summary["condition"].get("icon", "")),
            sunrise=astro.get("sunrise", ""),
            sunset=astro.get("sunset", ""),
            hours=[HourSample.from_celsius(_iso(hour["time"]), hour["temp_c"]) for hour in day.get("hour", [])],
        )
