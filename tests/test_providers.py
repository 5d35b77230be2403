"""
Provider adapters against canned upstream payloads served by httpx.MockTransport.
"""
import asyncio

import httpx
import pytest

from conftest import (
    OPENWEATHER_CURRENT,
    OPENWEATHER_FORECAST,
    OPENWEATHER_GEO,
    WEATHERAPI_FORECAST,
    WEATHERAPI_SEARCH,
)
from weatherwidget.errors import AuthError, LocationNotFound, SearchFailed, UpstreamError
from weatherwidget.services.openweather import OpenWeatherProvider
from weatherwidget.services.weatherapi import WeatherApiProvider
from weatherwidget.units import c_to_f


def _transport(routes, seen=None):
    """Serve ``routes[path] -> (status, json)`` and record every request."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        status, body = routes[request.url.path]
        return httpx.Response(status, json=body)

    return httpx.MockTransport(handler)


# ---------------------------------------------------------------------------
# weatherapi.com
# ---------------------------------------------------------------------------

def test_weatherapi_fetch_by_query_maps_canonical_model():
    seen = []
    provider = WeatherApiProvider("k", transport=_transport({"/v1/forecast.json": (200, WEATHERAPI_FORECAST)}, seen))

    weather = asyncio.run(provider.fetch_by_query("London"))

    params = seen[0].url.params
    assert params["q"] == "London"
    assert params["days"] == "3"
    assert params["key"] == "k"
    assert weather.location.name == "London"
    assert weather.location.local_time_iso == "2024-01-15T14:30"
    assert weather.current.temp_c == 15.5
    assert weather.current.temp_f == c_to_f(15.5)
    assert weather.current.wind_direction == "SW"
    assert weather.current.uv_index == 4
    assert weather.current.condition_icon_ref.startswith("https://cdn.weatherapi.com/")
    assert [d.date_iso for d in weather.days] == ["2024-01-15", "2024-01-16"]
    assert weather.days[0].max_temp_c == 18.0
    assert weather.days[0].sunrise == "07:45 AM"
    assert len(weather.days[0].hours) == 2
    assert weather.days[0].hours[0].time_iso == "2024-01-15T00:00"


def test_weatherapi_fetch_by_coordinates_uses_lat_lon_query():
    seen = []
    provider = WeatherApiProvider("k", transport=_transport({"/v1/forecast.json": (200, WEATHERAPI_FORECAST)}, seen))

    asyncio.run(provider.fetch_by_coordinates(51.52, -0.11))

    assert seen[0].url.params["q"] == "51.52,-0.11"


def test_weatherapi_search_caps_results_at_five():
    provider = WeatherApiProvider("k", transport=_transport({"/v1/search.json": (200, WEATHERAPI_SEARCH)}))

    matches = asyncio.run(provider.search_locations("Lon"))

    assert len(matches) == 5
    assert matches[0].name == "London 0"
    assert matches[0].label == "London 0, United Kingdom"


def test_weatherapi_search_with_no_results_is_not_a_failure():
    provider = WeatherApiProvider("k", transport=_transport({"/v1/search.json": (200, [])}))
    assert asyncio.run(provider.search_locations("Zzz")) == []


def test_weatherapi_search_failure():
    provider = WeatherApiProvider("k", transport=_transport({"/v1/search.json": (500, {})}))
    with pytest.raises(SearchFailed):
        asyncio.run(provider.search_locations("Lon"))


def test_weatherapi_unknown_location():
    body = {"error": {"code": 1006, "message": "No matching location found."}}
    provider = WeatherApiProvider("k", transport=_transport({"/v1/forecast.json": (400, body)}))

    with pytest.raises(LocationNotFound):
        asyncio.run(provider.fetch_by_query("Atlantis"))


def test_weatherapi_error_text_is_carried_into_upstream_error():
    body = {"error": {"code": 2006, "message": "API key provided is invalid"}}
    provider = WeatherApiProvider("k", transport=_transport({"/v1/forecast.json": (401, body)}))

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(provider.fetch_by_query("London"))
    assert exc_info.value.status == 401
    assert "API key" in exc_info.value.message


def test_missing_api_key_fails_before_any_request():
    seen = []
    provider = WeatherApiProvider("", transport=_transport({}, seen))

    with pytest.raises(AuthError):
        asyncio.run(provider.fetch_by_query("London"))
    assert seen == []


def test_weatherapi_unexpected_shape():
    provider = WeatherApiProvider("k", transport=_transport({"/v1/forecast.json": (200, {"location": {}})}))
    with pytest.raises(UpstreamError):
        asyncio.run(provider.fetch_by_query("London"))


# ---------------------------------------------------------------------------
# OpenWeather
# ---------------------------------------------------------------------------

OPENWEATHER_ROUTES = {
    "/geo/1.0/direct": (200, OPENWEATHER_GEO),
    "/data/2.5/weather": (200, OPENWEATHER_CURRENT),
    "/data/2.5/forecast": (200, OPENWEATHER_FORECAST),
}


def test_openweather_fetch_by_coordinates_aggregates_days():
    seen = []
    provider = OpenWeatherProvider("k", transport=_transport(OPENWEATHER_ROUTES, seen))

    weather = asyncio.run(provider.fetch_by_coordinates(51.5074, -0.1278))

    assert sorted(r.url.path for r in seen) == ["/data/2.5/forecast", "/data/2.5/weather"]
    assert all(r.url.params["units"] == "metric" for r in seen)
    assert weather.location.country == "GB"
    assert weather.location.local_time_iso == "2024-01-15T12:00"
    assert weather.current.wind_kph == pytest.approx(18.0)
    assert weather.current.wind_direction == "E"
    assert weather.current.visibility_km == 10.0
    assert weather.current.uv_index == 0
    assert weather.current.condition_text == "Clear sky"
    assert weather.current.condition_icon_ref == "https://openweathermap.org/img/wn/01d@2x.png"

    assert [d.date_iso for d in weather.days] == ["2024-01-15", "2024-01-16", "2024-01-17"]
    today = weather.days[0]
    assert len(today.hours) == 4
    assert today.max_temp_c == 13.0
    assert today.min_temp_c == 10.0
    assert today.sunrise == "08:05 AM"
    assert today.sunset == "04:10 PM"
    assert today.condition_text == "Light rain"


def test_openweather_fetch_by_query_geocodes_first():
    seen = []
    provider = OpenWeatherProvider("k", transport=_transport(OPENWEATHER_ROUTES, seen))

    weather = asyncio.run(provider.fetch_by_query("London"))

    assert seen[0].url.path == "/geo/1.0/direct"
    assert seen[0].url.params["limit"] == "1"
    assert weather.location.name == "London"


def test_openweather_geocode_miss_is_location_not_found():
    routes = dict(OPENWEATHER_ROUTES)
    routes["/geo/1.0/direct"] = (200, [])
    provider = OpenWeatherProvider("k", transport=_transport(routes))

    with pytest.raises(LocationNotFound):
        asyncio.run(provider.fetch_by_query("Atlantis"))


def test_openweather_forecast_failure_fails_whole_lookup():
    routes = dict(OPENWEATHER_ROUTES)
    routes["/data/2.5/forecast"] = (500, {"cod": "500", "message": "Internal error"})
    provider = OpenWeatherProvider("k", transport=_transport(routes))

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(provider.fetch_by_coordinates(51.5, -0.13))
    assert exc_info.value.status == 500


def test_openweather_search_uses_geocoding_limit():
    seen = []
    provider = OpenWeatherProvider("k", transport=_transport(OPENWEATHER_ROUTES, seen))

    matches = asyncio.run(provider.search_locations("Lon"))

    assert seen[0].url.params["limit"] == "5"
    assert matches[0].coordinates.lat == 51.5074
