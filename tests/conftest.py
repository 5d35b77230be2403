"""
Shared payloads and doubles. Nothing here touches the network or a live Redis.
"""
import copy
import os

import pytest

os.environ.setdefault("WEATHER_API_KEY", "test-key")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")


WEATHERAPI_FORECAST = {
    "location": {
        "name": "London",
        "country": "United Kingdom",
        "lat": 51.52,
        "lon": -0.11,
        "localtime": "2024-01-15 14:30",
    },
    "current": {
        "temp_c": 15.5,
        "temp_f": 59.9,
        "feelslike_c": 13.2,
        "feelslike_f": 55.8,
        "condition": {"text": "Partly cloudy", "icon": "//cdn.weatherapi.com/weather/64x64/day/116.png"},
        "humidity": 72,
        "wind_kph": 12.5,
        "wind_degree": 225,
        "wind_dir": "SW",
        "pressure_mb": 1013.2,
        "vis_km": 10.0,
        "uv": 4,
    },
    "forecast": {
        "forecastday": [
            {
                "date": "2024-01-15",
                "day": {
                    "maxtemp_c": 18.0,
                    "maxtemp_f": 64.4,
                    "mintemp_c": 8.0,
                    "mintemp_f": 46.4,
                    "condition": {"text": "Partly cloudy", "icon": "//cdn.weatherapi.com/weather/64x64/day/116.png"},
                },
                "astro": {"sunrise": "07:45 AM", "sunset": "04:30 PM"},
                "hour": [
                    {"time": "2024-01-15 00:00", "temp_c": 10.0, "temp_f": 50.0},
                    {"time": "2024-01-15 01:00", "temp_c": 9.5, "temp_f": 49.1},
                ],
            },
            {
                "date": "2024-01-16",
                "day": {
                    "maxtemp_c": 12.0,
                    "mintemp_c": 4.0,
                    "condition": {"text": "Light rain", "icon": "//cdn.weatherapi.com/weather/64x64/day/296.png"},
                },
                "astro": {"sunrise": "07:44 AM", "sunset": "04:32 PM"},
                "hour": [{"time": "2024-01-16 00:00", "temp_c": 6.0}],
            },
        ]
    },
}

WEATHERAPI_SEARCH = [
    {"name": f"London {i}", "country": "United Kingdom", "lat": 51.5 + i / 100, "lon": -0.12} for i in range(7)
]

# 2024-01-15 12:00:00 UTC
NOON_UTC = 1705320000

OPENWEATHER_CURRENT = {
    "coord": {"lat": 51.5074, "lon": -0.1278},
    "name": "London",
    "sys": {"country": "GB", "sunrise": 1705305900, "sunset": 1705335000},
    "dt": NOON_UTC,
    "timezone": 0,
    "weather": [{"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}],
    "main": {"temp": 15.0, "feels_like": 14.0, "pressure": 1013, "humidity": 60},
    "wind": {"speed": 5.0, "deg": 90},
    "visibility": 10000,
    "cod": 200,
}

OPENWEATHER_FORECAST = {
    "city": {"name": "London", "country": "GB", "timezone": 0},
    "list": [
        {"dt": NOON_UTC + 3 * 3600 * i, "main": {"temp": 10.0 + i}, "weather": [{"description": "light rain", "icon": "10d"}]}
        for i in range(24)
    ],
    "cod": "200",
}

OPENWEATHER_GEO = [{"lat": 51.5074, "lon": -0.1278, "name": "London", "country": "GB"}]


class FakeRedis:
    """Just enough of the redis client API for the key-value stores."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value
        return True


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture()
def weatherapi_payload():
    return copy.deepcopy(WEATHERAPI_FORECAST)


@pytest.fixture()
def weather(weatherapi_payload):
    from weatherwidget.services.weatherapi import WeatherApiProvider

    return WeatherApiProvider("test-key").parse(weatherapi_payload)
