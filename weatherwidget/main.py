import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from weatherwidget.config import Settings, settings
from weatherwidget.logging_config import setup_logging
from weatherwidget.models import Emission, ErrorEmission, LocationMatch, Preferences, WeatherResponse
from weatherwidget.services.aggregator import hourly_series
from weatherwidget.services.base import ProviderAdapter
from weatherwidget.services.cache import WeatherCache
from weatherwidget.services.openweather import OpenWeatherProvider
from weatherwidget.services.preferences import PreferencesStore
from weatherwidget.services.search import SearchDebouncer
from weatherwidget.services.theme import classify_theme
from weatherwidget.services.weather import WeatherService
from weatherwidget.services.weatherapi import WeatherApiProvider

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "location_not_found": 404,
    "auth_error": 401,
    "rate_limited": 429,
    "connectivity_lost": 503,
    "invalid_input": 422,
}


def build_provider(config: Settings) -> ProviderAdapter:
    common = dict(
        timeout_seconds=config.request_timeout_seconds,
        search_limit=config.search_limit,
        days=config.forecast_days,
    )
    if config.weather_provider == "openweather":
        return OpenWeatherProvider(
            config.weather_api_key,
            base_url=config.openweather_base_url,
            geo_url=config.openweather_geo_url,
            **common,
        )
    return WeatherApiProvider(config.weather_api_key, base_url=config.weatherapi_base_url, **common)


cache = WeatherCache.from_url(settings.redis_url)
preferences = PreferencesStore.from_url(settings.redis_url)
service = WeatherService(
    build_provider(settings),
    cache,
    max_cache_age_ms=settings.cache_max_age_seconds * 1000,
    geolocation_timeout=settings.geolocation_timeout_seconds,
)
# service is resolved per call
suggestions = SearchDebouncer(
    lambda text: service.search(text),
    delay=settings.search_debounce_ms / 1000,
    min_length=settings.search_min_length,
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging(settings.log_level)
    if not settings.weather_api_key:
        logger.warning("WEATHER_API_KEY is not set; weather requests will fail with an auth error")
    await service.start()
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)


@app.get("/health")
def health():
    return {"status": "ok", "service": settings.app_name, "provider": settings.weather_provider}


@app.get("/")
def root():
    return JSONResponse({"service": settings.app_name, "docs": "/docs"})


# ── Suggestions ──────────────────────────────────────────────────────────────

@app.get("/v1/search", response_model=List[LocationMatch])
async def search(q: str = Query(..., description="Partial city name")):
    # None means a newer keystroke superseded this request
    return await suggestions.submit(q) or []


# ── Weather ──────────────────────────────────────────────────────────────────

@app.get("/v1/weather", response_model=WeatherResponse)
async def weather_by_city(city: str = Query(..., min_length=1, description="City name, e.g. 'London'")):
    return _respond(await service.query(city))


@app.get("/v1/weather/coords", response_model=WeatherResponse)
async def weather_by_coords(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
):
    return _respond(await service.query_by_coordinates(lat, lon))


@app.post("/v1/weather/retry", response_model=WeatherResponse)
async def retry():
    emission = await service.retry()
    if emission is None:
        raise HTTPException(status_code=404, detail="Nothing to retry")
    return _respond(emission)


@app.get("/v1/weather/latest", response_model=WeatherResponse)
async def latest(city: Optional[str] = Query(None, description="Deep-linked city, overrides the cached snapshot")):
    emission = await service.start(deep_link_city=city) if city else service.last_emission
    if emission is None:
        raise HTTPException(status_code=404, detail="No weather loaded yet")
    return _respond(emission)


@app.get("/v1/share")
def share(request: Request):
    unit = preferences.load().temperature_unit
    text = service.share_text(unit)
    if text is None:
        raise HTTPException(status_code=404, detail="No weather loaded yet")
    return {"text": text, "url": service.share_link(str(request.base_url).rstrip("/"))}


# ── Preferences ──────────────────────────────────────────────────────────────

@app.get("/v1/preferences", response_model=Preferences)
def get_preferences():
    return preferences.load()


@app.put("/v1/preferences", response_model=Preferences)
def put_preferences(body: Preferences):
    preferences.save(body)
    return preferences.load()


# ── Shared helpers ───────────────────────────────────────────────────────────

def _respond(emission: Emission) -> WeatherResponse:
    """Turn a service emission into the payload the renderer draws from."""
    if isinstance(emission, ErrorEmission):
        raise HTTPException(status_code=ERROR_STATUS.get(emission.kind, 502), detail=emission.message)

    prefs = preferences.load()
    weather = emission.weather
    today = weather.days[0]
    local_now = datetime.fromisoformat(weather.location.local_time_iso)

    return WeatherResponse(
        weather=weather,
        is_cached=emission.is_cached,
        as_of_epoch_ms=emission.as_of_epoch_ms,
        theme=classify_theme(weather.current.condition_text, today.sunrise, today.sunset, local_now),
        unit=prefs.temperature_unit,
        chart=hourly_series(weather, prefs.temperature_unit, start_hour=local_now.hour) if prefs.show_chart else None,
    )
