import logging
from typing import Awaitable, Callable, List, Optional
from urllib.parse import quote

from pydantic import ValidationError

from weatherwidget.errors import ConnectivityLost, InvalidInput, WeatherError, classify_error
from weatherwidget.models import (
    CanonicalWeather,
    Coordinates,
    Emission,
    ErrorEmission,
    LocationMatch,
    QueryLocation,
    ServiceState,
    TemperatureUnit,
    WeatherEmission,
)
from weatherwidget.services.base import ProviderAdapter
from weatherwidget.services.cache import MAX_AGE_MS, WeatherCache, now_ms
from weatherwidget.services.geolocation import GEOLOCATION_TIMEOUT_SECONDS, Geolocator, locate

Listener = Callable[[Emission], None]


class WeatherService:
    """Query state machine sitting between the renderer and a provider.

    Idle -> Loading -> Success | Error, and back to Loading on every new
    query or retry. Each completed operation emits exactly one value to the
    subscribed listeners.
    """

    def __init__(
        self,
        provider: ProviderAdapter,
        cache: WeatherCache,
        *,
        geolocator: Optional[Geolocator] = None,
        is_online: Optional[Callable[[], bool]] = None,
        clock: Callable[[], int] = now_ms,
        max_cache_age_ms: int = MAX_AGE_MS,
        geolocation_timeout: float = GEOLOCATION_TIMEOUT_SECONDS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.provider = provider
        self.cache = cache
        self.geolocator = geolocator
        self.is_online = is_online
        self.clock = clock
        self.max_cache_age_ms = max_cache_age_ms
        self.geolocation_timeout = geolocation_timeout
        self._log = logger or logging.getLogger(__name__)

        self.state = ServiceState.IDLE
        self.last_query: Optional[QueryLocation] = None
        self.last_emission: Optional[Emission] = None
        self._listeners: List[Listener] = []

    # Public API ---------------------------------------------------------
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    async def start(self, deep_link_city: Optional[str] = None) -> Optional[Emission]:
        """Initial render: a deep-linked city wins over the cached snapshot."""
        if deep_link_city:
            return await self.query(deep_link_city)

        entry = self.cache.load()
        if entry is None or not self.cache.is_fresh(entry, self.clock(), self.max_cache_age_ms):
            return None

        self.last_query = entry.query_location
        self.state = ServiceState.SUCCESS
        return self._emit(WeatherEmission(weather=entry.snapshot, is_cached=True, as_of_epoch_ms=entry.captured_at_epoch_ms))

    async def query(self, location_text: str) -> Emission:
        self.last_query = location_text
        return await self._run(location_text, lambda: self.provider.fetch_by_query(location_text))

    async def query_by_coordinates(self, lat: float, lon: float) -> Emission:
        self.state = ServiceState.LOADING
        try:
            coords = Coordinates(lat=lat, lon=lon)
        except ValidationError as exc:
            self._log.warning("Rejected coordinates %r, %r: %s", lat, lon, exc.errors()[0]["msg"])
            return self._fail(InvalidInput(f"coordinates out of range: {lat}, {lon}"))
        self.last_query = coords
        return await self._run(coords, lambda: self.provider.fetch_by_coordinates(coords.lat, coords.lon))

    async def query_current_location(self) -> Emission:
        self.state = ServiceState.LOADING
        try:
            coords = await locate(self.geolocator, self.geolocation_timeout)
        except WeatherError as exc:
            self._log.warning("Geolocation failed: %s", exc.kind)
            return self._fail(exc)
        return await self.query_by_coordinates(coords.lat, coords.lon)

    async def retry(self) -> Optional[Emission]:
        if self.last_query is None:
            return None
        if isinstance(self.last_query, Coordinates):
            return await self.query_by_coordinates(self.last_query.lat, self.last_query.lon)
        return await self.query(self.last_query)

    async def search(self, text: str) -> List[LocationMatch]:
        """Suggestions for the search box; any failure just means no suggestions."""
        try:
            return await self.provider.search_locations(text)
        except Exception as exc:
            self._log.error("City search error: %r", exc)
            return []

    @property
    def current_weather(self) -> Optional[CanonicalWeather]:
        if isinstance(self.last_emission, WeatherEmission):
            return self.last_emission.weather
        return None

    def share_text(self, unit: TemperatureUnit = "celsius") -> Optional[str]:
        weather = self.current_weather
        if weather is None:
            return None
        temp = weather.current.temp_c if unit == "celsius" else weather.current.temp_f
        symbol = "C" if unit == "celsius" else "F"
        return f"Current weather in {weather.location.name}: {weather.current.condition_text}, {round(temp)}°{symbol}"

    def share_link(self, base_url: str) -> Optional[str]:
        weather = self.current_weather
        if weather is None:
            return None
        return f"{base_url}?city={quote(weather.location.name)}"

    # Helpers ------------------------------------------------------------
    async def _run(self, query: QueryLocation, fetch: Callable[[], Awaitable[CanonicalWeather]]) -> Emission:
        self.state = ServiceState.LOADING
        try:
            weather = await fetch()
        except Exception as exc:
            error = classify_error(exc)
            if self.is_online is not None and not self.is_online():
                error = ConnectivityLost()
            self._log.error("Weather lookup for %r failed: %r", query, exc)
            if isinstance(error, ConnectivityLost):
                cached = self._cached_fallback()
                if cached is not None:
                    return cached
            return self._fail(error)

        captured_at = self.clock()
        self.cache.store(weather, query, captured_at_ms=captured_at)
        self.state = ServiceState.SUCCESS
        return self._emit(WeatherEmission(weather=weather, is_cached=False, as_of_epoch_ms=captured_at))

    def _cached_fallback(self) -> Optional[Emission]:
        entry = self.cache.load()
        if entry is None or not self.cache.is_fresh(entry, self.clock(), self.max_cache_age_ms):
            return None
        self._log.info("Offline, showing weather cached at %s", entry.captured_at_epoch_ms)
        self.state = ServiceState.SUCCESS
        return self._emit(WeatherEmission(weather=entry.snapshot, is_cached=True, as_of_epoch_ms=entry.captured_at_epoch_ms))

    def _fail(self, error: WeatherError) -> Emission:
        self.state = ServiceState.ERROR
        return self._emit(ErrorEmission(kind=error.kind, message=error.user_message))

    def _emit(self, emission: Emission) -> Emission:
        self.last_emission = emission
        for listener in self._listeners:
            listener(emission.model_copy(deep=True))
        return emission


__all__ = ["WeatherService"]
