from typing import Optional

import httpx


class WeatherError(Exception):
    """Base for every failure the core surfaces to the renderer."""

    kind = "weather_error"
    user_message = "Failed to fetch weather data"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)
        self.message = message or self.user_message


class SearchFailed(WeatherError):
    kind = "search_failed"
    user_message = "Search failed"


class LocationNotFound(WeatherError):
    kind = "location_not_found"
    user_message = "City not found. Please check the spelling and try again."


class UpstreamError(WeatherError):
    kind = "upstream_error"

    def __init__(self, status: Optional[int], message: Optional[str] = None):
        super().__init__(message)
        self.status = status

    def __repr__(self) -> str:
        return f"UpstreamError(status={self.status!r}, message={self.message!r})"


class AuthError(WeatherError):
    kind = "auth_error"
    user_message = "API key error. Please check your configuration."


class RateLimited(WeatherError):
    kind = "rate_limited"
    user_message = "Too many requests. Please try again later."


class ConnectivityLost(WeatherError):
    kind = "connectivity_lost"
    user_message = "No internet connection. Showing cached data if available."


class GeolocationDenied(WeatherError):
    kind = "geolocation_denied"
    user_message = "Location access denied. Please enable location services."


class GeolocationUnavailable(WeatherError):
    kind = "geolocation_unavailable"
    user_message = "Location information unavailable."


class GeolocationTimeout(WeatherError):
    kind = "geolocation_timeout"
    user_message = "Location request timed out."


class InvalidInput(WeatherError, ValueError):
    kind = "invalid_input"
    user_message = "Invalid input"


def classify_error(exc: BaseException) -> WeatherError:
    """Map any failure raised below the service boundary onto the taxonomy.

    Provider adapters raise ``UpstreamError`` carrying the HTTP status and the
    provider's own error text; the status and text decide whether it is really
    an auth, throttling or not-found condition. Raw httpx transport failures
    mean there was no network path.
    """
    if isinstance(exc, UpstreamError):
        text = exc.message.lower()
        if exc.status in (401, 403) or "api key" in text:
            return AuthError()
        if exc.status == 429 or "rate limit" in text or "quota" in text:
            return RateLimited()
        if "no matching location" in text:
            return LocationNotFound()
        return exc
    if isinstance(exc, WeatherError):
        return exc
    if isinstance(exc, httpx.TransportError):
        return ConnectivityLost()
    return UpstreamError(None)
