from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # App
    app_name: str = "weather-widget"
    log_level: str = "INFO"

    # Provider
    weather_provider: Literal["weatherapi", "openweather"] = "weatherapi"
    weather_api_key: str = ""
    weatherapi_base_url: str = "https://api.weatherapi.com/v1"
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5"
    openweather_geo_url: str = "https://api.openweathermap.org/geo/1.0"
    request_timeout_seconds: float = 5.0
    forecast_days: int = 3
    search_limit: int = 5

    # Persistence slot
    redis_url: str = "redis://localhost:6379/0"
    cache_max_age_seconds: int = 3600

    # Input handling
    search_debounce_ms: int = 300
    search_min_length: int = 2
    geolocation_timeout_seconds: float = 10.0


settings = Settings()
