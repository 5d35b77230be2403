import logging

import redis

from weatherwidget.models import Preferences, TemperatureUnit

logger = logging.getLogger(__name__)

UNIT_KEY = "temperatureUnit"
THEME_KEY = "theme"
SHOW_CHART_KEY = "showChart"


class PreferencesStore:
    """User settings kept as plain string values next to the weather cache."""

    def __init__(self, client: "redis.Redis"):
        self.client = client

    @classmethod
    def from_url(cls, redis_url: str) -> "PreferencesStore":
        return cls(redis.from_url(redis_url, decode_responses=True))

    def load(self) -> Preferences:
        try:
            unit, theme, show_chart = (self.client.get(k) for k in (UNIT_KEY, THEME_KEY, SHOW_CHART_KEY))
        except redis.RedisError as exc:
            logger.warning("Preferences read failed, using defaults: %s", exc)
            return Preferences()

        return Preferences(
            temperature_unit="fahrenheit" if unit == "fahrenheit" else "celsius",
            theme=theme or "auto",
            show_chart=show_chart != "false",
        )

    def save(self, preferences: Preferences) -> None:
        self.set_unit(preferences.temperature_unit)
        self.set_theme(preferences.theme)
        self.set_show_chart(preferences.show_chart)

    def set_unit(self, unit: TemperatureUnit) -> None:
        self._write(UNIT_KEY, unit)

    def set_theme(self, theme: str) -> None:
        self._write(THEME_KEY, theme)

    def set_show_chart(self, show: bool) -> None:
        self._write(SHOW_CHART_KEY, "true" if show else "false")

    def _write(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value)
        except redis.RedisError as exc:
            logger.warning("Preferences write failed for %s: %s", key, exc)

    def toggle_unit(self) -> TemperatureUnit:
        unit: TemperatureUnit = "celsius" if self.load().temperature_unit == "fahrenheit" else "fahrenheit"
        self.set_unit(unit)
        return unit
