from datetime import datetime, time
from typing import Optional

from weatherwidget.models import Theme


def _parse_clock(value: str) -> Optional[time]:
    try:
        return datetime.strptime(value.strip(), "%I:%M %p").time()
    except (ValueError, AttributeError):
        return None


def classify_theme(condition_text: str, sunrise: str, sunset: str, now: datetime) -> Theme:
    """Pick the backdrop for the current conditions.

    Outside the sunrise..sunset window it is always ``night``; sun times that
    cannot be parsed skip that check.
    """
    rise, set_ = _parse_clock(sunrise), _parse_clock(sunset)
    if rise and set_ and (now.time() < rise or now.time() > set_):
        return "night"

    condition = condition_text.lower()
    if "sunny" in condition or "clear" in condition:
        return "sunny"
    if "rain" in condition or "drizzle" in condition:
        return "rainy"
    if "snow" in condition or "blizzard" in condition:
        return "snowy"
    return "cloudy"
