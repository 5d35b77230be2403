import math
from typing import List, Union

from weatherwidget.errors import InvalidInput

Number = Union[int, float]

COMPASS_POINTS: List[str] = [
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
]
SECTOR_DEGREES = 360 / len(COMPASS_POINTS)


def c_to_f(celsius: Number) -> float:
    return celsius * 9 / 5 + 32


def f_to_c(fahrenheit: Number) -> float:
    return (fahrenheit - 32) * 5 / 9


def mps_to_kph(speed: Number) -> float:
    return speed * 3.6


def to_kph(speed: Number, unit: str) -> float:
    """Normalize a provider wind speed given in ``kph`` or ``mps``."""
    if unit == "kph":
        return float(speed)
    if unit == "mps":
        return mps_to_kph(speed)
    raise InvalidInput(f"Unknown wind speed unit: {unit!r}")


def meters_to_km(distance: Number) -> float:
    return distance / 1000


def bucket_compass(degrees: Number) -> str:
    """Return the 16-point compass label for a bearing in degrees.

    Any finite bearing is wrapped into [0, 360). A value sitting exactly on a
    sector boundary stays in the lower sector, so 11.25 is still "N".
    """
    if isinstance(degrees, bool) or not isinstance(degrees, (int, float)):
        raise InvalidInput(f"Bearing must be a number, got {degrees!r}")
    if not math.isfinite(degrees):
        raise InvalidInput(f"Bearing must be finite, got {degrees!r}")

    normalized = degrees % 360
    index = math.ceil(normalized / SECTOR_DEGREES - 0.5) % len(COMPASS_POINTS)
    return COMPASS_POINTS[index]
