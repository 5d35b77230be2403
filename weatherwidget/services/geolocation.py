import asyncio
import logging
from typing import Optional, Protocol

from weatherwidget.errors import GeolocationTimeout, GeolocationUnavailable
from weatherwidget.models import Coordinates

logger = logging.getLogger(__name__)

GEOLOCATION_TIMEOUT_SECONDS = 10.0


class Geolocator(Protocol):
    """Device position source.

    Implementations raise ``GeolocationDenied`` when the user refuses access
    and ``GeolocationUnavailable`` when no fix can be obtained.
    """

    async def current_position(self) -> Coordinates:
        ...


async def locate(geolocator: Optional[Geolocator], timeout: float = GEOLOCATION_TIMEOUT_SECONDS) -> Coordinates:
    if geolocator is None:
        raise GeolocationUnavailable("Geolocation is not supported by this browser")

    try:
        return await asyncio.wait_for(geolocator.current_position(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("Geolocation gave no fix within %.1fs", timeout)
        raise GeolocationTimeout() from exc
