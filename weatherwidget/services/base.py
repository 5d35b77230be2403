import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from weatherwidget.errors import AuthError, UpstreamError
from weatherwidget.models import CanonicalWeather, LocationMatch

logger = logging.getLogger(__name__)


class ProviderAdapter(ABC):
    """One upstream weather provider mapped onto ``CanonicalWeather``.

    Subclasses own the provider's URLs, query parameters, field names, units
    and icon scheme. Nothing outside a subclass looks at the wire format.
    """

    name = "provider"

    def __init__(
        self,
        api_key: str,
        timeout_seconds: float = 5.0,
        search_limit: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout_seconds
        self.search_limit = search_limit
        self._transport = transport

    @abstractmethod
    async def search_locations(self, query: str) -> List[LocationMatch]:
        ...

    @abstractmethod
    async def fetch_by_query(self, location_text: str) -> CanonicalWeather:
        ...

    @abstractmethod
    async def fetch_by_coordinates(self, lat: float, lon: float) -> CanonicalWeather:
        ...

    def _error_message(self, payload: Any) -> Optional[str]:
        """Pull the provider's own error text out of a failed response body."""
        if isinstance(payload, dict):
            message = payload.get("message")
            if isinstance(message, str):
                return message
        return None

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        if not self.api_key:
            raise AuthError("missing API key")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            r = await client.get(url, params=params)

        if r.is_error:
            try:
                detail = self._error_message(r.json())
            except ValueError:
                detail = None
            logger.warning("%s returned %s for %s: %s", self.name, r.status_code, url, detail or r.text[:200])
            raise UpstreamError(r.status_code, detail or f"HTTP {r.status_code}")

        try:
            return r.json()
        except ValueError as exc:
            logger.error("%s sent invalid JSON for %s", self.name, url)
            raise UpstreamError(r.status_code, "invalid json") from exc
