import logging
import time
from typing import Optional

import redis
from pydantic import ValidationError

from weatherwidget.models import CacheEntry, CanonicalWeather, QueryLocation

logger = logging.getLogger(__name__)

CACHE_KEY = "cachedWeather"
MAX_AGE_MS = 3_600_000


def now_ms() -> int:
    return int(time.time() * 1000)


class WeatherCache:
    """
    Single-slot store for the last successful snapshot:
      cachedWeather -> {"snapshot": {...}, "captured_at_epoch_ms": <ms>, "query_location": ...}
    Every store overwrites the slot; there is no history and no expiry on the key.
    """

    def __init__(self, client: "redis.Redis"):
        self.client = client

    @classmethod
    def from_url(cls, redis_url: str) -> "WeatherCache":
        return cls(redis.from_url(redis_url, decode_responses=True))

    def store(self, snapshot: CanonicalWeather, query_location: QueryLocation, captured_at_ms: Optional[int] = None) -> CacheEntry:
        entry = CacheEntry(
            snapshot=snapshot.model_copy(deep=True),
            captured_at_epoch_ms=now_ms() if captured_at_ms is None else captured_at_ms,
            query_location=query_location,
        )
        try:
            self.client.set(CACHE_KEY, entry.model_dump_json())
        except redis.RedisError as exc:
            logger.warning("Cache write failed: %s", exc)
        return entry

    def load(self) -> Optional[CacheEntry]:
        try:
            raw = self.client.get(CACHE_KEY)
        except redis.RedisError as exc:
            logger.warning("Cache read failed: %s", exc)
            return None
        if not raw:
            return None

        try:
            return CacheEntry.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding malformed cache entry: %s", exc.errors()[:1])
            return None

    @staticmethod
    def is_fresh(entry: CacheEntry, now_epoch_ms: int, max_age_ms: int = MAX_AGE_MS) -> bool:
        return now_epoch_ms - entry.captured_at_epoch_ms < max_age_ms
