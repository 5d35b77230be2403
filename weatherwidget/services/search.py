import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from weatherwidget.models import LocationMatch

logger = logging.getLogger(__name__)

SearchFunc = Callable[[str], Awaitable[List[LocationMatch]]]


class SearchDebouncer:
    """Issue a suggestion search only after ``delay`` seconds of quiet input.

    ``submit`` returns ``None`` when a newer keystroke superseded it, either
    while still waiting or after its request was already in flight.
    """

    def __init__(self, search: SearchFunc, delay: float = 0.3, min_length: int = 2):
        self._search = search
        self.delay = delay
        self.min_length = min_length
        self._pending: Optional[asyncio.Task] = None
        self._generation = 0

    async def submit(self, text: str) -> Optional[List[LocationMatch]]:
        self._generation += 1
        generation = self._generation

        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

        query = text.strip()
        if len(query) < self.min_length:
            return []

        self._pending = asyncio.ensure_future(asyncio.sleep(self.delay))
        try:
            await self._pending
        except asyncio.CancelledError:
            if generation != self._generation:
                return None
            raise

        results = await self._search(query)
        if generation != self._generation:
            logger.debug("Dropping stale suggestions for %r", query)
            return None
        return results
