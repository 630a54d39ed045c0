"""Clock skew between the local machine and the OVH API."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class ClockSkew:
    """Cached offset between the local clock and the API clock.

    The offset is ``floor(local_epoch) - remote_epoch`` in seconds. It is
    measured on the first successful call and kept until ``invalidate()``.
    A failed measurement is not cached.
    """

    def __init__(self, fetch_time: Callable[[], Awaitable[int]]):
        self._fetch_time = fetch_time
        self._offset: Optional[int] = None
        self._lock: Optional[asyncio.Lock] = None

    @property
    def cached(self) -> Optional[int]:
        return self._offset

    async def get_offset(self) -> int:
        if self._offset is not None:
            return self._offset

        # Created inside the running loop
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            if self._offset is None:
                remote = await self._fetch_time()
                self._offset = int(time.time()) - remote
                logger.debug("Measured API clock offset: %ds", self._offset)
            return self._offset

    def invalidate(self) -> None:
        self._offset = None
