"""Randomized inter-request pacing."""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional

from catalog_crawler.config import settings

logger = logging.getLogger(__name__)


class Pacer:
    """Waits a uniformly random interval between sequential requests."""

    def __init__(
        self,
        min_ms: Optional[int] = None,
        max_ms: Optional[int] = None,
        rng: Optional[random.Random] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Initialize pacer.

        Args:
            min_ms: Minimum delay in milliseconds (defaults to config)
            max_ms: Maximum delay in milliseconds (defaults to config)
            rng: Random source (injectable for deterministic tests)
            sleep: Awaitable sleep (asyncio.sleep by default)
        """
        self.min_ms = min_ms if min_ms is not None else settings.pace_min_ms
        self.max_ms = max_ms if max_ms is not None else settings.pace_max_ms
        if self.min_ms < 0 or self.max_ms < self.min_ms:
            raise ValueError(f"invalid pace range [{self.min_ms}, {self.max_ms}]")
        self._rng = rng or random.Random()
        self._sleep = sleep or asyncio.sleep
        self.total_waited_ms = 0

    def next_delay_ms(self) -> int:
        return self._rng.randint(self.min_ms, self.max_ms)

    async def wait(self, reason: str = "") -> int:
        """
        Sleep for a random delay within the pace range.

        Returns:
            Delay applied in milliseconds
        """
        delay_ms = self.next_delay_ms()
        if reason:
            logger.debug(f"Pacing {delay_ms}ms before {reason}")
        await self._sleep(delay_ms / 1000.0)
        self.total_waited_ms += delay_ms
        return delay_ms
