"""
Fixed Delay Rate Limiter Module

Implements the politeness pause between successive network operations so
the remote server is never hit back-to-back.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

from harvester.config import config


logger = logging.getLogger(__name__)


class FixedDelayLimiter:
    """
    Enforces a fixed minimum gap between network calls.

    The first call goes through immediately. Each later call waits until
    ``delay`` seconds have passed since the previous one started.

    Example:
        limiter = FixedDelayLimiter(delay=1.0)
        for url in urls:
            await limiter.wait()
            # Now safe to make request
    """

    def __init__(
        self,
        delay: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the limiter.

        Args:
            delay: Seconds between calls (default from config)
            clock: Monotonic time source
            sleep: Coroutine used to wait
        """
        self._delay = delay if delay is not None else config.politeness.delay
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None
        self._calls = 0
        self._total_wait = 0.0

    @property
    def delay(self) -> float:
        return self._delay

    async def wait(self, min_delay: float = 0.0) -> float:
        """
        Block until the next call is allowed.

        Args:
            min_delay: Lower bound on the gap for this call, e.g. the
                host's robots.txt Crawl-delay

        Returns:
            Seconds spent waiting
        """
        waited = 0.0
        if self._last_call is not None:
            remaining = max(self._delay, min_delay) - (self._clock() - self._last_call)
            if remaining > 0:
                logger.debug(f"Politeness pause: {remaining:.2f}s")
                await self._sleep(remaining)
                waited = remaining

        self._last_call = self._clock()
        self._calls += 1
        self._total_wait += waited
        return waited

    def get_stats(self) -> dict:
        return {
            "delay": self._delay,
            "calls": self._calls,
            "total_wait": round(self._total_wait, 3),
        }
