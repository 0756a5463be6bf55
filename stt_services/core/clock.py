"""
Clock implementations used by the polling loops
"""

import asyncio
import time

from .interfaces import Clock


class SystemClock(Clock):
    """Wall-clock time and real asyncio suspension"""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
