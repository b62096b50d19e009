"""
Fixed-period tick loop driving acquisition -> classification -> aggregation.

Ticks never overlap: the loop awaits each tick before scheduling the next,
and a tick that overruns its period causes the missed ticks to be skipped
rather than queued. Cancellation is immediate and idempotent; a sample that
resolves after cancellation is dropped before it reaches the session.
"""
import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional, Protocol

from .analyzer import EngagementTracker
from .models import FrameSample

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_S: float = 1.0

def monotonic_ms() -> float:
    return time.monotonic() * 1000.0

class SampleSource(Protocol):
    async def acquire(self) -> FrameSample: ...

class TickRunner:

    def __init__(
        self,
        tracker: EngagementTracker,
        source: SampleSource,
        period: float = DEFAULT_PERIOD_S,
        clock: Optional[Callable[[], float]] = None,
        on_tick: Optional[Callable[[Dict[str, Any]], None]] = None
    ):
        if period < 0:
            raise ValueError(f"Period must be >= 0, got {period}")

        self.tracker = tracker
        self.source = source
        self.period = period
        self.on_tick = on_tick
        self._clock: Callable[[], float] = clock or monotonic_ms

        self._cancelled: bool = False
        self._in_flight: bool = False
        self._task: Optional[asyncio.Task] = None

        self.ticks_processed: int = 0
        self.ticks_skipped: int = 0
        self.results_discarded: int = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def tick(self) -> Optional[Dict[str, Any]]:
        if self._cancelled:
            return None

        if self._in_flight:
            self.ticks_skipped += 1
            logger.warning("Previous tick still in flight, skipping")
            return None

        self._in_flight = True
        try:
            timestamp = self._clock()
            sample = await self.source.acquire()

            if self._cancelled:
                self.results_discarded += 1
                logger.warning("Discarding sample that resolved after cancellation")
                return None

            output = self.tracker.process_sample(sample, timestamp)
            self.ticks_processed += 1
            return output
        finally:
            self._in_flight = False

    async def run(self, max_ticks: Optional[int] = None) -> None:
        loop = asyncio.get_running_loop()
        next_deadline = loop.time()
        ticks = 0

        while not self._cancelled:
            if max_ticks is not None and ticks >= max_ticks:
                break

            output = await self.tick()
            ticks += 1
            if output is not None and self.on_tick is not None:
                self.on_tick(output)

            next_deadline += self.period
            now = loop.time()
            if self.period > 0 and now > next_deadline:
                missed = int((now - next_deadline) // self.period) + 1
                self.ticks_skipped += missed
                next_deadline += missed * self.period
                logger.warning("Tick overran its period, skipped %d tick(s)", missed)

            await asyncio.sleep(max(0.0, next_deadline - now))

    def start(self, max_ticks: Optional[int] = None) -> asyncio.Task:
        if self._task is not None and not self._task.done():
            raise RuntimeError("Tick runner already started")
        self._task = asyncio.ensure_future(self.run(max_ticks))
        return self._task

    def cancel(self) -> None:
        if self._cancelled:
            return

        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info("Tick runner cancelled after %d ticks", self.ticks_processed)
