"""Poll scheduler: run a tick now, then every interval, forever; a failing tick never stops it."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from src.core.metrics import BeaconMetrics, get_metrics

logger = logging.getLogger(__name__)

Tick = Callable[[], Awaitable[object]]


class PollScheduler:
    """Fixed-rate scheduler anchored on the loop clock (tick k is due at t0 + k * interval).

    Ticks run one at a time. A tick that overruns its slot skips the missed deadlines
    rather than firing a catch-up burst. A tick's light work is bounded by the
    controller's fade timeout, so a wedged device delays polling but never stops it.
    """

    def __init__(self, interval_sec: float, metrics: Optional[BeaconMetrics] = None):
        if interval_sec <= 0:
            raise ValueError(f"interval_sec must be > 0, got {interval_sec}")
        self.interval_sec = interval_sec
        self._metrics = metrics or get_metrics()
        self._stop_event = asyncio.Event()
        self._tick_count = 0
        self._running = False

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def is_running(self) -> bool:
        return self._running

    async def _run_tick(self, tick: Tick) -> None:
        self._tick_count += 1
        try:
            await tick()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._metrics.inc_tick_errors()
            logger.exception("Tick %d raised: %s", self._tick_count, e)

    def _next_slot(self, t0: float, now: float) -> int:
        """Index k of the first deadline t0 + k * interval strictly after now."""
        return int((now - t0) // self.interval_sec) + 1

    async def start(self, tick: Tick) -> None:
        """Run tick immediately, then on every interval until stop() or cancellation."""
        loop = asyncio.get_running_loop()
        self._running = True
        t0 = loop.time()
        slot = 0
        logger.debug("Scheduler started (interval=%.1fs)", self.interval_sec)
        try:
            while not self._stop_event.is_set():
                await self._run_tick(tick)
                if self._stop_event.is_set():
                    break
                now = loop.time()
                next_slot = self._next_slot(t0, now)
                if next_slot > slot + 1:
                    logger.warning(
                        "Tick %d overran; skipping %d missed slot(s)",
                        self._tick_count,
                        next_slot - slot - 1,
                    )
                slot = next_slot
                deadline = t0 + slot * self.interval_sec
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=deadline - now)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            logger.debug("Scheduler stopped after %d tick(s)", self._tick_count)

    def stop(self) -> None:
        self._stop_event.set()
