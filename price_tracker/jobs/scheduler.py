from __future__ import annotations

import asyncio
import contextlib
import logging
import traceback
from typing import Optional

from price_tracker.state import Tracker

log = logging.getLogger("scheduler")


class PairScheduler:
    """
    Fires tracker.tick() every `period` seconds (default: the granularity).

    Ticks never overlap: the next deadline is only waited on once the current
    tick has returned. A tick that overruns delays the next one; missed
    periods collapse into that single late tick.
    """

    def __init__(self, tracker: Tracker, period: Optional[float] = None):
        self.tracker = tracker
        self.period = float(period if period is not None else tracker.granularity)
        self.overruns = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def name(self) -> str:
        return f"{self.tracker.product}@{self.tracker.granularity}s"

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=f"tick:{self.name}")
        log.info("Scheduler started pair=%s period=%.3fs", self.name, self.period)

    async def stop(self) -> None:
        """
        Cancel the timer. Ticks only write after their last await, so a
        cancelled tick has written nothing; once this returns nothing else
        will be written for the pair.
        """
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        log.info("Scheduler stopped pair=%s ticks=%d", self.name, self.tracker.ticks)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.period

        while True:
            await asyncio.sleep(max(0.0, deadline - loop.time()))

            try:
                await self.tracker.tick()
            except Exception as e:
                # Keep the timer alive; the pair stays at its last good tick.
                log.error("Tick failed pair=%s error=%s", self.name, repr(e))
                log.error(traceback.format_exc())

            deadline += self.period
            now = loop.time()
            if deadline < now:
                self.overruns += 1
                log.warning("Tick overran pair=%s by %.3fs", self.name, now - deadline)
                deadline = now
