import asyncio
import unittest
from decimal import Decimal

from fakes import RecordingRefresher

from price_tracker.candles.aggregator import LiveCandleAggregator
from price_tracker.candles.store import CandleStore
from price_tracker.jobs.scheduler import PairScheduler
from price_tracker.models.market import Candle
from price_tracker.state import Tracker


def make_tracker(capacity=50, refresher=None, granularity=60) -> Tracker:
    store = CandleStore(capacity=capacity)
    store.append(Candle.flat(Decimal("100")))
    return Tracker(
        product="BTC-USD",
        granularity=granularity,
        store=store,
        aggregator=LiveCandleAggregator(Decimal("100")),
        refresher=refresher or RecordingRefresher(),
    )


async def wait_for_ticks(tracker: Tracker, n: int, timeout: float = 2.0) -> None:
    async def _wait():
        while tracker.ticks + tracker.failures < n:
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_wait(), timeout)


class TestPairScheduler(unittest.IsolatedAsyncioTestCase):
    async def test_period_defaults_to_granularity(self):
        self.assertEqual(PairScheduler(make_tracker(granularity=300)).period, 300.0)

    async def test_fires_repeatedly_and_respects_capacity(self):
        tracker = make_tracker(capacity=3)
        scheduler = PairScheduler(tracker, period=0.01)

        scheduler.start()
        await wait_for_ticks(tracker, 5)
        await scheduler.stop()

        self.assertGreaterEqual(tracker.ticks, 5)
        self.assertEqual(len(tracker.store), 3)

    async def test_stop_prevents_further_mutation(self):
        tracker = make_tracker()
        scheduler = PairScheduler(tracker, period=0.01)

        scheduler.start()
        await wait_for_ticks(tracker, 2)
        await scheduler.stop()
        stored, ticks = len(tracker.store), tracker.ticks

        await asyncio.sleep(0.05)

        self.assertFalse(scheduler.running)
        self.assertEqual(len(tracker.store), stored)
        self.assertEqual(tracker.ticks, ticks)

    async def test_stop_during_slow_tick_leaves_no_partial_state(self):
        refresher = RecordingRefresher()
        refresher.delay = 1.0
        tracker = make_tracker(refresher=refresher)
        scheduler = PairScheduler(tracker, period=0.01)

        scheduler.start()
        while not refresher.calls:
            await asyncio.sleep(0.005)
        await scheduler.stop()

        self.assertEqual(len(tracker.store), 1)
        self.assertEqual(tracker.ticks, 0)
        self.assertEqual(tracker.current_candle.close, Decimal("100"))

    async def test_failing_ticks_do_not_stop_the_timer(self):
        refresher = RecordingRefresher()
        refresher.fail = True
        tracker = make_tracker(refresher=refresher)
        scheduler = PairScheduler(tracker, period=0.01)

        with self.assertLogs("scheduler", level="ERROR"):
            scheduler.start()
            await wait_for_ticks(tracker, 3)

        self.assertTrue(scheduler.running)
        self.assertEqual(len(tracker.store), 1)

        refresher.fail = False
        await wait_for_ticks(tracker, tracker.failures + 2)
        await scheduler.stop()
        self.assertGreater(tracker.ticks, 0)

    async def test_slow_ticks_never_overlap(self):
        refresher = RecordingRefresher()
        refresher.delay = 0.03
        tracker = make_tracker(refresher=refresher)
        scheduler = PairScheduler(tracker, period=0.01)

        scheduler.start()
        await wait_for_ticks(tracker, 3)
        await scheduler.stop()

        lengths = [len(c) for c in refresher.calls]
        self.assertEqual(lengths, sorted(set(lengths)))
        self.assertGreater(scheduler.overruns, 0)

    async def test_pairs_are_independent(self):
        bad_refresher = RecordingRefresher()
        bad_refresher.fail = True
        good = make_tracker()
        bad = make_tracker(refresher=bad_refresher)
        schedulers = [PairScheduler(good, period=0.01), PairScheduler(bad, period=0.01)]

        with self.assertLogs("scheduler", level="ERROR"):
            for s in schedulers:
                s.start()
            await wait_for_ticks(good, 3)
            await wait_for_ticks(bad, 3)
        for s in schedulers:
            await s.stop()

        self.assertGreaterEqual(good.ticks, 3)
        self.assertEqual(bad.ticks, 0)
