import unittest
from datetime import datetime, timezone
from decimal import Decimal

from fakes import FakeProvider, RecordingRefresher, rows_newest_first

from price_tracker.errors import SeedFetchFailure
from price_tracker.jobs.seeder import normalize_rates, row_to_candle, seed_tracker


class TestNormalize(unittest.TestCase):
    def test_reverses_newest_first_input(self):
        rows = [[1_700_000_060, 9, 11, 9.5, 10, 1], [1_700_000_000, 4, 6, 4.5, 5, 1]]

        candles = normalize_rates(rows)

        self.assertEqual([c.close for c in candles], [Decimal("5"), Decimal("10")])

    def test_row_mapping_uses_low_high_open_close_positions(self):
        c = row_to_candle([1_700_000_000, 1.5, 3.25, 2, 0.1, 7])

        self.assertEqual(c.low, Decimal("1.5"))
        self.assertEqual(c.high, Decimal("3.25"))
        self.assertEqual(c.open, Decimal("2"))
        self.assertEqual(c.close, Decimal("0.1"))
        self.assertIsInstance(c.close, Decimal)
        self.assertEqual(c.start_ts, datetime.fromtimestamp(1_700_000_000, tz=timezone.utc))


class TestSeedTracker(unittest.IsolatedAsyncioTestCase):
    async def test_seed_trims_to_capacity_keeping_most_recent(self):
        closes = [float(i) for i in range(1, 11)]  # H = 10
        provider = FakeProvider({("BTC-USD", 60): rows_newest_first(closes)})
        refresher = RecordingRefresher()

        tracker = await seed_tracker(provider, "BTC-USD", 60, 4, refresher)

        self.assertEqual(len(tracker.store), 4)
        self.assertEqual(tracker.store.snapshot(), [Decimal(str(c)) for c in closes[-4:]])

    async def test_current_candle_starts_flat_at_last_close(self):
        provider = FakeProvider({("ETH-USD", 300): rows_newest_first([5.0, 10.0], granularity=300)})

        tracker = await seed_tracker(provider, "ETH-USD", 300, 10, RecordingRefresher())

        cur = tracker.current_candle
        self.assertEqual((cur.open, cur.high, cur.low, cur.close), (Decimal("10.0"),) * 4)

    async def test_indicators_refreshed_once_from_seeded_series(self):
        provider = FakeProvider({("BTC-USD", 60): rows_newest_first([5.0, 10.0])})
        refresher = RecordingRefresher()

        tracker = await seed_tracker(provider, "BTC-USD", 60, 10, refresher)

        self.assertEqual(refresher.calls, [[Decimal("5.0"), Decimal("10.0")]])
        self.assertEqual(tracker.indicators["n"], 2.0)
        self.assertEqual(tracker.ticks, 0)

    async def test_fetch_error_becomes_seed_fetch_failure(self):
        provider = FakeProvider({}, fail_on=("BTC-USD", 60))

        with self.assertRaises(SeedFetchFailure) as ctx:
            await seed_tracker(provider, "BTC-USD", 60, 10, RecordingRefresher())

        self.assertEqual(ctx.exception.product, "BTC-USD")
        self.assertIsInstance(ctx.exception.__cause__, ConnectionError)

    async def test_empty_history_is_a_seed_failure(self):
        provider = FakeProvider({("BTC-USD", 60): []})

        with self.assertRaises(SeedFetchFailure):
            await seed_tracker(provider, "BTC-USD", 60, 10, RecordingRefresher())
