from __future__ import annotations

import asyncio
import random
import time

from price_tracker.indicators.engine import IndicatorRefresher
from price_tracker.jobs.scheduler import PairScheduler
from price_tracker.jobs.seeder import seed_tracker
from price_tracker.providers.base import MarketDataProvider


class RandomWalkProvider(MarketDataProvider):
    """Offline provider: a random-walk history, newest first like the exchange."""

    def __init__(self, rows: int = 300, start_price: float = 100.0):
        self.rows = rows
        self.start_price = start_price

    async def fetch_historic_rates(self, product, granularity):
        now = int(time.time()) // granularity * granularity
        price = self.start_price
        out = []
        for i in range(self.rows):
            o = price
            price += random.uniform(-0.5, 0.5)
            c = round(price, 2)
            out.append([now - (self.rows - i) * granularity, min(o, c), max(o, c), round(o, 2), c, random.randint(1, 50)])
        out.reverse()
        return out

    async def fetch_accounts(self):
        return []


async def run(product: str = "BTC-USD", granularity: int = 60, capacity: int = 100, ticks: int = 5) -> None:
    """
    Seeds one pair from fake history, then fires `ticks` ticks 0.2s apart
    (instead of `granularity` seconds) and prints each closed candle.
    """
    tracker = await seed_tracker(
        RandomWalkProvider(),
        product,
        granularity,
        capacity,
        IndicatorRefresher([12, 26]),
    )
    print(f"Seeded {product}@{granularity}s: stored={len(tracker.store)} indicators={tracker.indicators}\n")

    scheduler = PairScheduler(tracker, period=0.2)
    scheduler.start()
    seen = 0
    while tracker.ticks < ticks:
        await asyncio.sleep(0.05)
        if tracker.ticks != seen:
            seen = tracker.ticks
            closed = tracker.store.last()
            print(
                f"[CLOSED {granularity}s] {product} "
                f"O={closed.open} H={closed.high} L={closed.low} C={closed.close} "
                f"stored={len(tracker.store)} ema12={tracker.indicators.get('ema12'):.4f}"
            )
    await scheduler.stop()

    print(f"\nDone. ticks={tracker.ticks} stored={len(tracker.store)}")


if __name__ == "__main__":
    asyncio.run(run())
