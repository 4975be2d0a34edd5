from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Awaitable, Callable, Dict, Iterator, Optional, Sequence

from price_tracker.candles.aggregator import LiveCandleAggregator
from price_tracker.candles.store import CandleStore
from price_tracker.errors import TickComputationFailure
from price_tracker.indicators.engine import IndicatorSet
from price_tracker.models.market import Account, Candle, high_low_spread, percent_change

log = logging.getLogger("tracker")

Refresher = Callable[[str, int, Sequence[Decimal]], Awaitable[IndicatorSet]]


@dataclass
class Tracker:
    """
    Everything known about one (product, granularity) pair.

    Only tick() and refresh() write to it; readers get the committed state.
    """
    product: str
    granularity: int
    store: CandleStore
    aggregator: LiveCandleAggregator
    refresher: Refresher
    indicators: IndicatorSet = field(default_factory=dict)
    ticks: int = 0
    failures: int = 0
    last_tick_at: Optional[datetime] = None
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False, compare=False)

    @property
    def current_candle(self) -> Candle:
        return self.aggregator.current

    @property
    def minutes(self) -> float:
        return self.granularity / 60

    async def refresh(self) -> IndicatorSet:
        """Recompute indicators from the store as it stands."""
        async with self._lock:
            try:
                indicators = await self.refresher(self.product, self.granularity, self.store.snapshot())
            except Exception as e:
                self.failures += 1
                raise TickComputationFailure(self.product, self.granularity, repr(e)) from e
            self.indicators = indicators
            return indicators

    async def tick(self, now: Optional[datetime] = None) -> Candle:
        """
        Close the live candle and open the next one at its close.

        The refresher is awaited before anything is written, and the commit
        below it has no suspension point: a failed or cancelled tick leaves
        the pair exactly as the previous tick left it.
        """
        async with self._lock:
            closed, nxt = self.aggregator.roll(now)

            log.debug(
                "%s: %gmin candle data: open=%.2f, close=%.2f, %.2f%% change, %s spread",
                self.product,
                self.minutes,
                closed.open,
                closed.close,
                percent_change(closed.open, closed.close),
                high_low_spread(closed),
            )

            closes = self.store.snapshot_after(closed)
            try:
                indicators = await self.refresher(self.product, self.granularity, closes)
            except Exception as e:
                self.failures += 1
                raise TickComputationFailure(self.product, self.granularity, repr(e)) from e

            self.store.append(closed)
            self.aggregator.commit(nxt)
            self.indicators = indicators
            self.ticks += 1
            self.last_tick_at = nxt.start_ts
            return closed


class PriceTrackerRegistry(Mapping):
    """
    product -> granularity -> Tracker, plus account balances.

    Built once by the runtime at startup and then only read. The per-product
    mappings handed out are read-only views.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        self.accounts: Dict[str, Account] = {}
        self._trackers: Dict[str, Dict[int, Tracker]] = {}

    def register(self, tracker: Tracker) -> None:
        """Startup only."""
        self._trackers.setdefault(tracker.product, {})[tracker.granularity] = tracker

    def __getitem__(self, product: str) -> Mapping[int, Tracker]:
        return MappingProxyType(self._trackers[product])

    def __iter__(self) -> Iterator[str]:
        return iter(self._trackers)

    def __len__(self) -> int:
        return len(self._trackers)

    def get_tracker(self, product: str, granularity: int) -> Tracker:
        return self._trackers[product][granularity]

    def trackers(self) -> Iterator[Tracker]:
        for by_granularity in self._trackers.values():
            yield from by_granularity.values()
