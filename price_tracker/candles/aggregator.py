from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple

from price_tracker.models.market import Candle


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LiveCandleAggregator:
    """
    Holds the one candle that is still accumulating for a pair.

    Nothing pushes intermediate prices into it: between ticks it stays flat at
    the previous close. A tick is split in two so the caller can make it atomic:
    - roll(): compute (closed copy, next candle) without changing anything
    - commit(next): swap the next candle in
    """

    def __init__(self, seed_close: Decimal, opened_at: Optional[datetime] = None):
        self._current = Candle.flat(seed_close, opened_at or utcnow())

    @property
    def current(self) -> Candle:
        return self._current

    def roll(self, now: Optional[datetime] = None) -> Tuple[Candle, Candle]:
        c = self._current
        closed = c.copy()
        # The new period opens exactly at the previous close.
        nxt = Candle.flat(c.close, now or utcnow())
        return closed, nxt

    def commit(self, nxt: Candle) -> None:
        self._current = nxt
