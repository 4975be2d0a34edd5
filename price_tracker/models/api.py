from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel

from price_tracker.models.market import Candle
from price_tracker.state import Tracker


class CandleOut(BaseModel):
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    start_ts: Optional[datetime] = None

    @classmethod
    def from_candle(cls, c: Candle) -> "CandleOut":
        return cls(open=c.open, high=c.high, low=c.low, close=c.close, start_ts=c.start_ts)


class TrackerSummary(BaseModel):
    """
    What downstream consumers see of one pair.

    stored: closed candles currently held (<= capacity)
    ticks / failures: steady-state ticks committed / rejected since startup
    """

    product: str
    granularity: int
    stored: int
    current: CandleOut
    indicators: Dict[str, float]
    ticks: int
    failures: int
    last_tick_at: Optional[datetime] = None

    @classmethod
    def from_tracker(cls, t: Tracker) -> "TrackerSummary":
        return cls(
            product=t.product,
            granularity=t.granularity,
            stored=len(t.store),
            current=CandleOut.from_candle(t.current_candle),
            indicators=dict(t.indicators),
            ticks=t.ticks,
            failures=t.failures,
            last_tick_at=t.last_tick_at,
        )


class TrackerDetail(TrackerSummary):
    candles: List[CandleOut] = []

    @classmethod
    def from_tracker(cls, t: Tracker) -> "TrackerDetail":
        summary = TrackerSummary.from_tracker(t)
        return cls(
            **summary.model_dump(),
            candles=[CandleOut.from_candle(c) for c in t.store.candles()],
        )
