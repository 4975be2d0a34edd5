from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Sequence

from price_tracker.candles.aggregator import LiveCandleAggregator
from price_tracker.candles.store import CandleStore
from price_tracker.errors import SeedFetchFailure
from price_tracker.models.market import Candle, to_decimal
from price_tracker.providers.base import MarketDataProvider
from price_tracker.state import Refresher, Tracker

log = logging.getLogger("seeder")


def row_to_candle(row: Sequence[Any]) -> Candle:
    """[time, low, high, open, close, volume] -> Candle"""
    return Candle(
        low=to_decimal(row[1]),
        high=to_decimal(row[2]),
        open=to_decimal(row[3]),
        close=to_decimal(row[4]),
        start_ts=datetime.fromtimestamp(row[0], tz=timezone.utc),
    )


def normalize_rates(rows: Sequence[Sequence[Any]]) -> List[Candle]:
    """
    The exchange returns newest -> oldest; everything downstream assumes
    oldest -> newest, so flip before mapping.
    """
    return [row_to_candle(r) for r in reversed(rows)]


async def seed_tracker(
    provider: MarketDataProvider,
    product: str,
    granularity: int,
    capacity: int,
    refresher: Refresher,
) -> Tracker:
    """
    One-time bootstrap of a pair:
    - fetch history, flip to oldest -> newest, load into a bounded store
    - start the live candle flat at the last close
    - run one indicator refresh
    """
    log.info("%s: Getting historical data at every %g minutes", product, granularity / 60)

    try:
        rows = await provider.fetch_historic_rates(product, granularity)
        candles = normalize_rates(rows)
    except Exception as e:
        raise SeedFetchFailure(product, granularity, repr(e)) from e

    if not candles:
        raise SeedFetchFailure(product, granularity, "no historical candles returned")

    malformed = sum(1 for c in candles if not c.is_well_formed)
    if malformed:
        log.warning("%s: %d historical candles have close/open outside low..high", product, malformed)

    store = CandleStore(capacity=capacity)
    store.extend(candles)

    log.debug(
        "%s: Total historical prices @ %g minutes: %d (kept %d)",
        product,
        granularity / 60,
        len(candles),
        len(store),
    )

    tracker = Tracker(
        product=product,
        granularity=granularity,
        store=store,
        aggregator=LiveCandleAggregator(store.last().close),
        refresher=refresher,
    )
    await tracker.refresh()
    return tracker
