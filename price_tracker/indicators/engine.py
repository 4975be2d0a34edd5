from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Sequence

IndicatorSet = Dict[str, float]


# -------------------------
# EMA
# -------------------------
def ema_series(values: List[float], period: int) -> List[float]:
    if not values:
        return []
    k = 2.0 / (period + 1)
    out = [values[0]]
    for v in values[1:]:
        out.append((v - out[-1]) * k + out[-1])
    return out


def compute_ema(closes: List[float], periods: Sequence[int]) -> Dict[str, float]:
    result: Dict[str, float] = {}
    for p in periods:
        series = ema_series(closes, p)
        if series:
            result[f"ema{p}"] = float(series[-1])
    return result


class IndicatorRefresher:
    """
    Recomputes the whole indicator set from a closing-price series.

    No state is kept between calls; the result depends only on the series
    passed in (oldest -> newest). Async so heavier implementations can
    suspend without the caller caring.
    """

    def __init__(self, periods: Sequence[int]):
        self.periods = list(periods)

    async def __call__(self, product: str, granularity: int, closes: Sequence[Decimal]) -> IndicatorSet:
        values = [float(c) for c in closes]
        if not values:
            return {}

        result = compute_ema(values, self.periods)
        result["close"] = values[-1]
        return result
