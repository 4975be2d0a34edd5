from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Tuple

from price_tracker.errors import ConfigurationError
from price_tracker.models.market import Candle


@dataclass
class CandleStore:
    """
    Closed candles for one (product, granularity) pair.

    history -> closed candles, oldest first, never longer than capacity.
    Eviction is FIFO: every append drops from the oldest end.
    """
    capacity: int
    history: List[Candle] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not isinstance(self.capacity, int) or self.capacity <= 0:
            raise ConfigurationError(f"candle store capacity must be a positive integer, got {self.capacity!r}")
        self._trim()

    def __len__(self) -> int:
        return len(self.history)

    def _trim(self) -> None:
        if len(self.history) > self.capacity:
            del self.history[:-self.capacity]

    def append(self, candle: Candle) -> None:
        self.history.append(candle)
        self._trim()

    def extend(self, candles: Iterable[Candle]) -> None:
        """Bulk load (seeding). The trim runs once, after everything is in."""
        self.history.extend(candles)
        self._trim()

    def snapshot(self) -> List[Decimal]:
        """Closing prices, oldest -> newest."""
        return [c.close for c in self.history]

    def snapshot_after(self, candle: Candle) -> List[Decimal]:
        """
        Closing prices as snapshot() would return them after append(candle),
        without touching the store.
        """
        closes = self.snapshot()
        closes.append(candle.close)
        return closes[-self.capacity:]

    def candles(self) -> Tuple[Candle, ...]:
        return tuple(self.history)

    def last(self) -> Candle | None:
        return self.history[-1] if self.history else None
