from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional


def to_decimal(value: Any) -> Decimal:
    """Exchange payloads arrive as JSON floats/strings; go through str() so 0.1 stays 0.1."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class Candle:
    """
    Candle (OHLC) for one granularity period.

    start_ts: when the period opened (UTC), None if the source didn't say
    open/high/low/close: prices during the period, always Decimal

    Frozen: a candle handed to a store can never change underneath it.
    """
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    start_ts: Optional[datetime] = None

    @classmethod
    def flat(cls, price: Decimal, start_ts: Optional[datetime] = None) -> "Candle":
        """A candle collapsed onto a single price."""
        return cls(open=price, high=price, low=price, close=price, start_ts=start_ts)

    def copy(self) -> "Candle":
        return replace(self)

    @property
    def is_well_formed(self) -> bool:
        return self.low <= min(self.open, self.close) and max(self.open, self.close) <= self.high


def percent_change(start: Decimal, end: Decimal) -> Decimal:
    if start == 0:
        return Decimal(0)
    return (end - start) / start * 100


def high_low_spread(candle: Candle) -> Decimal:
    return candle.high - candle.low


@dataclass(frozen=True)
class Account:
    """Balance of one currency wallet on the exchange."""
    currency: str
    balance: Decimal
    available: Decimal
    hold: Decimal

    @classmethod
    def from_row(cls, row: dict) -> "Account":
        return cls(
            currency=str(row["currency"]).upper(),
            balance=to_decimal(row.get("balance", 0)),
            available=to_decimal(row.get("available", 0)),
            hold=to_decimal(row.get("hold", 0)),
        )
