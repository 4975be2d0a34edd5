from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class MarketDataProvider(ABC):
    """
    Provider contract (interface).

    Any provider must implement:
    - fetch_historic_rates(): raw candle rows, NEWEST first:
        [time, low, high, open, close, volume]
    - fetch_accounts(): raw account balance rows
    """

    @abstractmethod
    async def fetch_historic_rates(self, product: str, granularity: int) -> List[List[Any]]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_accounts(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def close(self) -> None:
        return None
