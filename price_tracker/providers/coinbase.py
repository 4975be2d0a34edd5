from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from price_tracker.config import Settings
from price_tracker.providers.base import MarketDataProvider

log = logging.getLogger("coinbase_provider")


def sign_request(secret: str, timestamp: str, method: str, path: str, body: str = "") -> str:
    """
    Coinbase Exchange request signature:
      base64(HMAC-SHA256(base64decode(secret), timestamp + METHOD + path + body))
    """
    message = f"{timestamp}{method.upper()}{path}{body}".encode("utf-8")
    key = base64.b64decode(secret)
    digest = hmac.new(key, message, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


class CoinbaseProvider(MarketDataProvider):
    """
    Coinbase Exchange (ex-GDAX) provider, REST only.

    - /products/{product}/candles (public): historic rates, newest first
    - /accounts (signed): balances
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self.base_url = settings.coinbase_base_url.rstrip("/")
        self.api_key = settings.coinbase_api_key
        self.api_secret = settings.coinbase_api_secret
        self.passphrase = settings.coinbase_passphrase
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.coinbase_timeout_seconds,
            headers={"Accept": "application/json", "User-Agent": "price-tracker"},
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    def _auth_headers(self, method: str, path: str, body: str = "") -> Dict[str, str]:
        timestamp = str(time.time())
        return {
            "CB-ACCESS-KEY": self.api_key,
            "CB-ACCESS-SIGN": sign_request(self.api_secret, timestamp, method, path, body),
            "CB-ACCESS-TIMESTAMP": timestamp,
            "CB-ACCESS-PASSPHRASE": self.passphrase,
        }

    # -------------------------
    # Public interface used by the app
    # -------------------------
    async def fetch_historic_rates(self, product: str, granularity: int) -> List[List[Any]]:
        """
        GET {base_url}/products/{product}/candles?granularity=N

        Rows come back newest -> oldest as
          [time, low, high, open, close, volume]
        and are returned untouched (ordering included).
        """
        resp = await self._client.get(f"/products/{product}/candles", params={"granularity": str(granularity)})
        resp.raise_for_status()

        data = resp.json()
        if not isinstance(data, list):
            raise ValueError(f"Unexpected candles payload for {product}: {type(data).__name__}")

        rows = [row for row in data if isinstance(row, list) and len(row) >= 5]
        if len(rows) != len(data):
            log.warning("Dropped %d malformed candle rows product=%s", len(data) - len(rows), product)
        return rows

    async def fetch_accounts(self) -> List[Dict[str, Any]]:
        """GET {base_url}/accounts (signed)."""
        if not self.settings.has_credentials:
            raise RuntimeError("Coinbase credentials missing. Set COINBASE_API_KEY/SECRET/PASSPHRASE in your .env.")

        path = "/accounts"
        resp = await self._client.get(path, headers=self._auth_headers("GET", path))
        resp.raise_for_status()

        data = resp.json()
        if not isinstance(data, list):
            raise ValueError(f"Unexpected accounts payload: {json.dumps(data)[:200]}")
        return [row for row in data if isinstance(row, dict) and "currency" in row]
