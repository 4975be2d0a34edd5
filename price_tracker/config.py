# price_tracker/config.py
import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

from price_tracker.errors import ConfigurationError

# Loads variables from a local .env file into environment variables (dev only).
load_dotenv()


@dataclass(frozen=True)
class Settings:
    # App config
    app_env: str
    log_level: str
    provider: str

    # Tracking config
    products: list[str]
    granularities: list[int]
    periods: list[int]
    price_cache_size: int

    # Provider config (Coinbase Exchange)
    coinbase_base_url: str
    coinbase_timeout_seconds: float
    coinbase_api_key: str
    coinbase_api_secret: str
    coinbase_passphrase: str

    @property
    def has_credentials(self) -> bool:
        return bool(self.coinbase_api_key and self.coinbase_api_secret and self.coinbase_passphrase)


def _split(raw: str) -> list[str]:
    return [s.strip() for s in raw.split(",") if s.strip()]


def _positive_ints(name: str, raw: str) -> list[int]:
    out: list[int] = []
    for item in _split(raw):
        try:
            value = int(item)
        except ValueError:
            raise ConfigurationError(f"{name} must be a list of integers, got '{item}'") from None
        if value <= 0:
            raise ConfigurationError(f"{name} values must be positive, got {value}")
        out.append(value)
    if not out:
        raise ConfigurationError(f"{name} is empty")
    return out


def _positive_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def parse_capacity(raw: Optional[str]) -> int:
    """
    PRICE_CACHE_SIZE is the one capacity shared by every candle store.
    Missing, non-integer or non-positive values are rejected here, before any
    store exists.
    """
    if raw is None or not raw.strip():
        raise ConfigurationError("PRICE_CACHE_SIZE is missing. Add it to .env")
    try:
        size = int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"PRICE_CACHE_SIZE must be an integer, got '{raw}'") from None
    if size <= 0:
        raise ConfigurationError(f"PRICE_CACHE_SIZE must be positive, got {size}")
    return size


def get_settings() -> Settings:
    """
    Reads env vars and returns a Settings object.
    """
    products = [p.upper() for p in _split(os.getenv("PRODUCTS", "BTC-USD"))]
    if not products:
        raise ConfigurationError("PRODUCTS is empty")

    return Settings(
        app_env=os.getenv("APP_ENV", "local"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        provider=os.getenv("PROVIDER", "COINBASE"),
        products=products,
        granularities=_positive_ints("GRANULARITIES", os.getenv("GRANULARITIES", "60,300,900")),
        periods=_positive_ints("PERIODS", os.getenv("PERIODS", "12,26")),
        price_cache_size=parse_capacity(os.getenv("PRICE_CACHE_SIZE")),
        coinbase_base_url=os.getenv("COINBASE_BASE_URL", "https://api.exchange.coinbase.com"),
        coinbase_timeout_seconds=_positive_float("COINBASE_TIMEOUT_SECONDS", os.getenv("COINBASE_TIMEOUT_SECONDS", "20")),
        coinbase_api_key=os.getenv("COINBASE_API_KEY", "").strip(),
        coinbase_api_secret=os.getenv("COINBASE_API_SECRET", "").strip(),
        coinbase_passphrase=os.getenv("COINBASE_PASSPHRASE", "").strip(),
    )
