from price_tracker.config import Settings
from price_tracker.errors import ConfigurationError
from price_tracker.providers.base import MarketDataProvider
from price_tracker.providers.coinbase import CoinbaseProvider


def get_provider(settings: Settings) -> MarketDataProvider:
    """
    Provider loader / factory.

    Reads PROVIDER from config and returns an instance of the selected provider.
    This is the single place that knows about concrete providers.
    """
    provider_name = settings.provider.strip().upper()

    if provider_name in ("COINBASE", "GDAX"):
        return CoinbaseProvider(settings)

    raise ConfigurationError(f"Unknown PROVIDER='{settings.provider}'. Expected: COINBASE")
