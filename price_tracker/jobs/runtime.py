from __future__ import annotations

import asyncio
import contextlib
import logging
import traceback
from typing import List, Optional

from price_tracker.config import Settings
from price_tracker.indicators.engine import IndicatorRefresher
from price_tracker.jobs.scheduler import PairScheduler
from price_tracker.jobs.seeder import seed_tracker
from price_tracker.models.market import Account
from price_tracker.providers.base import MarketDataProvider
from price_tracker.state import PriceTrackerRegistry, Refresher

log = logging.getLogger("runtime")


class PriceTrackerRuntime:
    """
    Owns the registry and one scheduler per pair.

    start() is all-or-nothing: if any pair fails to seed, every scheduler
    armed so far is stopped and the error is re-raised; `registry` stays None.
    """

    def __init__(
        self,
        settings: Settings,
        provider: MarketDataProvider,
        refresher: Optional[Refresher] = None,
    ):
        self.settings = settings
        self.provider = provider
        self.refresher = refresher or IndicatorRefresher(settings.periods)
        self.registry: Optional[PriceTrackerRegistry] = None
        self.schedulers: List[PairScheduler] = []

    async def start(self) -> PriceTrackerRegistry:
        registry = PriceTrackerRegistry(capacity=self.settings.price_cache_size)
        accounts_task = asyncio.create_task(self._load_accounts(registry))

        try:
            for product in self.settings.products:
                for granularity in self.settings.granularities:
                    tracker = await seed_tracker(
                        self.provider,
                        product,
                        granularity,
                        self.settings.price_cache_size,
                        self.refresher,
                    )
                    registry.register(tracker)

                    scheduler = PairScheduler(tracker)
                    scheduler.start()
                    self.schedulers.append(scheduler)

            await accounts_task
        except BaseException:
            accounts_task.cancel()
            # Balances never mask the seeding error being re-raised.
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await accounts_task
            await self.stop()
            raise

        self.registry = registry
        log.info(
            "Price tracker ready products=%s granularities=%s capacity=%d",
            self.settings.products,
            self.settings.granularities,
            self.settings.price_cache_size,
        )
        return registry

    async def stop(self) -> None:
        schedulers, self.schedulers = self.schedulers, []
        for scheduler in schedulers:
            await scheduler.stop()

    async def _load_accounts(self, registry: PriceTrackerRegistry) -> None:
        if not self.settings.has_credentials:
            log.info("No exchange credentials configured, skipping account balances")
            return

        try:
            rows = await self.provider.fetch_accounts()
        except Exception as e:
            # Balances are informational here; the candle core doesn't depend on them.
            log.error("Account balance fetch failed error=%s", repr(e))
            log.error(traceback.format_exc())
            return

        for row in rows:
            try:
                account = Account.from_row(row)
            except Exception as e:
                log.error("Skipping malformed account row=%s error=%s", row, repr(e))
                continue
            registry.accounts[account.currency] = account
            log.debug("%s available funds: %s", account.currency, account.available)


async def initialize(
    settings: Settings,
    provider: MarketDataProvider,
    refresher: Optional[Refresher] = None,
) -> PriceTrackerRuntime:
    """Build a runtime and start it. Raises on any seeding failure."""
    runtime = PriceTrackerRuntime(settings, provider, refresher)
    await runtime.start()
    return runtime
