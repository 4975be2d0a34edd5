import logging

from fastapi import FastAPI

from price_tracker.api.routes import router as api_router
from price_tracker.config import get_settings
from price_tracker.jobs.runtime import PriceTrackerRuntime
from price_tracker.providers.loader import get_provider

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

provider = get_provider(settings)

app = FastAPI(title="Price Tracker API", version="0.1.0")
app.include_router(api_router)
app.state.runtime = PriceTrackerRuntime(settings, provider)


@app.on_event("startup")
async def _startup():
    # Seeds every product/granularity pair and arms one timer per pair.
    # Any seeding failure aborts startup.
    await app.state.runtime.start()


@app.on_event("shutdown")
async def _shutdown():
    await app.state.runtime.stop()
    await provider.close()


@app.get("/health")
def health():
    return {
        "status": "ok",
        "app_env": settings.app_env,
        "provider_config": settings.provider,
        "provider_loaded": provider.__class__.__name__,
        "products": settings.products,
        "granularities": settings.granularities,
        "capacity": settings.price_cache_size,
    }
