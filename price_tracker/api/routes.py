from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, Path, Request

from price_tracker.models.api import TrackerDetail, TrackerSummary
from price_tracker.state import PriceTrackerRegistry

router = APIRouter()


def _registry(request: Request) -> PriceTrackerRegistry:
    runtime = getattr(request.app.state, "runtime", None)
    registry = getattr(runtime, "registry", None)
    if registry is None:
        raise HTTPException(status_code=503, detail="price tracker is not initialized")
    return registry


@router.get("/trackers", response_model=List[TrackerSummary])
def list_trackers(request: Request):
    """One summary per (product, granularity) pair."""
    registry = _registry(request)
    return [TrackerSummary.from_tracker(t) for t in registry.trackers()]


@router.get("/trackers/{product}/{granularity}", response_model=TrackerDetail)
def get_tracker(
    request: Request,
    product: str = Path(..., description="Product id, e.g., BTC-USD"),
    granularity: int = Path(..., description="Candle period in seconds, e.g., 60"),
):
    """
    Stored candles (oldest -> newest), the live candle and the indicator set.
    """
    registry = _registry(request)
    try:
        tracker = registry.get_tracker(product.upper(), granularity)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"no tracker for {product.upper()}@{granularity}s") from None
    return TrackerDetail.from_tracker(tracker)
