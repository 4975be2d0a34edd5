from __future__ import annotations


class PriceTrackerError(Exception):
    """Base class for every error raised by the price tracker."""


class ConfigurationError(PriceTrackerError, RuntimeError):
    """Invalid or missing process configuration, reported at startup."""


class SeedFetchFailure(PriceTrackerError):
    """
    Historical data for one (product, granularity) pair could not be loaded.

    Any one of these aborts the whole startup sequence.
    """

    def __init__(self, product: str, granularity: int, reason: str) -> None:
        super().__init__(f"{product}@{granularity}s: {reason}")
        self.product = product
        self.granularity = granularity


class TickComputationFailure(PriceTrackerError):
    """A steady-state tick failed; the pair keeps its last committed state."""

    def __init__(self, product: str, granularity: int, reason: str) -> None:
        super().__init__(f"{product}@{granularity}s: {reason}")
        self.product = product
        self.granularity = granularity
