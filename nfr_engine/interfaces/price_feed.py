"""Price feed protocol — external price source abstraction."""
from typing import Protocol

from ..models import PriceQuote


class PriceFeed(Protocol):
    """Abstract interface for a single asset's USD price feed."""

    def latest_quote(self) -> PriceQuote: ...
