"""Price oracle adapter — freshness and sign checks plus decimal rescaling."""
from __future__ import annotations

import logging
import time
from typing import Callable

from ..constants import (
    DEFAULT_HEARTBEAT_SECONDS,
    DEFAULT_STALENESS_MULTIPLE,
)
from ..errors import InvalidPrice, StalePrice
from ..interfaces.price_feed import PriceFeed
from ..models import PriceQuote

logger = logging.getLogger(__name__)

_TARGET_DECIMALS = 18


def rescale(price: int, decimals: int) -> int:
    """Lift a feed answer from its native decimals to 18 decimals.

    An 8-decimal answer is multiplied by ADDITIONAL_FEED_PRECISION (1e10).
    Answers with more than 18 decimals are divided down, truncating.
    """
    if decimals <= _TARGET_DECIMALS:
        return price * 10 ** (_TARGET_DECIMALS - decimals)
    return price // 10 ** (decimals - _TARGET_DECIMALS)


class OracleLib:
    """Validated, rescaled prices for the approved collateral assets.

    Holds only feed identities; every call reads a fresh quote.
    """

    def __init__(
        self,
        feeds: dict[str, PriceFeed],
        heartbeats: dict[str, int] | None = None,
        staleness_multiple: int = DEFAULT_STALENESS_MULTIPLE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._feeds = dict(feeds)
        self._heartbeats = dict(heartbeats or {})
        self._staleness_multiple = staleness_multiple
        self._clock = clock

    def feed_for(self, asset: str) -> PriceFeed:
        return self._feeds[asset]

    def max_age(self, asset: str) -> int:
        heartbeat = self._heartbeats.get(asset, DEFAULT_HEARTBEAT_SECONDS)
        return heartbeat * self._staleness_multiple

    def checked_quote(self, asset: str) -> PriceQuote:
        """Read the latest quote for ``asset``, rejecting stale or bad answers."""
        quote = self._feeds[asset].latest_quote()

        max_age = self.max_age(asset)
        age = self._clock() - quote.updated_at
        # updated_at == 0 marks an incomplete round
        if quote.updated_at <= 0 or age > max_age:
            logger.warning(
                "Rejecting stale quote for %s (updated_at=%s, age=%.0fs)",
                asset, quote.updated_at, age,
            )
            raise StalePrice(asset, age, max_age)

        if quote.price <= 0:
            logger.warning("Rejecting non-positive quote for %s: %s", asset, quote.price)
            raise InvalidPrice(asset, quote.price)

        return quote

    def price(self, asset: str) -> int:
        """Validated USD price of one whole ``asset`` unit, scaled by PRECISION."""
        quote = self.checked_quote(asset)
        price = rescale(quote.price, quote.decimals)
        if price <= 0:
            raise InvalidPrice(asset, price)
        return price

