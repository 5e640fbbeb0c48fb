"""In-process price feed with a settable answer (mock aggregator)."""
from __future__ import annotations

import time

from ..constants import FEED_DECIMALS
from ..models import PriceQuote


class StaticPriceFeed:
    """Price feed whose answer is pushed by the owner.

    ``update_answer`` stamps the quote with the current time unless an
    explicit ``updated_at`` is given.
    """

    def __init__(
        self,
        answer: int,
        decimals: int = FEED_DECIMALS,
        updated_at: int | None = None,
    ) -> None:
        self.decimals = decimals
        self._answer = answer
        self._updated_at = int(time.time()) if updated_at is None else updated_at

    def update_answer(self, answer: int, updated_at: int | None = None) -> None:
        self._answer = answer
        self._updated_at = int(time.time()) if updated_at is None else updated_at

    def latest_quote(self) -> PriceQuote:
        return PriceQuote(
            price=self._answer,
            updated_at=self._updated_at,
            decimals=self.decimals,
        )
