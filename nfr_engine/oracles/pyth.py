"""Pyth Network price feeds, refreshed from the Hermes HTTP API."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Iterable

import aiohttp
import certifi

from ..config import PythConfig
from ..models import PriceQuote

logger = logging.getLogger(__name__)


class PythPriceFeed:
    """Latest Pyth quote for one feed id.

    Pyth reports ``price * 10^expo``; the quote carries ``-expo`` as its
    decimals. Until the first refresh the quote has ``updated_at == 0`` and
    is rejected as stale by the oracle adapter.
    """

    def __init__(self, feed_id: str) -> None:
        self.feed_id = feed_id
        self._quote = PriceQuote(price=0, updated_at=0, decimals=8)

    def update(self, price: int, expo: int, publish_time: int) -> None:
        self._quote = PriceQuote(
            price=price, updated_at=publish_time, decimals=-expo
        )

    def latest_quote(self) -> PriceQuote:
        return self._quote


class PythHermesClient:
    """Fetch latest prices from Pyth Hermes and push them into feeds."""

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.timeout = config.timeout

    async def refresh(self, feeds: Iterable[PythPriceFeed]) -> int:
        """Refresh every feed from a single Hermes request.

        Returns the number of feeds updated. HTTP and network errors are
        logged; affected feeds keep their previous quote.
        """
        by_id: dict[str, list[PythPriceFeed]] = {}
        for feed in feeds:
            by_id.setdefault(_normalize_id(feed.feed_id), []).append(feed)

        if not by_id:
            return 0

        query_params = "&".join([f"ids[]={fid}" for fid in sorted(by_id)])
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        updated = 0
        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching prices from Pyth: HTTP %s", response.status
                        )
                        return 0

                    data = await response.json()

            if not isinstance(data, dict):
                raise ValueError(f"unexpected Hermes response: {type(data).__name__}")

            for item in data.get("parsed") or []:
                if not isinstance(item, dict):
                    continue
                feed_id = _normalize_id(item.get("id", ""))
                price_data = item.get("price") or {}
                price = int(price_data.get("price", 0))
                expo = int(price_data.get("expo", 0))
                publish_time = int(price_data.get("publish_time", 0))

                for feed in by_id.get(feed_id, []):
                    feed.update(price, expo, publish_time)
                    updated += 1
                    logger.debug(
                        "Pyth %s: price=%s expo=%s publish_time=%s",
                        feed_id, price, expo, publish_time,
                    )

        except (
            aiohttp.ClientError,
            asyncio.TimeoutError,
            AttributeError,
            OSError,
            TypeError,
            ValueError,
        ) as e:
            logger.error("Error fetching prices from Pyth: %s", e)

        logger.info("Refreshed %d Pyth feeds", updated)
        return updated


def _normalize_id(feed_id: str) -> str:
    """Hermes returns ids without the 0x prefix."""
    feed_id = feed_id.lower()
    return feed_id[2:] if feed_id.startswith("0x") else feed_id
