"""Pyth Network price oracle with a short-lived cache."""
from __future__ import annotations

import logging
import ssl
import time
from typing import Callable

import aiohttp
import certifi

from ..config import PythConfig

logger = logging.getLogger(__name__)


class PythOracle:
    """Fetch prices from Pyth Network oracle.

    Prices younger than ``cache_ttl_seconds`` are served from memory. When
    Hermes is unreachable the last known prices are returned instead.
    """

    def __init__(
        self, config: PythConfig, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = dict(config.feeds)
        self.cache_ttl = config.cache_ttl_seconds
        self.timeout = config.timeout
        self._clock = clock
        self._cache: dict[str, tuple[float, float]] = {}

    def _cached(self, symbols: list[str], fresh_only: bool) -> dict[str, float]:
        now = self._clock()
        prices: dict[str, float] = {}
        for symbol in symbols:
            entry = self._cache.get(symbol)
            if entry is None:
                continue
            price, fetched_at = entry
            if not fresh_only or now - fetched_at < self.cache_ttl:
                prices[symbol] = price
        return prices

    async def fetch_prices(self, symbols: list[str] | None = None) -> dict[str, float]:
        """Fetch current prices from Pyth Network.

        Args:
            symbols: Optional list of symbols to fetch. If None, fetches all
                     configured feeds.
        """
        wanted = [s.upper() for s in symbols] if symbols is not None else list(self.price_feeds)
        feeds = {k: v for k, v in self.price_feeds.items() if k in wanted}

        prices = self._cached(list(feeds), fresh_only=True)
        feeds = {k: v for k, v in feeds.items() if k not in prices}

        feed_ids = list(set(feeds.values()))
        if not feed_ids:
            return prices

        query_params = "&".join([f"ids[]={fid}" for fid in feed_ids])
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching prices from Pyth: HTTP %s", response.status
                        )
                        prices.update(self._cached(list(feeds), fresh_only=False))
                        return prices

                    data = await response.json()
                    parsed = data.get("parsed", [])

                    # Reverse mapping: Hermes returns ids without the 0x prefix
                    id_to_assets: dict[str, list[str]] = {}
                    for asset, feed_id in feeds.items():
                        id_to_assets.setdefault(feed_id.lower().removeprefix("0x"), []).append(asset)

                    now = self._clock()
                    for item in parsed:
                        feed_id = str(item.get("id", "")).lower().removeprefix("0x")
                        price_data = item.get("price", {})
                        price_raw = int(price_data.get("price", 0))
                        expo = int(price_data.get("expo", 0))

                        price = price_raw * (10**expo)

                        for asset in id_to_assets.get(feed_id, []):
                            prices[asset] = price
                            self._cache[asset] = (price, now)

                    logger.info("Fetched %d prices from Pyth Network", len(prices))
                    for asset, price in sorted(prices.items()):
                        logger.debug("  %s: $%.4f", asset, price)

        except Exception as e:
            logger.error("Error fetching prices from Pyth: %s", e)
            prices.update(self._cached(list(feeds), fresh_only=False))

        return prices
