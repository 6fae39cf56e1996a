"""Fee and gas estimation with cached live gas hints and static fallbacks."""
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from typing import Callable

from ..config import FeeConfig
from ..interfaces.gas_source import GasPriceSource
from ..models import ChainFeeQuote

logger = logging.getLogger(__name__)


class FeeEstimator:
    """Serve per-chain fee quotes.

    Network and gas fees come from the fee table in config. The gas hint is
    read from a live source when one is registered for the chain; a failing
    source falls back to the last good reading, then to the configured
    static hint. ``get_fees`` never raises because of a source failure.
    """

    def __init__(
        self,
        config: FeeConfig,
        gas_sources: Mapping[str, GasPriceSource] | None = None,
        clock: Callable[[], float] = time.monotonic,
        timeout: float = 4.0,
    ) -> None:
        self._config = config
        self._gas_sources = dict(gas_sources or {})
        self._clock = clock
        self._timeout = timeout
        self._last_good: dict[str, tuple[float, float]] = {}

    @property
    def trading_fee_bps(self) -> float:
        return self._config.trading_fee_bps

    def static_quote(self, chain: str) -> ChainFeeQuote:
        fee = self._config.for_chain(chain)
        return ChainFeeQuote(
            chain=chain,
            network_fee=fee.network_fee,
            gas_fee=fee.gas_fee,
            gas_hint_gwei=fee.gas_hint_gwei,
            source="static",
        )

    def _with_hint(self, chain: str, gas_hint: float, source: str) -> ChainFeeQuote:
        fee = self._config.for_chain(chain)
        return ChainFeeQuote(
            chain=chain,
            network_fee=fee.network_fee,
            gas_fee=fee.gas_fee,
            gas_hint_gwei=gas_hint,
            source=source,
        )

    async def _quote(self, chain: str) -> ChainFeeQuote:
        cached = self._last_good.get(chain)
        if cached and self._clock() - cached[1] < self._config.cache_ttl_seconds:
            return self._with_hint(chain, cached[0], "cached")

        source = self._gas_sources.get(chain)
        if source is None:
            return self.static_quote(chain)

        try:
            gwei = await asyncio.wait_for(source.get_gas_price_gwei(), timeout=self._timeout)
        except Exception as e:
            if cached:
                logger.warning("%s: gas source failed (%s), using last good hint", chain, e)
                return self._with_hint(chain, cached[0], "cached")
            logger.warning("%s: gas source failed (%s), using static fee table", chain, e)
            return self.static_quote(chain)

        self._last_good[chain] = (gwei, self._clock())
        return self._with_hint(chain, gwei, "live")

    async def get_fees(self, chains: Sequence[str]) -> dict[str, ChainFeeQuote]:
        quotes = await asyncio.gather(*(self._quote(chain) for chain in chains))
        return dict(zip(chains, quotes))


def cheapest_chain(quotes: Mapping[str, ChainFeeQuote]) -> str | None:
    """Chain with the lowest flat fee, ties broken by name."""
    if not quotes:
        return None
    return min(quotes.values(), key=lambda q: (q.flat_fee, q.chain)).chain
