"""Balance collector — concurrent per-chain fan-out with settle-all fan-in."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence

from ..config import ChainConfig
from ..errors import ChainUnavailable
from ..interfaces.balance_source import BalanceSource
from ..models import ChainAsset

logger = logging.getLogger(__name__)


class BalanceCollector:
    """Query every chain for an address at once and keep whatever succeeds.

    Each chain runs in its own task under its own ``fetch_budget``, which
    leaves room for the client to fail over between RPC endpoints. A failed
    or timed-out chain contributes no assets and one entry in the error map;
    the other chains are unaffected. No retries happen here.
    """

    def __init__(self, sources: Mapping[str, BalanceSource]) -> None:
        self._sources = dict(sources)

    async def _fetch_chain(
        self, address: str, chain: ChainConfig
    ) -> list[ChainAsset] | ChainUnavailable:
        source = self._sources.get(chain.name)
        if source is None:
            return ChainUnavailable(chain.name, "no balance source configured")

        try:
            assets = await asyncio.wait_for(
                source.fetch_assets(address), timeout=chain.fetch_budget
            )
        except asyncio.TimeoutError:
            return ChainUnavailable(chain.name, f"timed out after {chain.fetch_budget:g}s")
        except ChainUnavailable as e:
            return e
        except Exception as e:
            return ChainUnavailable(chain.name, str(e) or type(e).__name__)

        # Sources must only report their own chain
        return [a for a in assets if a.chain == chain.name]

    async def collect_balances(
        self, address: str, chains: Sequence[ChainConfig]
    ) -> tuple[list[ChainAsset], dict[str, str]]:
        """Return (assets from healthy chains, {failed chain: reason})."""
        results = await asyncio.gather(
            *(self._fetch_chain(address, chain) for chain in chains)
        )

        assets: list[ChainAsset] = []
        errors: dict[str, str] = {}
        for chain, result in zip(chains, results):
            if isinstance(result, ChainUnavailable):
                logger.warning("Balance fetch failed on %s: %s", chain.name, result.reason)
                errors[chain.name] = result.reason
            else:
                assets.extend(result)

        logger.info(
            "Collected %d assets from %d/%d chains",
            len(assets),
            len(chains) - len(errors),
            len(chains),
        )
        return assets, errors
