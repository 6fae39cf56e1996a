"""Static balance source — serves configured holdings (demo data)."""
from __future__ import annotations

import logging

from ..config import ChainConfig
from ..models import ChainAsset

logger = logging.getLogger(__name__)


class StaticBalanceSource:
    """Return the fixed holdings configured for a chain, whatever the address."""

    def __init__(self, config: ChainConfig) -> None:
        self._config = config

    async def fetch_assets(self, address: str) -> list[ChainAsset]:
        logger.debug(
            "Serving %d static holdings on %s for %s",
            len(self._config.holdings),
            self._config.name,
            address,
        )
        return [
            ChainAsset(
                symbol=h.symbol,
                amount=h.amount,
                value_usd=h.value_usd,
                chain=self._config.name,
                contract_address=h.contract_address,
                decimals=h.decimals,
            )
            for h in self._config.holdings
        ]
