"""EVM balance source — native + ERC-20 balances priced through an oracle."""
from __future__ import annotations

import asyncio
import logging

from ...config import ChainConfig, TokenConfig
from ...interfaces.price_oracle import PriceOracle
from ...models import ChainAsset
from . import parser
from .client import EvmClient

logger = logging.getLogger(__name__)


class EvmBalanceSource:
    """Read one EVM chain's balances for an address.

    A failed native balance read fails the whole chain. A failed token read
    only zeroes that token.
    """

    def __init__(
        self, config: ChainConfig, client: EvmClient, oracle: PriceOracle
    ) -> None:
        self._config = config
        self._client = client
        self._oracle = oracle

    async def _token_amount(self, token: TokenConfig, address: str) -> float:
        try:
            raw = await self._client.get_token_balance(token.address, address)
        except Exception as e:
            logger.warning(
                "%s: balanceOf %s failed: %s", self._config.name, token.symbol, e
            )
            return 0.0
        return parser.to_units(raw, token.decimals)

    async def fetch_assets(self, address: str) -> list[ChainAsset]:
        native_raw = await self._client.get_balance(address)
        token_amounts = await asyncio.gather(
            *(self._token_amount(token, address) for token in self._config.tokens)
        )

        rows: list[tuple[str, float, str, int]] = [
            (
                self._config.native_currency,
                parser.to_units(native_raw, self._config.native_decimals),
                parser.NATIVE_ADDRESS,
                self._config.native_decimals,
            )
        ]
        for token, amount in zip(self._config.tokens, token_amounts):
            rows.append((token.symbol, amount, token.address, token.decimals))

        prices = await self._oracle.fetch_prices([symbol for symbol, *_ in rows])

        assets = [
            ChainAsset(
                symbol=symbol,
                amount=amount,
                value_usd=amount * prices.get(symbol, 0.0),
                chain=self._config.name,
                contract_address=contract,
                decimals=decimals,
            )
            for symbol, amount, contract, decimals in rows
        ]
        logger.info(
            "%s: read %d balances for %s", self._config.name, len(assets), address
        )
        return assets
