"""EVM JSON-RPC client with fallback support."""
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig
from ...errors import ChainUnavailable
from . import parser

logger = logging.getLogger(__name__)


class EvmClient:
    """EVM chain RPC client with automatic endpoint fallback."""

    def __init__(self, config: ChainConfig) -> None:
        self.chain = config.name
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.current_rpc_index = 0

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints."""
        if not self.endpoints:
            raise ChainUnavailable(self.chain, "no RPC endpoints configured")

        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
                        if "error" in result:
                            raise RuntimeError(f"RPC Error: {result['error']}")

                        if rpc_index != self.current_rpc_index:
                            logger.info("%s: switched to RPC endpoint %s", self.chain, rpc_url)
                            self.current_rpc_index = rpc_index

                        return result.get("result")
            except Exception as e:
                last_error = e
                logger.warning("%s: RPC endpoint %s failed: %s", self.chain, rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        raise ChainUnavailable(
            self.chain, f"All RPC endpoints failed. Last error: {last_error}"
        )

    async def get_balance(self, address: str) -> int:
        """Native balance in wei."""
        result = await self.rpc_call("eth_getBalance", [address, "latest"])
        return parser.parse_hex_quantity(result)

    async def get_token_balance(self, token_address: str, owner: str) -> int:
        """ERC-20 ``balanceOf`` in raw token units."""
        result = await self.rpc_call(
            "eth_call",
            [{"to": token_address, "data": parser.encode_balance_of(owner)}, "latest"],
        )
        return parser.parse_hex_quantity(result)

    async def get_gas_price_gwei(self) -> float:
        result = await self.rpc_call("eth_gasPrice", [])
        return parser.wei_to_gwei(parser.parse_hex_quantity(result))
