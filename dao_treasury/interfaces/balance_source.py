"""Balance source protocol — per-chain balance reads."""
from typing import Protocol

from ..models import ChainAsset


class BalanceSource(Protocol):
    """Abstract interface for reading one chain's balances for an address.

    Implementations raise on failure; the collector turns that into a
    per-chain error entry.
    """

    async def fetch_assets(self, address: str) -> list[ChainAsset]: ...
