"""Gas price source protocol — live gas hints for the fee estimator."""
from typing import Protocol


class GasPriceSource(Protocol):
    async def get_gas_price_gwei(self) -> float: ...
