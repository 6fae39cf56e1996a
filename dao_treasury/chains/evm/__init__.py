from .client import EvmClient
from .source import EvmBalanceSource

__all__ = ["EvmClient", "EvmBalanceSource"]
