"""Protocol interfaces for the treasury engine."""
from .advisor import Advisor
from .balance_source import BalanceSource
from .bridge_provider import BridgeProvider
from .gas_source import GasPriceSource
from .price_oracle import PriceOracle
from .scheduler import Scheduler

__all__ = [
    "Advisor",
    "BalanceSource",
    "BridgeProvider",
    "GasPriceSource",
    "PriceOracle",
    "Scheduler",
]
