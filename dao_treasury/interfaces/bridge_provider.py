"""Bridge provider protocol — submits and confirms cross-chain transfers."""
from typing import Protocol

from ..models import BridgeOperation


class BridgeProvider(Protocol):
    def dispatch(self, operation: BridgeOperation) -> str:
        """Submit the transfer and return its transaction hash."""
        ...

    def confirm(self, operation: BridgeOperation) -> bool:
        """Return True when the transfer settled on the destination chain."""
        ...
