"""Chain balance sources and the chain registry."""
from .registry import ChainRegistry
from .static import StaticBalanceSource

__all__ = ["ChainRegistry", "StaticBalanceSource"]
