"""Cross-chain balance aggregation and rebalancing for DAO treasuries."""

__version__ = "1.0.0"
