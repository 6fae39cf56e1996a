"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Action(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class BridgeStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (BridgeStatus.COMPLETED, BridgeStatus.FAILED)


@dataclass(frozen=True)
class ChainAsset:
    """Single asset balance read from one chain."""

    symbol: str
    amount: float
    value_usd: float
    chain: str
    contract_address: str = ""
    decimals: int = 18


@dataclass(frozen=True)
class ChainHolding:
    """One chain's share of an aggregated asset."""

    chain: str
    amount: float
    value_usd: float


@dataclass(frozen=True)
class AggregatedAsset:
    symbol: str
    total_amount: float
    total_value_usd: float
    chain_breakdown: tuple[ChainHolding, ...] = ()
    diversification_score: float = 0.0
    percentage_of_portfolio: float = 0.0


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Unified view of a portfolio across chains."""

    total_value_usd: float
    unique_asset_count: int
    chains_used: int
    diversification_rating: str
    assets: tuple[AggregatedAsset, ...] = ()
    per_chain_errors: dict[str, str] = field(default_factory=dict)

    def asset(self, symbol: str) -> AggregatedAsset | None:
        symbol = symbol.upper()
        for asset in self.assets:
            if asset.symbol == symbol:
                return asset
        return None


@dataclass(frozen=True)
class RiskReport:
    risk_score: float
    diversification_score: float
    concentration_index: float
    max_asset_weight_pct: float
    stablecoin_pct: float
    alerts: tuple[str, ...] = ()


@dataclass(frozen=True)
class PortfolioAnalysis:
    snapshot: PortfolioSnapshot
    risk: RiskReport
    recommendations: tuple[str, ...] = ()
    # caller-stated percentages, kept apart from the computed ones
    declared_allocation: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class RebalanceOperation:
    asset: str
    current_value_usd: float
    target_value_usd: float
    difference: float
    action: Action
    amount_usd: float
    recommended_chain: str
    estimated_fees_usd: float
    note: str = ""


@dataclass(frozen=True)
class RebalancePlan:
    plan_id: str
    operations: tuple[RebalanceOperation, ...]
    total_estimated_fees_usd: float
    estimated_time: str
    recommendation: str
    per_chain_errors: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ChainFeeQuote:
    """Per-chain fee data; ``source`` is one of live, cached, static."""

    chain: str
    network_fee: float
    gas_fee: float
    gas_hint_gwei: float
    source: str = "static"

    @property
    def flat_fee(self) -> float:
        return self.network_fee + self.gas_fee


@dataclass(frozen=True)
class BridgeFees:
    network_fee: float
    bridge_fee: float
    gas_fee: float
    total: float


@dataclass(frozen=True)
class BridgeOperation:
    id: str
    from_chain: str
    to_chain: str
    asset: str
    amount_usd: float
    recipient: str
    fees: BridgeFees
    estimated_time_seconds: int
    status: BridgeStatus = BridgeStatus.PENDING
    tx_hash: str | None = None
    failure_reason: str | None = None
