"""Treasury service — the façade wiring collection, scoring, planning and bridging."""
from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Callable, Mapping, Sequence

from ..chains.evm import EvmBalanceSource, EvmClient
from ..chains.registry import ChainRegistry
from ..chains.static import StaticBalanceSource
from ..config import AppConfig, ChainConfig
from ..inputs import AssetInput
from ..interfaces.advisor import Advisor
from ..interfaces.balance_source import BalanceSource
from ..interfaces.price_oracle import PriceOracle
from ..interfaces.scheduler import Scheduler
from ..models import (
    Action,
    BridgeOperation,
    ChainAsset,
    ChainFeeQuote,
    PortfolioAnalysis,
    PortfolioSnapshot,
    RebalancePlan,
)
from ..oracles.pyth import PythOracle
from .advisor import RuleBasedAdvisor
from .aggregator import aggregate
from .bridge import BridgeOrchestrator
from .collector import BalanceCollector
from .fees import FeeEstimator
from .planner import RebalancePlanner
from .risk import RiskScorer
from .scheduler import LoopScheduler

logger = logging.getLogger(__name__)

REBALANCE_WINDOW = "15-45 minutes"

SourceFactory = Callable[[ChainConfig], BalanceSource]


class TreasuryService:
    """Entry point for every treasury operation.

    Built once (see ``build_service``) and shared. The chain registry is the
    only state that changes after construction, and it changes by swapping
    in a new mapping along with a matching collector.
    """

    def __init__(
        self,
        config: AppConfig,
        registry: ChainRegistry,
        source_factory: SourceFactory,
        fees: FeeEstimator,
        bridge: BridgeOrchestrator,
        oracle: PriceOracle,
        advisor: Advisor,
    ) -> None:
        self.config = config
        self.registry = registry
        self._source_factory = source_factory
        self._collector = self._build_collector(registry.snapshot())
        self.fees = fees
        self.bridge = bridge
        self._oracle = oracle
        self._advisor = advisor
        self._scorer = RiskScorer(config.risk)
        self._planner = RebalancePlanner(config.planner, fees.trading_fee_bps)

    def _build_collector(self, chains: Mapping[str, ChainConfig]) -> BalanceCollector:
        return BalanceCollector(
            {name: self._source_factory(chain) for name, chain in chains.items()}
        )

    def reload_chains(self, chains: Mapping[str, ChainConfig]) -> None:
        """Swap in a new chain set; requests already running keep the old one."""
        collector = self._build_collector(chains)
        self.registry.replace(chains)
        self._collector = collector

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    async def _snapshot(
        self, address: str, chains: Mapping[str, ChainConfig], collector: BalanceCollector
    ) -> PortfolioSnapshot:
        assets, errors = await collector.collect_balances(address, list(chains.values()))
        return aggregate(assets, configured_chains=len(chains), per_chain_errors=errors)

    async def get_multi_chain_balances(self, address: str) -> PortfolioSnapshot:
        logger.info("Fetching multi-chain balances for %s", address)
        return await self._snapshot(address, self.registry.snapshot(), self._collector)

    async def _price_inputs(self, inputs: Sequence[AssetInput]) -> list[ChainAsset]:
        unpriced = sorted(
            {a.symbol for a in inputs if a.value_usd is None and a.amount is not None}
        )
        prices = await self._oracle.fetch_prices(unpriced) if unpriced else {}
        for symbol in unpriced:
            if symbol not in prices:
                logger.warning("No price available for %s, valuing at 0", symbol)

        assets = []
        for a in inputs:
            amount = a.amount or 0.0
            value = a.value_usd
            if value is None:
                value = amount * prices.get(a.symbol, 0.0)
            assets.append(
                ChainAsset(symbol=a.symbol, amount=amount, value_usd=value, chain=a.chain)
            )
        return assets

    @staticmethod
    def _declared_allocation(inputs: Sequence[AssetInput]) -> dict[str, float]:
        """Percentages the caller stated, summed per symbol."""
        declared: dict[str, list[float]] = {}
        for a in inputs:
            if a.percentage is not None:
                declared.setdefault(a.symbol, []).append(a.percentage)
        return {symbol: math.fsum(pcts) for symbol, pcts in sorted(declared.items())}

    async def analyze_portfolio(self, inputs: Sequence[AssetInput]) -> PortfolioAnalysis:
        assets = await self._price_inputs(inputs)
        snapshot = aggregate(assets)
        risk = self._scorer.score(snapshot)
        recommendations = await self._advisor.recommend(snapshot, risk)
        logger.info(
            "Analyzed %d assets worth $%.2f", snapshot.unique_asset_count, snapshot.total_value_usd
        )
        return PortfolioAnalysis(
            snapshot=snapshot,
            risk=risk,
            recommendations=tuple(recommendations),
            declared_allocation=self._declared_allocation(inputs),
        )

    # ------------------------------------------------------------------
    # Rebalance path
    # ------------------------------------------------------------------

    async def get_cross_chain_rebalancing(
        self, address: str, target_allocation: Mapping[str, float]
    ) -> RebalancePlan:
        chains = self.registry.snapshot()
        snapshot = await self._snapshot(address, chains, self._collector)
        fees = await self.fees.get_fees(list(chains))
        known = set().union(*(c.known_symbols() for c in chains.values()))

        operations = self._planner.plan(snapshot, target_allocation, fees, known)
        actionable = sum(1 for op in operations if op.action is not Action.HOLD)

        return RebalancePlan(
            plan_id=f"rebalance_{uuid.uuid4().hex[:12]}",
            operations=tuple(operations),
            total_estimated_fees_usd=round(
                math.fsum(op.estimated_fees_usd for op in operations), 2
            ),
            estimated_time=REBALANCE_WINDOW,
            recommendation=(
                f"Execute {actionable} operations to optimize allocation"
                if actionable
                else "Portfolio is already well balanced"
            ),
            per_chain_errors=dict(snapshot.per_chain_errors),
        )

    def initiate_cross_chain_bridge(
        self,
        from_chain: str,
        to_chain: str,
        asset: str,
        amount: float,
        recipient: str,
    ) -> BridgeOperation:
        return self.bridge.initiate_bridge(from_chain, to_chain, asset, amount, recipient)

    def get_bridge_status(self, operation_id: str) -> BridgeOperation:
        return self.bridge.get_bridge_status(operation_id)

    async def get_gas_optimization(self) -> dict[str, ChainFeeQuote]:
        return await self.fees.get_fees(self.registry.names())


def build_service(
    config: AppConfig,
    scheduler: Scheduler | None = None,
    advisor: Advisor | None = None,
) -> TreasuryService:
    """Wire a TreasuryService from configuration.

    EVM chains share one EvmClient between their balance source and the fee
    estimator's gas reading.
    """
    oracle = PythOracle(config.price_oracle.pyth)
    clients = {
        name: EvmClient(chain)
        for name, chain in config.chains.items()
        if chain.source == "evm"
    }

    def source_for(chain: ChainConfig) -> BalanceSource:
        if chain.source == "evm":
            client = clients.get(chain.name) or EvmClient(chain)
            return EvmBalanceSource(chain, client, oracle)
        return StaticBalanceSource(chain)

    registry = ChainRegistry(config.chains)
    fees = FeeEstimator(config.fees, gas_sources=clients)
    bridge = BridgeOrchestrator(
        registry, fees, config.bridge, scheduler or LoopScheduler()
    )

    logger.info(
        "Treasury service ready: %d chains (%d evm)", len(registry), len(clients)
    )
    return TreasuryService(
        config=config,
        registry=registry,
        source_factory=source_for,
        fees=fees,
        bridge=bridge,
        oracle=oracle,
        advisor=advisor or RuleBasedAdvisor(),
    )
