"""Rebalance planning — diff current holdings against a target allocation."""
from __future__ import annotations

import logging
from collections.abc import Collection, Mapping

from ..config import PlannerConfig
from ..errors import InsufficientAllocationData
from ..models import (
    Action,
    AggregatedAsset,
    ChainFeeQuote,
    PortfolioSnapshot,
    RebalanceOperation,
)

logger = logging.getLogger(__name__)


def classify(difference: float, threshold: float) -> Action:
    if difference > threshold:
        return Action.BUY
    if difference < -threshold:
        return Action.SELL
    return Action.HOLD


class RebalancePlanner:
    """Turn a snapshot and a target allocation into buy/sell/hold moves.

    Chain choice: BUY goes to the candidate chain with the best liquidity
    score, SELL to the holding chain with the best fee score. Ties break on
    chain name so the plan is deterministic. Candidates are the chains in
    the fee table passed to ``plan``.
    """

    def __init__(self, config: PlannerConfig, trading_fee_bps: float) -> None:
        self._config = config
        self._fee_bps = trading_fee_bps

    def _best_chain(self, candidates: Collection[str], attribute: str) -> str:
        if not candidates:
            return ""
        return min(
            candidates,
            key=lambda chain: (-getattr(self._config.score_for(chain), attribute), chain),
        )

    def _recommended_chain(
        self,
        action: Action,
        held: AggregatedAsset | None,
        fees: Mapping[str, ChainFeeQuote],
    ) -> str:
        holding_chains = [
            h.chain for h in (held.chain_breakdown if held else ()) if h.chain in fees
        ]
        if action is Action.BUY:
            return self._best_chain(list(fees), "liquidity")
        if action is Action.SELL:
            return self._best_chain(holding_chains or list(fees), "fees")
        if held and held.chain_breakdown:
            return max(held.chain_breakdown, key=lambda h: (h.value_usd, h.chain)).chain
        return ""

    def _estimate_fees(
        self, amount_usd: float, chain: str, fees: Mapping[str, ChainFeeQuote]
    ) -> float:
        quote = fees.get(chain)
        flat = quote.flat_fee if quote else 0.0
        return round(amount_usd * self._fee_bps / 10_000 + flat, 2)

    def _operation(
        self,
        symbol: str,
        target_pct: float,
        snapshot: PortfolioSnapshot,
        fees: Mapping[str, ChainFeeQuote],
        known_symbols: Collection[str],
    ) -> RebalanceOperation:
        held = snapshot.asset(symbol)
        target_value = target_pct / 100 * snapshot.total_value_usd

        if held is None and symbol not in known_symbols:
            raise InsufficientAllocationData(symbol)

        current_value = held.total_value_usd if held else 0.0
        difference = target_value - current_value
        action = classify(difference, self._config.threshold_usd)
        amount = abs(difference)
        chain = self._recommended_chain(action, held, fees)

        return RebalanceOperation(
            asset=symbol,
            current_value_usd=current_value,
            target_value_usd=target_value,
            difference=difference,
            action=action,
            amount_usd=amount,
            recommended_chain=chain,
            estimated_fees_usd=0.0 if action is Action.HOLD else self._estimate_fees(amount, chain, fees),
        )

    def plan(
        self,
        snapshot: PortfolioSnapshot,
        target_allocation: Mapping[str, float],
        fees: Mapping[str, ChainFeeQuote],
        known_symbols: Collection[str] = (),
    ) -> list[RebalanceOperation]:
        """Return one operation per target symbol, sorted by symbol.

        A symbol with no holding and no configured chain presence yields a
        zero-impact HOLD entry carrying a note instead of failing the plan.
        """
        known = {s.upper() for s in known_symbols}
        operations: list[RebalanceOperation] = []

        for symbol, target_pct in sorted(
            (s.upper(), pct) for s, pct in target_allocation.items()
        ):
            try:
                operations.append(
                    self._operation(symbol, target_pct, snapshot, fees, known)
                )
            except InsufficientAllocationData as e:
                logger.warning("%s", e.message)
                operations.append(
                    RebalanceOperation(
                        asset=symbol,
                        current_value_usd=0.0,
                        target_value_usd=0.0,
                        difference=0.0,
                        action=Action.HOLD,
                        amount_usd=0.0,
                        recommended_chain="",
                        estimated_fees_usd=0.0,
                        note=e.message,
                    )
                )

        logger.info(
            "Planned %d operations (%d actionable)",
            len(operations),
            sum(1 for op in operations if op.action is not Action.HOLD),
        )
        return operations
