"""Balance aggregation — merge per-chain readings into one portfolio view."""
from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable, Mapping

from ..models import AggregatedAsset, ChainAsset, ChainHolding, PortfolioSnapshot

HIGH_RATING_MIN_ASSETS = 5
MEDIUM_RATING_MIN_ASSETS = 3


def diversification_rating(unique_assets: int) -> str:
    if unique_assets > HIGH_RATING_MIN_ASSETS:
        return "High"
    if unique_assets > MEDIUM_RATING_MIN_ASSETS:
        return "Medium"
    return "Low"


def percentage_of(value: float, total: float) -> float:
    """Share of ``total`` in percent; 0.0 when there is nothing to share."""
    if total <= 0:
        return 0.0
    return value / total * 100


def aggregate(
    assets: Iterable[ChainAsset],
    configured_chains: int | None = None,
    per_chain_errors: Mapping[str, str] | None = None,
) -> PortfolioSnapshot:
    """Group chain assets by symbol and compute portfolio totals.

    The result does not depend on input order: sums use ``math.fsum`` and
    both assets and chain breakdowns are sorted.

    Args:
        assets: Per-chain readings.
        configured_chains: Denominator for each asset's diversification
            score. Defaults to the number of chains seen in ``assets``.
        per_chain_errors: Carried through to the snapshot unchanged.
    """
    by_symbol: dict[str, dict[str, list[ChainAsset]]] = defaultdict(lambda: defaultdict(list))
    for asset in assets:
        by_symbol[asset.symbol.upper()][asset.chain].append(asset)

    chains_seen = {chain for per_chain in by_symbol.values() for chain in per_chain}
    denominator = configured_chains if configured_chains is not None else len(chains_seen)

    totals: dict[str, tuple[float, float, tuple[ChainHolding, ...]]] = {}
    for symbol, per_chain in by_symbol.items():
        breakdown = tuple(
            ChainHolding(
                chain=chain,
                amount=math.fsum(a.amount for a in readings),
                value_usd=math.fsum(a.value_usd for a in readings),
            )
            for chain, readings in sorted(per_chain.items())
        )
        totals[symbol] = (
            math.fsum(a.amount for readings in per_chain.values() for a in readings),
            math.fsum(a.value_usd for readings in per_chain.values() for a in readings),
            breakdown,
        )

    total_value = math.fsum(value for _, value, _ in totals.values())

    aggregated = tuple(
        AggregatedAsset(
            symbol=symbol,
            total_amount=amount,
            total_value_usd=value,
            chain_breakdown=breakdown,
            diversification_score=len(breakdown) / denominator if denominator > 0 else 0.0,
            percentage_of_portfolio=percentage_of(value, total_value),
        )
        for symbol, (amount, value, breakdown) in sorted(totals.items())
    )

    return PortfolioSnapshot(
        total_value_usd=total_value,
        unique_asset_count=len(aggregated),
        chains_used=len(chains_seen),
        diversification_rating=diversification_rating(len(aggregated)),
        assets=aggregated,
        per_chain_errors=dict(sorted((per_chain_errors or {}).items())),
    )
