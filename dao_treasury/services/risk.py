"""Risk and diversification scoring for an aggregated portfolio."""
from __future__ import annotations

import logging
import math

from ..config import RiskConfig
from ..models import PortfolioSnapshot, RiskReport

logger = logging.getLogger(__name__)

ZERO_VALUE_ALERT = "⚠️ Portfolio has zero recorded value: verify asset balances"


def herfindahl_index(weights: list[float]) -> float:
    """Sum of squared weights; 1.0 is a single-asset portfolio."""
    return math.fsum(w * w for w in weights)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


class RiskScorer:
    """Score concentration risk and diversification on a 0-100 scale."""

    def __init__(self, config: RiskConfig) -> None:
        self._cfg = config
        self._stablecoins = frozenset(s.upper() for s in config.stablecoins)

    def _concentration_penalty(self, max_weight_pct: float) -> float:
        if max_weight_pct > self._cfg.high_concentration_pct:
            return self._cfg.high_concentration_penalty
        if max_weight_pct > self._cfg.moderate_concentration_pct:
            return self._cfg.moderate_concentration_penalty
        return 0.0

    def _asset_count_bonus(self, count: int) -> float:
        if count > self._cfg.many_assets_count:
            return self._cfg.many_assets_bonus
        if count > self._cfg.some_assets_count:
            return self._cfg.some_assets_bonus
        return 0.0

    def _alerts(self, snapshot: PortfolioSnapshot) -> list[str]:
        alerts: list[str] = []

        top = max(snapshot.assets, key=lambda a: a.percentage_of_portfolio)
        if top.percentage_of_portfolio > self._cfg.critical_concentration_pct:
            alerts.append(
                f"🚨 CRITICAL: {top.symbol} represents "
                f"{top.percentage_of_portfolio:.1f}% of portfolio"
            )

        small = [
            a
            for a in snapshot.assets
            if 0 < a.percentage_of_portfolio < self._cfg.small_position_pct
        ]
        if len(small) > self._cfg.small_position_count:
            alerts.append("⚠️ Multiple small positions detected: consider consolidation")

        return alerts

    def score(self, snapshot: PortfolioSnapshot) -> RiskReport:
        if snapshot.total_value_usd <= 0 or not snapshot.assets:
            return RiskReport(
                risk_score=0.0,
                diversification_score=0.0,
                concentration_index=0.0,
                max_asset_weight_pct=0.0,
                stablecoin_pct=0.0,
                alerts=(ZERO_VALUE_ALERT,),
            )

        cfg = self._cfg
        count = snapshot.unique_asset_count
        weights = [a.total_value_usd / snapshot.total_value_usd for a in snapshot.assets]
        max_weight_pct = max(a.percentage_of_portfolio for a in snapshot.assets)
        stable_pct = math.fsum(
            a.percentage_of_portfolio
            for a in snapshot.assets
            if a.symbol in self._stablecoins
        )

        stable_bonus = cfg.stablecoin_bonus if stable_pct > cfg.stablecoin_threshold_pct else 0.0
        risk = _clamp(
            cfg.base_score
            + self._concentration_penalty(max_weight_pct)
            - stable_bonus
            - self._asset_count_bonus(count)
        )

        count_bonus = min(count * cfg.count_bonus_per_asset, cfg.count_bonus_cap)
        balance_bonus = min(100 - max_weight_pct, cfg.balance_bonus_cap)
        diversification = _clamp(cfg.diversification_base + count_bonus + balance_bonus)

        report = RiskReport(
            risk_score=round(risk, 2),
            diversification_score=round(diversification, 2),
            concentration_index=round(herfindahl_index(weights), 4),
            max_asset_weight_pct=round(max_weight_pct, 2),
            stablecoin_pct=round(stable_pct, 2),
            alerts=tuple(self._alerts(snapshot)),
        )
        logger.info(
            "Risk score %.2f, diversification %.2f (HHI %.4f, %d alerts)",
            report.risk_score,
            report.diversification_score,
            report.concentration_index,
            len(report.alerts),
        )
        return report
