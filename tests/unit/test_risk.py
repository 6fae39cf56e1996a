"""Unit tests for risk and diversification scoring."""
from __future__ import annotations

import pytest

from conftest import asset
from dao_treasury.config import RiskConfig
from dao_treasury.services.aggregator import aggregate
from dao_treasury.services.risk import ZERO_VALUE_ALERT, RiskScorer, herfindahl_index


@pytest.fixture()
def scorer() -> RiskScorer:
    return RiskScorer(RiskConfig())


class TestHerfindahlIndex:
    def test_single_asset(self) -> None:
        assert herfindahl_index([1.0]) == pytest.approx(1.0)

    def test_even_split(self) -> None:
        assert herfindahl_index([0.25] * 4) == pytest.approx(0.25)


class TestRiskScorer:
    def test_eth_usdc_scenario(self, scorer: RiskScorer) -> None:
        snapshot = aggregate([asset("ETH", 16000), asset("USDC", 10000)])
        report = scorer.score(snapshot)

        assert report.risk_score == 75
        assert report.diversification_score == pytest.approx(78.46, abs=0.01)
        assert report.concentration_index == pytest.approx(0.5266, abs=1e-4)
        assert report.max_asset_weight_pct == pytest.approx(61.54, abs=0.01)
        assert report.stablecoin_pct == pytest.approx(38.46, abs=0.01)
        assert report.alerts == ()

    def test_moderate_concentration(self, scorer: RiskScorer) -> None:
        # max weight 40%: +20, no stablecoins, 3 assets
        snapshot = aggregate([asset("ETH", 40), asset("BTC", 35), asset("SOL", 25)])
        report = scorer.score(snapshot)
        assert report.risk_score == 70
        assert report.diversification_score == pytest.approx(90)

    def test_well_diversified_portfolio(self, scorer: RiskScorer) -> None:
        snapshot = aggregate(
            [asset(s, 100) for s in ("ETH", "BTC", "SOL", "ARB", "USDC", "DAI")]
        )
        report = scorer.score(snapshot)
        # 50 - 15 (stablecoins 33%) - 10 (more than 5 assets)
        assert report.risk_score == 25
        assert report.diversification_score == 100

    def test_scores_stay_in_range(self, scorer: RiskScorer) -> None:
        for values in ([1], [1, 1], [99, 1], [5, 5, 5, 5, 5, 5, 5]):
            snapshot = aggregate([asset(f"T{i}", v) for i, v in enumerate(values)])
            report = scorer.score(snapshot)
            assert 0 <= report.risk_score <= 100
            assert 0 <= report.diversification_score <= 100

    def test_critical_concentration_alert(self, scorer: RiskScorer) -> None:
        snapshot = aggregate([asset("ETH", 9000), asset("USDC", 1000)])
        report = scorer.score(snapshot)
        assert report.alerts == ("🚨 CRITICAL: ETH represents 90.0% of portfolio",)

    def test_many_small_positions_alert(self, scorer: RiskScorer) -> None:
        snapshot = aggregate(
            [asset("BTC", 9600)] + [asset(s, 100) for s in ("A", "B", "C", "D")]
        )
        report = scorer.score(snapshot)
        assert "⚠️ Multiple small positions detected: consider consolidation" in report.alerts

    def test_three_small_positions_no_alert(self, scorer: RiskScorer) -> None:
        snapshot = aggregate(
            [asset("BTC", 5000), asset("ETH", 4700)]
            + [asset(s, 100) for s in ("A", "B", "C")]
        )
        report = scorer.score(snapshot)
        assert not any("small positions" in a for a in report.alerts)

    def test_zero_value_portfolio(self, scorer: RiskScorer) -> None:
        snapshot = aggregate([asset("ETH", 0), asset("USDC", 0)])
        report = scorer.score(snapshot)
        assert report.risk_score == 0
        assert report.diversification_score == 0
        assert report.concentration_index == 0
        assert report.alerts == (ZERO_VALUE_ALERT,)

    def test_empty_portfolio(self, scorer: RiskScorer) -> None:
        report = scorer.score(aggregate([]))
        assert report.alerts == (ZERO_VALUE_ALERT,)

    def test_custom_stablecoin_list(self) -> None:
        scorer = RiskScorer(RiskConfig(stablecoins=("gho",)))
        snapshot = aggregate([asset("GHO", 50), asset("USDC", 50)])
        assert scorer.score(snapshot).stablecoin_pct == pytest.approx(50)

    def test_penalty_coefficients_configurable(self) -> None:
        scorer = RiskScorer(RiskConfig(high_concentration_penalty=10))
        snapshot = aggregate([asset("ETH", 16000), asset("USDC", 10000)])
        assert scorer.score(snapshot).risk_score == 45
