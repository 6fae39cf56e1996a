"""Rule-based portfolio recommendations."""
from __future__ import annotations

from ..models import PortfolioSnapshot, RiskReport

HIGH_RISK = 70
LOW_RISK = 30
POOR_DIVERSIFICATION = 40
EXCELLENT_DIVERSIFICATION = 80
ETH_CONCENTRATION_PCT = 60
LOW_STABLECOIN_PCT = 10


class RuleBasedAdvisor:
    """Fixed threshold rules over the risk report.

    Stands behind the ``Advisor`` protocol so a smarter producer of advice
    can replace it without touching the analysis pipeline.
    """

    async def recommend(
        self, snapshot: PortfolioSnapshot, risk: RiskReport
    ) -> list[str]:
        recommendations: list[str] = []

        if risk.risk_score > HIGH_RISK:
            recommendations.append(
                "⚠️ High risk detected: Consider reducing exposure to volatile assets"
            )
            recommendations.append(
                "💰 Increase stable coin allocation to reduce portfolio volatility"
            )
        elif risk.risk_score < LOW_RISK:
            recommendations.append(
                "📈 Low risk portfolio: Consider opportunities for higher yield"
            )

        if risk.diversification_score < POOR_DIVERSIFICATION:
            recommendations.append("🎯 Poor diversification: Add more assets to spread risk")
            recommendations.append(
                "⚖️ Consider balanced allocation across different asset classes"
            )
        elif risk.diversification_score > EXCELLENT_DIVERSIFICATION:
            recommendations.append("✨ Excellent diversification: Portfolio is well-balanced")

        eth = snapshot.asset("ETH")
        if eth and eth.percentage_of_portfolio > ETH_CONCENTRATION_PCT:
            recommendations.append(
                "🔸 ETH concentration risk: Consider reducing ETH allocation below 50%"
            )

        if snapshot.assets and risk.stablecoin_pct < LOW_STABLECOIN_PCT:
            recommendations.append(
                "🛡️ Low stable coin ratio: Consider increasing for risk management"
            )

        if not recommendations:
            recommendations.append(
                "✅ Portfolio looks healthy: Continue monitoring and periodic rebalancing"
            )
        return recommendations
