"""Request/response boundary — payload dicts in, response envelopes out.

Every call returns an ``ApiResponse`` whose body is either::

    {"success": True, "data": ..., "timestamp": ..., "version": ...}
    {"success": False, "error": ..., "details": ..., "timestamp": ..., "version": ...}

``details`` is omitted when there is nothing to add. Keys are camelCase to
match the dashboard frontend.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from . import inputs
from .config import AppSettings
from .errors import InternalError, TreasuryError
from .models import (
    AggregatedAsset,
    BridgeOperation,
    ChainFeeQuote,
    PortfolioAnalysis,
    PortfolioSnapshot,
    RebalanceOperation,
    RebalancePlan,
    RiskReport,
)
from .services.fees import cheapest_chain
from .services.treasury import TreasuryService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiResponse:
    status: int
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        return self.status < 400


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Renderers
# ---------------------------------------------------------------------------


def render_asset(asset: AggregatedAsset) -> dict[str, Any]:
    return {
        "symbol": asset.symbol,
        "totalAmount": asset.total_amount,
        "totalValueUSD": asset.total_value_usd,
        "percentageOfPortfolio": asset.percentage_of_portfolio,
        "diversificationScore": asset.diversification_score,
        "chainBreakdown": [
            {"chain": h.chain, "amount": h.amount, "valueUSD": h.value_usd}
            for h in asset.chain_breakdown
        ],
    }


def render_snapshot(snapshot: PortfolioSnapshot) -> dict[str, Any]:
    return {
        "totalValueUSD": snapshot.total_value_usd,
        "uniqueAssets": snapshot.unique_asset_count,
        "chainsUsed": snapshot.chains_used,
        "diversificationRating": snapshot.diversification_rating,
        "aggregatedAssets": [render_asset(a) for a in snapshot.assets],
        "perChainErrors": dict(snapshot.per_chain_errors),
    }


def render_risk(risk: RiskReport) -> dict[str, Any]:
    return {
        "riskScore": risk.risk_score,
        "diversificationScore": risk.diversification_score,
        "concentrationIndex": risk.concentration_index,
        "maxAssetWeight": risk.max_asset_weight_pct,
        "stablecoinAllocation": risk.stablecoin_pct,
        "alerts": list(risk.alerts),
    }


def render_analysis(analysis: PortfolioAnalysis) -> dict[str, Any]:
    return {
        **render_snapshot(analysis.snapshot),
        **render_risk(analysis.risk),
        "recommendations": list(analysis.recommendations),
        "declaredAllocation": dict(analysis.declared_allocation),
    }


def render_operation(op: RebalanceOperation) -> dict[str, Any]:
    rendered = {
        "asset": op.asset,
        "currentValue": op.current_value_usd,
        "targetValue": op.target_value_usd,
        "difference": op.difference,
        "action": op.action.value,
        "amount": op.amount_usd,
        "recommendedChain": op.recommended_chain,
        "estimatedFees": op.estimated_fees_usd,
    }
    if op.note:
        rendered["note"] = op.note
    return rendered


def render_plan(plan: RebalancePlan) -> dict[str, Any]:
    return {
        "rebalanceId": plan.plan_id,
        "operations": [render_operation(op) for op in plan.operations],
        "estimatedTotalFees": plan.total_estimated_fees_usd,
        "estimatedTime": plan.estimated_time,
        "recommendation": plan.recommendation,
        "perChainErrors": dict(plan.per_chain_errors),
    }


def render_bridge(op: BridgeOperation) -> dict[str, Any]:
    return {
        "id": op.id,
        "fromChain": op.from_chain,
        "toChain": op.to_chain,
        "asset": op.asset,
        "amount": op.amount_usd,
        "recipient": op.recipient,
        "status": op.status.value,
        "txHash": op.tx_hash,
        "estimatedTime": op.estimated_time_seconds,
        "fees": {
            "networkFee": op.fees.network_fee,
            "bridgeFee": op.fees.bridge_fee,
            "gasFee": op.fees.gas_fee,
            "total": op.fees.total,
        },
        "failureReason": op.failure_reason,
    }


def render_fee_quote(quote: ChainFeeQuote) -> dict[str, Any]:
    return {
        "networkFee": quote.network_fee,
        "gasFee": quote.gas_fee,
        "flatFee": quote.flat_fee,
        "gasPriceGwei": quote.gas_hint_gwei,
        "source": quote.source,
    }


def render_gas(quotes: dict[str, ChainFeeQuote]) -> dict[str, Any]:
    cheapest = cheapest_chain(quotes)
    return {
        "chains": {name: render_fee_quote(q) for name, q in quotes.items()},
        "cheapestChain": cheapest,
        "recommendation": (
            f"Route transfers through {cheapest} for the lowest fees"
            if cheapest
            else "No chains configured"
        ),
    }


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


class TreasuryApi:
    """Validate requests, call the service, wrap results in the envelope."""

    def __init__(
        self,
        service: TreasuryService,
        settings: AppSettings,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.service = service
        self.settings = settings
        self._clock = clock

    def _timestamp(self) -> str:
        return self._clock().isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def success(self, data: Any, status: int = 200) -> ApiResponse:
        return ApiResponse(
            status,
            {
                "success": True,
                "data": data,
                "timestamp": self._timestamp(),
                "version": self.settings.version,
            },
        )

    def failure(self, error: TreasuryError) -> ApiResponse:
        body: dict[str, Any] = {"success": False, "error": error.message}
        details = error.to_details()
        if isinstance(error, InternalError):
            body["error"] = "Internal server error"
            if not self.settings.is_production:
                details = {"message": error.message}
        if details:
            body["details"] = details
        body["timestamp"] = self._timestamp()
        body["version"] = self.settings.version
        return ApiResponse(error.status, body)

    async def _respond(
        self, call: Callable[[], Awaitable[Any]], status: int = 200
    ) -> ApiResponse:
        try:
            data = await call()
        except TreasuryError as e:
            logger.warning("Request failed: %s", e.message)
            return self.failure(e)
        except Exception as e:
            logger.exception("Unexpected error handling request")
            return self.failure(InternalError(str(e) or type(e).__name__))
        return self.success(data, status)

    async def analyze_portfolio(self, payload: Any) -> ApiResponse:
        async def call() -> dict[str, Any]:
            request = inputs.parse_analyze(payload)
            return render_analysis(await self.service.analyze_portfolio(request.assets))

        return await self._respond(call)

    async def get_multi_chain_balances(self, payload: Any) -> ApiResponse:
        async def call() -> dict[str, Any]:
            request = inputs.parse_balances(payload)
            snapshot = await self.service.get_multi_chain_balances(request.address)
            return {"walletAddress": request.address, **render_snapshot(snapshot)}

        return await self._respond(call)

    async def initiate_cross_chain_bridge(self, payload: Any) -> ApiResponse:
        async def call() -> dict[str, Any]:
            request = inputs.parse_bridge(payload)
            operation = self.service.initiate_cross_chain_bridge(
                request.from_chain,
                request.to_chain,
                request.asset,
                request.amount,
                request.recipient,
            )
            return render_bridge(operation)

        return await self._respond(call, status=202)

    async def get_bridge_status(self, operation_id: str) -> ApiResponse:
        async def call() -> dict[str, Any]:
            return render_bridge(self.service.get_bridge_status(operation_id))

        return await self._respond(call)

    async def get_cross_chain_rebalancing(self, payload: Any) -> ApiResponse:
        async def call() -> dict[str, Any]:
            request = inputs.parse_rebalance(payload)
            plan = await self.service.get_cross_chain_rebalancing(
                request.address, request.target_allocation
            )
            return render_plan(plan)

        return await self._respond(call)

    async def get_gas_optimization(self) -> ApiResponse:
        async def call() -> dict[str, Any]:
            return render_gas(await self.service.get_gas_optimization())

        return await self._respond(call)
