"""Service modules"""
from .aggregator import aggregate
from .bridge import BridgeOrchestrator
from .collector import BalanceCollector
from .fees import FeeEstimator
from .planner import RebalancePlanner
from .risk import RiskScorer
from .treasury import TreasuryService, build_service

__all__ = [
    "aggregate",
    "BalanceCollector",
    "BridgeOrchestrator",
    "FeeEstimator",
    "RebalancePlanner",
    "RiskScorer",
    "TreasuryService",
    "build_service",
]
