"""Advisor protocol — opaque producer of advisory text."""
from typing import Protocol

from ..models import PortfolioSnapshot, RiskReport


class Advisor(Protocol):
    async def recommend(
        self, snapshot: PortfolioSnapshot, risk: RiskReport
    ) -> list[str]: ...
