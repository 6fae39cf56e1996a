"""Error taxonomy for the treasury engine."""
from __future__ import annotations

from typing import Any


class TreasuryError(Exception):
    """Base class for every error the engine raises on purpose."""

    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_details(self) -> dict[str, Any] | None:
        return None


class ChainUnavailable(TreasuryError):
    """A single chain's fetch failed or timed out.

    Collected per chain by the balance collector and reported as data in
    ``per_chain_errors``; never escalated to a whole-aggregation failure.
    """

    status = 503

    def __init__(self, chain: str, reason: str) -> None:
        super().__init__(f"Chain '{chain}' unavailable: {reason}")
        self.chain = chain
        self.reason = reason


class ChainNotConfigured(TreasuryError):
    status = 422

    def __init__(self, chain: str) -> None:
        super().__init__(
            f"Chain '{chain}' is not configured. Please set the required RPC endpoints."
        )
        self.chain = chain


class ValidationError(TreasuryError):
    status = 400

    def __init__(
        self, message: str, details: dict[str, list[str]] | None = None
    ) -> None:
        super().__init__(message)
        self.details = details or {}

    def to_details(self) -> dict[str, Any] | None:
        return {"fieldErrors": self.details} if self.details else None


class InsufficientAllocationData(TreasuryError):
    status = 422

    def __init__(self, symbol: str) -> None:
        super().__init__(
            f"No portfolio or configuration data for '{symbol}'; holding position"
        )
        self.symbol = symbol


class BridgeNotFound(TreasuryError):
    status = 404

    def __init__(self, operation_id: str) -> None:
        super().__init__(f"Bridge operation '{operation_id}' not found")
        self.operation_id = operation_id


class InvalidTransition(TreasuryError):
    status = 409

    def __init__(self, operation_id: str, current: str, requested: str) -> None:
        super().__init__(
            f"Bridge operation '{operation_id}' cannot move from {current} to {requested}"
        )
        self.operation_id = operation_id
        self.current = current
        self.requested = requested


class InternalError(TreasuryError):
    status = 500
