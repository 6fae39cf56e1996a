"""Bridge orchestration — fee/time estimates and the operation lifecycle."""
from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import replace
from typing import Any, Callable

from ..chains.registry import ChainRegistry
from ..config import BridgeConfig
from ..errors import BridgeNotFound, ChainNotConfigured, InvalidTransition
from ..interfaces.bridge_provider import BridgeProvider
from ..interfaces.scheduler import Scheduler
from ..models import BridgeFees, BridgeOperation, BridgeStatus
from .fees import FeeEstimator

logger = logging.getLogger(__name__)

# PENDING → IN_PROGRESS → COMPLETED | FAILED
_ALLOWED_TRANSITIONS: dict[BridgeStatus, frozenset[BridgeStatus]] = {
    BridgeStatus.PENDING: frozenset({BridgeStatus.IN_PROGRESS}),
    BridgeStatus.IN_PROGRESS: frozenset({BridgeStatus.COMPLETED, BridgeStatus.FAILED}),
    BridgeStatus.COMPLETED: frozenset(),
    BridgeStatus.FAILED: frozenset(),
}


def transition(
    operation: BridgeOperation, status: BridgeStatus, **changes: Any
) -> BridgeOperation:
    """Return a copy of ``operation`` moved to ``status``.

    Raises:
        InvalidTransition: ``status`` is not reachable from the current one.
    """
    if status not in _ALLOWED_TRANSITIONS[operation.status]:
        raise InvalidTransition(operation.id, operation.status.value, status.value)
    return replace(operation, status=status, **changes)


def _new_operation_id() -> str:
    return f"bridge_{uuid.uuid4().hex[:12]}"


class SimulatedBridgeProvider:
    """Stand-in bridge: mock transaction hashes, every transfer settles."""

    def dispatch(self, operation: BridgeOperation) -> str:
        return "0x" + secrets.token_hex(32)

    def confirm(self, operation: BridgeOperation) -> bool:
        return True


class BridgeOrchestrator:
    """Create bridge operations and drive them through their lifecycle.

    ``initiate_bridge`` returns at once with a PENDING operation. The
    scheduler later dispatches it (IN_PROGRESS) and settles it (COMPLETED or
    FAILED). Operations are stored as frozen records replaced on every step;
    a finished operation is dropped ``retention_seconds`` after it settles.
    """

    def __init__(
        self,
        registry: ChainRegistry,
        fees: FeeEstimator,
        config: BridgeConfig,
        scheduler: Scheduler,
        provider: BridgeProvider | None = None,
        id_factory: Callable[[], str] = _new_operation_id,
    ) -> None:
        self._registry = registry
        self._fees = fees
        self._config = config
        self._scheduler = scheduler
        self._provider: BridgeProvider = provider or SimulatedBridgeProvider()
        self._id_factory = id_factory
        self._operations: dict[str, BridgeOperation] = {}

    # ------------------------------------------------------------------
    # Estimates
    # ------------------------------------------------------------------

    def estimate_time(self, from_chain: str, to_chain: str) -> int:
        """Seconds to settle; grows with the number of slow chains involved."""
        slow_legs = sum(
            1 for chain in (from_chain, to_chain) if chain in self._config.slow_chains
        )
        table = self._config.time_by_slow_legs
        return table[min(slow_legs, len(table) - 1)]

    def calculate_fees(self, from_chain: str, amount: float) -> BridgeFees:
        quote = self._fees.static_quote(from_chain)
        bridge_fee = amount * self._config.fee_rate
        return BridgeFees(
            network_fee=quote.network_fee,
            bridge_fee=bridge_fee,
            gas_fee=quote.gas_fee,
            total=quote.network_fee + bridge_fee + quote.gas_fee,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initiate_bridge(
        self,
        from_chain: str,
        to_chain: str,
        asset: str,
        amount: float,
        recipient: str,
    ) -> BridgeOperation:
        for chain in (from_chain, to_chain):
            if chain not in self._registry:
                raise ChainNotConfigured(chain)

        operation = BridgeOperation(
            id=self._id_factory(),
            from_chain=from_chain,
            to_chain=to_chain,
            asset=asset.upper(),
            amount_usd=amount,
            recipient=recipient,
            fees=self.calculate_fees(from_chain, amount),
            estimated_time_seconds=self.estimate_time(from_chain, to_chain),
        )
        self._operations[operation.id] = operation
        logger.info(
            "Bridge %s initiated: %s %s %s → %s",
            operation.id,
            amount,
            operation.asset,
            from_chain,
            to_chain,
        )

        self._scheduler.call_later(
            self._config.dispatch_delay_seconds, lambda: self._dispatch(operation.id)
        )
        return operation

    def get_bridge_status(self, operation_id: str) -> BridgeOperation:
        try:
            return self._operations[operation_id]
        except KeyError:
            raise BridgeNotFound(operation_id) from None

    def update_status(
        self, operation_id: str, status: BridgeStatus, **changes: Any
    ) -> BridgeOperation:
        updated = transition(self.get_bridge_status(operation_id), status, **changes)
        self._operations[operation_id] = updated
        logger.info("Bridge %s → %s", operation_id, status.value)
        if status in (BridgeStatus.COMPLETED, BridgeStatus.FAILED):
            self._scheduler.call_later(
                self._config.retention_seconds, lambda: self._evict(operation_id)
            )
        return updated

    def _evict(self, operation_id: str) -> None:
        if self._operations.pop(operation_id, None) is not None:
            logger.debug("Bridge %s evicted after retention window", operation_id)

    def _dispatch(self, operation_id: str) -> None:
        operation = self.get_bridge_status(operation_id)
        try:
            tx_hash = self._provider.dispatch(operation)
        except Exception as e:
            logger.error("Bridge %s dispatch failed: %s", operation_id, e)
            self.update_status(operation_id, BridgeStatus.IN_PROGRESS)
            self.update_status(operation_id, BridgeStatus.FAILED, failure_reason=str(e))
            return

        self.update_status(operation_id, BridgeStatus.IN_PROGRESS, tx_hash=tx_hash)
        self._scheduler.call_later(
            self._config.settle_delay_seconds, lambda: self._settle(operation_id)
        )

    def _settle(self, operation_id: str) -> None:
        operation = self.get_bridge_status(operation_id)
        try:
            settled = self._provider.confirm(operation)
            reason = None if settled else "bridge transfer was not confirmed"
        except Exception as e:
            settled, reason = False, str(e)

        if settled:
            self.update_status(operation_id, BridgeStatus.COMPLETED)
        else:
            logger.error("Bridge %s failed: %s", operation_id, reason)
            self.update_status(operation_id, BridgeStatus.FAILED, failure_reason=reason)
