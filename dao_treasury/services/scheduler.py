"""asyncio-backed scheduler for deferred callbacks."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class LoopScheduler:
    """Schedule callbacks on the running event loop and track pending ones."""

    def __init__(self) -> None:
        self._pending: set[asyncio.TimerHandle] = set()

    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle

        def _fire() -> None:
            self._pending.discard(handle)
            try:
                callback()
            except Exception:
                logger.exception("Scheduled callback failed")

        handle = loop.call_later(delay, _fire)
        self._pending.add(handle)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def cancel_all(self) -> None:
        for handle in self._pending:
            handle.cancel()
        self._pending.clear()
