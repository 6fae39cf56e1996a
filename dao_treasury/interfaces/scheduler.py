"""Scheduler protocol — deferred callbacks for bridge progression."""
from typing import Callable, Protocol


class Scheduler(Protocol):
    """Runs ``callback`` roughly ``delay`` seconds from now."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> None: ...
