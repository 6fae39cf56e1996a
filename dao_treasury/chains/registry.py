"""Read-only registry of configured chains."""
from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType

from ..config import ChainConfig

logger = logging.getLogger(__name__)


class ChainRegistry:
    """Holds the configured chains behind an immutable mapping.

    ``replace`` swaps in a new mapping; readers that already took a
    ``snapshot()`` keep the old one.
    """

    def __init__(self, chains: Mapping[str, ChainConfig]) -> None:
        self._chains: Mapping[str, ChainConfig] = MappingProxyType(dict(chains))

    def snapshot(self) -> Mapping[str, ChainConfig]:
        return self._chains

    def get(self, name: str) -> ChainConfig | None:
        return self._chains.get(name)

    def names(self) -> list[str]:
        return list(self._chains)

    def replace(self, chains: Mapping[str, ChainConfig]) -> None:
        self._chains = MappingProxyType(dict(chains))
        logger.info("Chain registry replaced (%d chains)", len(self._chains))

    def __contains__(self, name: object) -> bool:
        return name in self._chains

    def __iter__(self) -> Iterator[ChainConfig]:
        return iter(self._chains.values())

    def __len__(self) -> int:
        return len(self._chains)
