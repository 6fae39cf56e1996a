"""Shared test fixtures and sample data."""
from __future__ import annotations

import asyncio
import textwrap
from pathlib import Path
from typing import Callable

import pytest

from dao_treasury.config import (
    AppConfig,
    AppSettings,
    BridgeConfig,
    ChainConfig,
    ChainFeeConfig,
    ChainScore,
    FeeConfig,
    HoldingConfig,
    PlannerConfig,
    PriceOracleConfig,
    PythConfig,
    RiskConfig,
)
from dao_treasury.models import ChainAsset


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeScheduler:
    """Collects callbacks instead of running them; tests advance time by hand."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, Callable[[], None]]] = []
        self._seq = 0

    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        self._queue.append((self.now + delay, self._seq, callback))
        self._seq += 1

    @property
    def pending(self) -> int:
        return len(self._queue)

    def advance(self, seconds: float) -> None:
        """Run every callback due within ``seconds``, in due order."""
        target = self.now + seconds
        while True:
            due = sorted(item for item in self._queue if item[0] <= target)
            if not due:
                break
            item = due[0]
            self._queue.remove(item)
            self.now = item[0]
            item[2]()
        self.now = target

    def run_all(self) -> None:
        while self._queue:
            self.advance(max(when for when, _, _ in self._queue) - self.now)


class FakeBalanceSource:
    """Balance source returning fixed assets, optionally slow or failing."""

    def __init__(
        self,
        assets: list[ChainAsset] | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.assets = assets or []
        self.delay = delay
        self.error = error
        self.calls: list[str] = []

    async def fetch_assets(self, address: str) -> list[ChainAsset]:
        self.calls.append(address)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return list(self.assets)


class FakeGasSource:
    def __init__(self, gwei: float = 20.0, error: Exception | None = None) -> None:
        self.gwei = gwei
        self.error = error
        self.calls = 0

    async def get_gas_price_gwei(self) -> float:
        self.calls += 1
        if self.error:
            raise self.error
        return self.gwei


class FakeOracle:
    def __init__(self, prices: dict[str, float] | None = None) -> None:
        self.prices = prices or {}
        self.requests: list[list[str] | None] = []

    async def fetch_prices(self, symbols: list[str] | None = None) -> dict[str, float]:
        self.requests.append(symbols)
        wanted = symbols if symbols is not None else list(self.prices)
        return {s: self.prices[s] for s in wanted if s in self.prices}


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


def asset(symbol: str, value: float, chain: str = "ethereum", amount: float | None = None) -> ChainAsset:
    return ChainAsset(
        symbol=symbol,
        amount=value if amount is None else amount,
        value_usd=value,
        chain=chain,
    )


@pytest.fixture()
def sample_fee_config() -> FeeConfig:
    return FeeConfig(
        trading_fee_bps=30,
        cache_ttl_seconds=60,
        default=ChainFeeConfig(network_fee=5, gas_fee=10),
        chains={
            "ethereum": ChainFeeConfig(network_fee=25, gas_fee=50, gas_hint_gwei=30),
            "polygon": ChainFeeConfig(network_fee=0.5, gas_fee=2, gas_hint_gwei=50),
            "arbitrum": ChainFeeConfig(network_fee=3, gas_fee=8, gas_hint_gwei=0.1),
        },
    )


@pytest.fixture()
def sample_planner_config() -> PlannerConfig:
    return PlannerConfig(
        threshold_usd=10,
        chain_scores={
            "ethereum": ChainScore(liquidity=10, fees=3, speed=6),
            "polygon": ChainScore(liquidity=8, fees=9, speed=9),
            "arbitrum": ChainScore(liquidity=7, fees=8, speed=8),
        },
    )


@pytest.fixture()
def sample_chains() -> dict[str, ChainConfig]:
    return {
        "ethereum": ChainConfig(
            name="ethereum",
            chain_id=1,
            native_currency="ETH",
            holdings=(
                HoldingConfig(symbol="ETH", amount=10, value_usd=16000),
                HoldingConfig(symbol="USDC", amount=10000, value_usd=10000, decimals=6),
            ),
        ),
        "polygon": ChainConfig(
            name="polygon",
            chain_id=137,
            native_currency="MATIC",
            holdings=(HoldingConfig(symbol="USDC", amount=4000, value_usd=4000, decimals=6),),
        ),
        "arbitrum": ChainConfig(name="arbitrum", chain_id=42161, native_currency="ETH"),
    }


@pytest.fixture()
def sample_app_config(
    sample_chains: dict[str, ChainConfig],
    sample_fee_config: FeeConfig,
    sample_planner_config: PlannerConfig,
) -> AppConfig:
    return AppConfig(
        app=AppSettings(environment="test", version="1.0.0"),
        chains=sample_chains,
        fees=sample_fee_config,
        risk=RiskConfig(),
        planner=sample_planner_config,
        bridge=BridgeConfig(),
        price_oracle=PriceOracleConfig(
            provider="pyth",
            pyth=PythConfig(hermes_url="https://hermes.example.com", feeds={}),
        ),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    app:
      environment: production
      version: "2.1.0"
    chains:
      ethereum:
        chain_id: 1
        source: static
        rpc_timeout: 3
        native_currency: eth
        holdings:
          - {symbol: eth, amount: 5.2, value_usd: 8320}
          - {symbol: USDC, amount: 15000, value_usd: 15000, decimals: 6}
      base:
        chain_id: 8453
        source: evm
        rpc_endpoints: ["https://rpc1.example.com", "", "https://rpc2.example.com"]
        native_currency: ETH
        tokens:
          - {symbol: usdc, address: "0xToken", decimals: 6}
    fees:
      trading_fee_bps: 25
      default: {network_fee: 4, gas_fee: 6}
      chains:
        ethereum: {network_fee: 25, gas_fee: 50}
        base: {gas_fee: 1}
    planner:
      threshold_usd: 20
      default_score: {liquidity: 4}
      chain_scores:
        ethereum: {liquidity: 10, fees: 3}
    bridge:
      slow_chains: [ethereum]
      time_by_slow_legs: [300, 600, 900]
    price_oracle:
      provider: pyth
      pyth:
        hermes_url: "https://hermes.example.com"
        feeds: {eth: "aaa", USDC: "bbb"}
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
