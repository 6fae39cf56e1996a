"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AppSettings:
    environment: str = "development"
    version: str = "1.0.0"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@dataclass(frozen=True)
class TokenConfig:
    symbol: str = ""
    address: str = ""
    decimals: int = 18


@dataclass(frozen=True)
class HoldingConfig:
    """A fixed holding served by the static (demo) balance source."""

    symbol: str = ""
    amount: float = 0.0
    value_usd: float = 0.0
    contract_address: str = ""
    decimals: int = 18


@dataclass(frozen=True)
class ChainConfig:
    name: str = ""
    chain_id: int = 0
    source: str = "static"
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: float = 5.0
    fetch_timeout: float | None = None
    native_currency: str = ""
    native_decimals: int = 18
    bridge_contract: str | None = None
    tokens: tuple[TokenConfig, ...] = ()
    holdings: tuple[HoldingConfig, ...] = ()

    @property
    def rpc_endpoint(self) -> str:
        return self.rpc_endpoints[0] if self.rpc_endpoints else ""

    @property
    def fetch_budget(self) -> float:
        """Seconds one balance fetch may take on this chain.

        Defaults to one ``rpc_timeout`` per endpoint, so the client can fail
        over through every endpoint, plus one more for pricing.
        """
        if self.fetch_timeout is not None:
            return self.fetch_timeout
        return self.rpc_timeout * (max(1, len(self.rpc_endpoints)) + 1)

    def known_symbols(self) -> set[str]:
        symbols = {t.symbol.upper() for t in self.tokens}
        symbols.update(h.symbol.upper() for h in self.holdings)
        if self.native_currency:
            symbols.add(self.native_currency.upper())
        return symbols


@dataclass(frozen=True)
class ChainFeeConfig:
    network_fee: float = 5.0
    gas_fee: float = 10.0
    gas_hint_gwei: float = 0.0


@dataclass(frozen=True)
class FeeConfig:
    trading_fee_bps: float = 30.0
    cache_ttl_seconds: float = 60.0
    default: ChainFeeConfig = field(default_factory=ChainFeeConfig)
    chains: dict[str, ChainFeeConfig] = field(default_factory=dict)

    def for_chain(self, chain: str) -> ChainFeeConfig:
        return self.chains.get(chain, self.default)


@dataclass(frozen=True)
class RiskConfig:
    base_score: float = 50.0
    high_concentration_pct: float = 50.0
    high_concentration_penalty: float = 40.0
    moderate_concentration_pct: float = 30.0
    moderate_concentration_penalty: float = 20.0
    stablecoin_threshold_pct: float = 20.0
    stablecoin_bonus: float = 15.0
    many_assets_count: int = 5
    many_assets_bonus: float = 10.0
    some_assets_count: int = 3
    some_assets_bonus: float = 5.0
    diversification_base: float = 20.0
    count_bonus_per_asset: float = 10.0
    count_bonus_cap: float = 40.0
    balance_bonus_cap: float = 40.0
    critical_concentration_pct: float = 70.0
    small_position_pct: float = 5.0
    small_position_count: int = 3
    stablecoins: tuple[str, ...] = ("USDC", "USDT", "DAI", "USDS", "PYUSD", "BUSD", "FRAX")


@dataclass(frozen=True)
class ChainScore:
    liquidity: float = 5.0
    fees: float = 5.0
    speed: float = 5.0


@dataclass(frozen=True)
class PlannerConfig:
    threshold_usd: float = 10.0
    default_score: ChainScore = field(default_factory=ChainScore)
    chain_scores: dict[str, ChainScore] = field(default_factory=dict)

    def score_for(self, chain: str) -> ChainScore:
        return self.chain_scores.get(chain, self.default_score)


@dataclass(frozen=True)
class BridgeConfig:
    fee_rate: float = 0.001
    slow_chains: tuple[str, ...] = ("ethereum",)
    time_by_slow_legs: tuple[int, ...] = (420, 900, 1200)
    dispatch_delay_seconds: float = 2.0
    settle_delay_seconds: float = 30.0
    retention_seconds: float = 3600.0


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)
    cache_ttl_seconds: float = 60.0
    timeout: float = 5.0


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "pyth"
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class AppConfig:
    app: AppSettings = field(default_factory=AppSettings)
    chains: dict[str, ChainConfig] = field(default_factory=dict)
    fees: FeeConfig = field(default_factory=FeeConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    planner: PlannerConfig = field(default_factory=PlannerConfig)
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_app(raw: dict[str, Any]) -> AppSettings:
    return AppSettings(
        environment=raw.get("environment") or "development",
        version=str(raw.get("version", AppSettings.version)),
    )


def _build_tokens(raw: list[dict[str, Any]]) -> tuple[TokenConfig, ...]:
    return tuple(
        TokenConfig(
            symbol=str(t.get("symbol", "")).upper(),
            address=t.get("address", ""),
            decimals=int(t.get("decimals", 18)),
        )
        for t in raw
    )


def _build_holdings(raw: list[dict[str, Any]]) -> tuple[HoldingConfig, ...]:
    return tuple(
        HoldingConfig(
            symbol=str(h.get("symbol", "")).upper(),
            amount=float(h.get("amount", 0.0)),
            value_usd=float(h.get("value_usd", 0.0)),
            contract_address=h.get("contract_address", ""),
            decimals=int(h.get("decimals", 18)),
        )
        for h in raw
    )


def _build_chains(raw: dict[str, Any]) -> dict[str, ChainConfig]:
    chains: dict[str, ChainConfig] = {}
    for key, cfg in raw.items():
        name = str(key).lower()
        chains[name] = ChainConfig(
            name=name,
            chain_id=int(cfg.get("chain_id", 0)),
            source=cfg.get("source", "static"),
            rpc_endpoints=tuple(e for e in cfg.get("rpc_endpoints", []) if e),
            rpc_timeout=float(cfg.get("rpc_timeout", 5.0)),
            fetch_timeout=(
                float(cfg["fetch_timeout"]) if cfg.get("fetch_timeout") is not None else None
            ),
            native_currency=str(cfg.get("native_currency", "")).upper(),
            native_decimals=int(cfg.get("native_decimals", 18)),
            bridge_contract=cfg.get("bridge_contract") or None,
            tokens=_build_tokens(cfg.get("tokens", [])),
            holdings=_build_holdings(cfg.get("holdings", [])),
        )
    return chains


def _build_chain_fee(raw: dict[str, Any], default: ChainFeeConfig) -> ChainFeeConfig:
    return ChainFeeConfig(
        network_fee=float(raw.get("network_fee", default.network_fee)),
        gas_fee=float(raw.get("gas_fee", default.gas_fee)),
        gas_hint_gwei=float(raw.get("gas_hint_gwei", default.gas_hint_gwei)),
    )


def _build_fees(raw: dict[str, Any]) -> FeeConfig:
    default = _build_chain_fee(raw.get("default", {}), ChainFeeConfig())
    return FeeConfig(
        trading_fee_bps=float(raw.get("trading_fee_bps", 30.0)),
        cache_ttl_seconds=float(raw.get("cache_ttl_seconds", 60.0)),
        default=default,
        chains={
            str(name).lower(): _build_chain_fee(cfg, default)
            for name, cfg in raw.get("chains", {}).items()
        },
    )


def _build_risk(raw: dict[str, Any]) -> RiskConfig:
    defaults = RiskConfig()
    kwargs: dict[str, Any] = {}
    for name in (
        "base_score",
        "high_concentration_pct",
        "high_concentration_penalty",
        "moderate_concentration_pct",
        "moderate_concentration_penalty",
        "stablecoin_threshold_pct",
        "stablecoin_bonus",
        "many_assets_bonus",
        "some_assets_bonus",
        "diversification_base",
        "count_bonus_per_asset",
        "count_bonus_cap",
        "balance_bonus_cap",
        "critical_concentration_pct",
        "small_position_pct",
    ):
        kwargs[name] = float(raw.get(name, getattr(defaults, name)))
    for name in ("many_assets_count", "some_assets_count", "small_position_count"):
        kwargs[name] = int(raw.get(name, getattr(defaults, name)))
    kwargs["stablecoins"] = tuple(
        s.upper() for s in raw.get("stablecoins", defaults.stablecoins)
    )
    return RiskConfig(**kwargs)


def _build_score(raw: dict[str, Any], default: ChainScore) -> ChainScore:
    return ChainScore(
        liquidity=float(raw.get("liquidity", default.liquidity)),
        fees=float(raw.get("fees", default.fees)),
        speed=float(raw.get("speed", default.speed)),
    )


def _build_planner(raw: dict[str, Any]) -> PlannerConfig:
    default = _build_score(raw.get("default_score", {}), ChainScore())
    return PlannerConfig(
        threshold_usd=float(raw.get("threshold_usd", 10.0)),
        default_score=default,
        chain_scores={
            str(name).lower(): _build_score(cfg, default)
            for name, cfg in raw.get("chain_scores", {}).items()
        },
    )


def _build_bridge(raw: dict[str, Any]) -> BridgeConfig:
    return BridgeConfig(
        fee_rate=float(raw.get("fee_rate", BridgeConfig.fee_rate)),
        slow_chains=tuple(
            str(c).lower() for c in raw.get("slow_chains", BridgeConfig().slow_chains)
        ),
        time_by_slow_legs=tuple(
            int(t) for t in raw.get("time_by_slow_legs", BridgeConfig().time_by_slow_legs)
        ),
        dispatch_delay_seconds=float(
            raw.get("dispatch_delay_seconds", BridgeConfig.dispatch_delay_seconds)
        ),
        settle_delay_seconds=float(
            raw.get("settle_delay_seconds", BridgeConfig.settle_delay_seconds)
        ),
        retention_seconds=float(
            raw.get("retention_seconds", BridgeConfig.retention_seconds)
        ),
    )


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "pyth"),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feeds={k.upper(): v for k, v in pyth_raw.get("feeds", {}).items()},
            cache_ttl_seconds=float(
                pyth_raw.get("cache_ttl_seconds", PythConfig.cache_ttl_seconds)
            ),
            timeout=float(pyth_raw.get("timeout", PythConfig.timeout)),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        app=_build_app(raw.get("app", {})),
        chains=_build_chains(raw.get("chains", {})),
        fees=_build_fees(raw.get("fees", {})),
        risk=_build_risk(raw.get("risk", {})),
        planner=_build_planner(raw.get("planner", {})),
        bridge=_build_bridge(raw.get("bridge", {})),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s (%d chains)", config_path, len(cfg.chains))
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chains:
        raise ValueError("At least one chain must be configured")

    for name, chain in cfg.chains.items():
        if chain.source not in ("static", "evm"):
            raise ValueError(f"Chain '{name}' has unknown source '{chain.source}'")
        if chain.source == "evm" and not chain.rpc_endpoints:
            raise ValueError(f"Chain '{name}' uses source 'evm' but has no rpc_endpoints")
        if chain.rpc_timeout <= 0:
            raise ValueError(f"Chain '{name}' must have a positive rpc_timeout")
        if chain.fetch_timeout is not None and chain.fetch_timeout <= 0:
            raise ValueError(f"Chain '{name}' must have a positive fetch_timeout")

    if cfg.price_oracle.provider != "pyth":
        raise ValueError(
            f"Unsupported price_oracle.provider '{cfg.price_oracle.provider}'"
        )

    times = cfg.bridge.time_by_slow_legs
    if not times:
        raise ValueError("bridge.time_by_slow_legs must not be empty")
    if any(later < earlier for earlier, later in zip(times, times[1:])):
        raise ValueError("bridge.time_by_slow_legs must be non-decreasing")

    risk = cfg.risk
    if risk.moderate_concentration_pct > risk.high_concentration_pct:
        raise ValueError("risk.moderate_concentration_pct must not exceed high_concentration_pct")
    if risk.some_assets_count > risk.many_assets_count:
        raise ValueError("risk.some_assets_count must not exceed many_assets_count")

    if cfg.planner.threshold_usd < 0:
        raise ValueError("planner.threshold_usd must be non-negative")
