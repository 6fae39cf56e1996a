"""Request validation — raw payload mappings in, typed requests out.

Requests are pydantic models. Both camelCase (dashboard) and snake_case keys
are accepted. Every parser turns ``pydantic.ValidationError`` into one
``ValidationError`` whose details map field paths such as
``assets[1].amount`` to messages. Nothing past this module sees an untyped
payload.
"""
from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Annotated, Any, TypeVar

import pydantic
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .errors import ValidationError

UNASSIGNED_CHAIN = "unassigned"
PERCENT_TOLERANCE = 1e-6

Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Symbol = Annotated[str, StringConstraints(strip_whitespace=True, to_upper=True, min_length=1)]
ChainName = Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=1)]
Amount = Annotated[float, Field(strict=True, ge=0, allow_inf_nan=False)]
Percent = Annotated[float, Field(strict=True, ge=0, le=100, allow_inf_nan=False)]


class _Request(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class AssetInput(_Request):
    """One asset in an analysis request.

    Either a bare symbol or a record; missing values are priced later.
    """

    symbol: Symbol
    amount: Amount | None = None
    value_usd: Amount | None = Field(
        None, validation_alias=AliasChoices("valueUSD", "value_usd")
    )
    chain: ChainName = UNASSIGNED_CHAIN
    percentage: Percent | None = None

    @model_validator(mode="before")
    @classmethod
    def _from_symbol(cls, data: Any) -> Any:
        if isinstance(data, str):
            if not data.strip():
                raise ValueError("must be a non-empty symbol")
            return {"symbol": data}
        if not isinstance(data, (Mapping, cls)):
            raise ValueError("must be a symbol string or an object with a symbol")
        return data


class AnalyzeRequest(_Request):
    assets: tuple[AssetInput, ...] = Field(min_length=1)


class BalancesRequest(_Request):
    address: Text = Field(
        validation_alias=AliasChoices("walletAddress", "wallet_address", "address")
    )


class BridgeRequest(_Request):
    """Chain names are not checked against the registry here; an unknown
    chain is reported by the orchestrator as a configuration problem."""

    from_chain: ChainName = Field(validation_alias=AliasChoices("fromChain", "from_chain"))
    to_chain: ChainName = Field(validation_alias=AliasChoices("toChain", "to_chain"))
    asset: Symbol
    amount: float = Field(strict=True, gt=0, allow_inf_nan=False)
    recipient: Text = Field(validation_alias=AliasChoices("recipientAddress", "recipient"))

    @field_validator("to_chain")
    @classmethod
    def _differs_from_source(cls, value: str, info: ValidationInfo) -> str:
        if value == info.data.get("from_chain"):
            raise ValueError("must differ from fromChain")
        return value


class TargetWeight(_Request):
    symbol: Symbol
    percentage: Percent = Field(
        validation_alias=AliasChoices("percentage", "targetPercentage", "target_percentage")
    )


class RebalanceRequest(_Request):
    address: Text = Field(
        validation_alias=AliasChoices("walletAddress", "wallet_address", "address")
    )
    targets: tuple[TargetWeight, ...] = Field(
        min_length=1,
        validation_alias=AliasChoices("targetAllocation", "target_allocation"),
    )

    @field_validator("targets", mode="before")
    @classmethod
    def _entries(cls, value: Any) -> Any:
        """Accept ``{"ETH": 40}`` as well as ``[{"symbol": "ETH", "percentage": 40}]``."""
        if isinstance(value, Mapping):
            return [{"symbol": k, "percentage": v} for k, v in value.items()]
        if isinstance(value, (list, tuple)):
            return value
        raise ValueError("must be an object or a list")

    @field_validator("targets")
    @classmethod
    def _consistent(cls, value: tuple[TargetWeight, ...]) -> tuple[TargetWeight, ...]:
        seen: set[str] = set()
        for target in value:
            if target.symbol in seen:
                raise ValueError(f"duplicate symbol {target.symbol}")
            seen.add(target.symbol)
        if math.fsum(t.percentage for t in value) > 100 + PERCENT_TOLERANCE:
            raise ValueError("percentages must not sum to more than 100")
        return value

    @property
    def target_allocation(self) -> dict[str, float]:
        return {t.symbol: t.percentage for t in self.targets}


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

# Field names as the dashboard sends them
_PUBLIC_NAMES = {
    "address": "walletAddress",
    "wallet_address": "walletAddress",
    "value_usd": "valueUSD",
    "from_chain": "fromChain",
    "to_chain": "toChain",
    "recipient": "recipientAddress",
    "targets": "targetAllocation",
    "target_allocation": "targetAllocation",
    "targetPercentage": "percentage",
    "target_percentage": "percentage",
}


def _field_path(loc: tuple[int | str, ...]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            name = _PUBLIC_NAMES.get(part, part)
            path = f"{path}.{name}" if path else name
    return path or "body"


def _message(error: Any) -> str:
    if error["type"] == "value_error":
        return str(error["ctx"]["error"])
    return error["msg"]


def field_errors(exc: pydantic.ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        errors.setdefault(_field_path(error["loc"]), []).append(_message(error))
    return errors


RequestT = TypeVar("RequestT", bound=BaseModel)


def _parse(model: type[RequestT], payload: Any, message: str) -> RequestT:
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        raise ValidationError(message, field_errors(e)) from None


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


def parse_analyze(payload: Any) -> AnalyzeRequest:
    return _parse(AnalyzeRequest, payload, "Invalid portfolio analysis request")


def parse_balances(payload: Any) -> BalancesRequest:
    return _parse(BalancesRequest, payload, "Invalid balance request")


def parse_bridge(payload: Any) -> BridgeRequest:
    return _parse(BridgeRequest, payload, "Invalid bridge request")


def parse_rebalance(payload: Any) -> RebalanceRequest:
    return _parse(RebalanceRequest, payload, "Invalid rebalancing request")
