"""Unit tests for request validation."""
from __future__ import annotations

import pydantic
import pytest

from dao_treasury.errors import ValidationError
from dao_treasury.inputs import (
    UNASSIGNED_CHAIN,
    AssetInput,
    parse_analyze,
    parse_balances,
    parse_bridge,
    parse_rebalance,
)


def _field_errors(exc: pytest.ExceptionInfo[ValidationError]) -> dict[str, list[str]]:
    return exc.value.details


class TestParseAnalyze:
    def test_symbol_strings(self) -> None:
        request = parse_analyze({"assets": ["eth", " USDC "]})
        assert request.assets == (AssetInput(symbol="ETH"), AssetInput(symbol="USDC"))

    def test_asset_records(self) -> None:
        request = parse_analyze(
            {
                "assets": [
                    {"symbol": "eth", "amount": 2, "valueUSD": 3200, "chain": "Arbitrum"},
                    {"symbol": "USDC", "value_usd": 100, "percentage": 25},
                ]
            }
        )
        eth, usdc = request.assets
        assert eth == AssetInput(symbol="ETH", amount=2.0, value_usd=3200.0, chain="arbitrum")
        assert usdc.chain == UNASSIGNED_CHAIN
        assert usdc.percentage == 25.0
        assert usdc.amount is None

    def test_empty_assets_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_analyze({"assets": []})
        assert "assets" in _field_errors(exc)

    def test_errors_accumulate_with_paths(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_analyze(
                {
                    "assets": [
                        "",
                        {"symbol": "ETH", "amount": -1},
                        {"symbol": "BTC", "valueUSD": "lots"},
                        42,
                    ]
                }
            )
        errors = _field_errors(exc)
        assert set(errors) == {
            "assets[0]",
            "assets[1].amount",
            "assets[2].valueUSD",
            "assets[3]",
        }

    def test_bool_is_not_a_number(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_analyze({"assets": [{"symbol": "ETH", "amount": True}]})
        assert "assets[0].amount" in _field_errors(exc)

    def test_percentage_over_100(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_analyze({"assets": [{"symbol": "ETH", "percentage": 150}]})
        assert "assets[0].percentage" in _field_errors(exc)

    @pytest.mark.parametrize("amount", ["10", float("nan"), float("inf")])
    def test_amount_must_be_a_finite_number(self, amount: object) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_analyze({"assets": [{"symbol": "ETH", "amount": amount}]})
        assert set(_field_errors(exc)) == {"assets[0].amount"}

    def test_snake_case_value_reported_in_camel_case(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_analyze({"assets": [{"symbol": "ETH", "value_usd": -3}]})
        assert set(_field_errors(exc)) == {"assets[0].valueUSD"}

    def test_unusable_asset_entry_message(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_analyze({"assets": [["ETH"]]})
        assert _field_errors(exc) == {
            "assets[0]": ["must be a symbol string or an object with a symbol"]
        }

    def test_requests_are_immutable(self) -> None:
        request = parse_analyze({"assets": ["ETH"]})
        with pytest.raises(pydantic.ValidationError):
            request.assets[0].symbol = "BTC"

    def test_body_must_be_object(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_analyze(["ETH"])
        assert set(_field_errors(exc)) == {"body"}

    def test_missing_assets(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_analyze({})
        assert set(_field_errors(exc)) == {"assets"}


class TestParseBalances:
    def test_wallet_address(self) -> None:
        assert parse_balances({"walletAddress": " 0xabc "}).address == "0xabc"

    def test_missing_address(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_balances({})
        assert "walletAddress" in _field_errors(exc)


class TestParseBridge:
    def test_valid(self) -> None:
        request = parse_bridge(
            {
                "fromChain": "Ethereum",
                "toChain": "polygon",
                "asset": "usdc",
                "amount": 1000,
                "recipientAddress": "0xR",
            }
        )
        assert request.from_chain == "ethereum"
        assert request.to_chain == "polygon"
        assert request.asset == "USDC"
        assert request.amount == 1000.0
        assert request.recipient == "0xR"

    def test_snake_case_keys(self) -> None:
        request = parse_bridge(
            {
                "from_chain": "ethereum",
                "to_chain": "arbitrum",
                "asset": "ETH",
                "amount": 1.5,
                "recipient": "0xR",
            }
        )
        assert request.to_chain == "arbitrum"

    @pytest.mark.parametrize("amount", [0, -5, "10", None, True, float("nan")])
    def test_invalid_amount(self, amount: object) -> None:
        payload = {
            "fromChain": "ethereum",
            "toChain": "polygon",
            "asset": "USDC",
            "amount": amount,
            "recipientAddress": "0xR",
        }
        with pytest.raises(ValidationError) as exc:
            parse_bridge(payload)
        assert "amount" in _field_errors(exc)

    def test_same_chain_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_bridge(
                {
                    "fromChain": "polygon",
                    "toChain": "Polygon",
                    "asset": "USDC",
                    "amount": 1,
                    "recipientAddress": "0xR",
                }
            )
        assert _field_errors(exc) == {"toChain": ["must differ from fromChain"]}

    def test_all_missing_fields_reported(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_bridge({})
        assert set(_field_errors(exc)) == {
            "fromChain",
            "toChain",
            "asset",
            "recipientAddress",
            "amount",
        }


class TestParseRebalance:
    def test_mapping_allocation(self) -> None:
        request = parse_rebalance(
            {"walletAddress": "0xW", "targetAllocation": {"eth": 40, "USDC": 60}}
        )
        assert request.address == "0xW"
        assert request.target_allocation == {"ETH": 40.0, "USDC": 60.0}

    def test_list_allocation(self) -> None:
        request = parse_rebalance(
            {
                "walletAddress": "0xW",
                "targetAllocation": [
                    {"symbol": "ETH", "percentage": 50},
                    {"symbol": "sol", "targetPercentage": 20},
                ],
            }
        )
        assert request.target_allocation == {"ETH": 50.0, "SOL": 20.0}

    def test_missing_allocation(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_rebalance({"walletAddress": "0xW"})
        assert set(_field_errors(exc)) == {"targetAllocation"}

    def test_empty_allocation(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_rebalance({"walletAddress": "0xW", "targetAllocation": {}})
        assert "targetAllocation" in _field_errors(exc)

    def test_wrong_allocation_type(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_rebalance({"walletAddress": "0xW", "targetAllocation": "ETH=50"})
        assert _field_errors(exc) == {"targetAllocation": ["must be an object or a list"]}

    def test_percentage_out_of_range(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_rebalance({"walletAddress": "0xW", "targetAllocation": {"ETH": 120}})
        assert set(_field_errors(exc)) == {"targetAllocation[0].percentage"}

    def test_sum_over_100(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_rebalance(
                {"walletAddress": "0xW", "targetAllocation": {"ETH": 70, "BTC": 40}}
            )
        assert _field_errors(exc) == {
            "targetAllocation": ["percentages must not sum to more than 100"]
        }

    def test_sum_of_exactly_100(self) -> None:
        request = parse_rebalance(
            {"walletAddress": "0xW", "targetAllocation": {"ETH": 33.3, "BTC": 33.3, "SOL": 33.4}}
        )
        assert len(request.targets) == 3

    def test_duplicate_symbols(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_rebalance(
                {"walletAddress": "0xW", "targetAllocation": {"eth": 30, "ETH": 20}}
            )
        assert _field_errors(exc) == {"targetAllocation": ["duplicate symbol ETH"]}

    def test_duplicate_symbols_in_list(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_rebalance(
                {
                    "walletAddress": "0xW",
                    "targetAllocation": [
                        {"symbol": "ETH", "percentage": 10},
                        {"symbol": " eth", "percentage": 10},
                    ],
                }
            )
        assert _field_errors(exc) == {"targetAllocation": ["duplicate symbol ETH"]}

    def test_string_percentage_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_rebalance({"walletAddress": "0xW", "targetAllocation": {"ETH": "40"}})
        assert set(_field_errors(exc)) == {"targetAllocation[0].percentage"}

    def test_validation_error_details(self) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_rebalance({})
        assert exc.value.status == 400
        assert set(exc.value.to_details()["fieldErrors"]) == {
            "walletAddress",
            "targetAllocation",
        }
