"""Unit tests for EVM JSON-RPC helpers — pure functions, no I/O."""
from __future__ import annotations

import pytest

from dao_treasury.chains.evm.parser import (
    BALANCE_OF_SELECTOR,
    encode_balance_of,
    parse_hex_quantity,
    to_units,
    wei_to_gwei,
)


# ---------------------------------------------------------------------------
# encode_balance_of
# ---------------------------------------------------------------------------


class TestEncodeBalanceOf:
    def test_pads_address_to_32_bytes(self) -> None:
        data = encode_balance_of("0x00000000000000000000000000000000000000Ab")
        assert data.startswith(BALANCE_OF_SELECTOR)
        assert len(data) == len(BALANCE_OF_SELECTOR) + 64
        assert data.endswith("ab")

    def test_without_prefix(self) -> None:
        assert encode_balance_of("abc") == BALANCE_OF_SELECTOR + "0" * 61 + "abc"


# ---------------------------------------------------------------------------
# parse_hex_quantity
# ---------------------------------------------------------------------------


class TestParseHexQuantity:
    @pytest.mark.parametrize(
        "value,expected",
        [("0x0", 0), ("0x1bc16d674ec80000", 2 * 10**18), ("0xff", 255)],
    )
    def test_hex_values(self, value: str, expected: int) -> None:
        assert parse_hex_quantity(value) == expected

    @pytest.mark.parametrize("value", [None, "", "0x"])
    def test_empty_results_are_zero(self, value: str | None) -> None:
        assert parse_hex_quantity(value) == 0


class TestUnits:
    def test_to_units(self) -> None:
        assert to_units(1_500_000, 6) == pytest.approx(1.5)
        assert to_units(2 * 10**18, 18) == pytest.approx(2.0)

    def test_wei_to_gwei(self) -> None:
        assert wei_to_gwei(30_000_000_000) == pytest.approx(30.0)
