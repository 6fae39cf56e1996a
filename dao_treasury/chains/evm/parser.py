"""Pure helpers for EVM JSON-RPC payloads — no I/O."""
from __future__ import annotations

NATIVE_ADDRESS = "0x0000000000000000000000000000000000000000"

# keccak256("balanceOf(address)")[:4]
BALANCE_OF_SELECTOR = "0x70a08231"


def encode_balance_of(owner: str) -> str:
    """Build calldata for ERC-20 ``balanceOf(owner)``.

    Examples:
        "0xAbC" → "0x70a08231" + "0" * 61 + "abc"
    """
    address = owner.lower()
    if address.startswith("0x"):
        address = address[2:]
    return BALANCE_OF_SELECTOR + address.rjust(64, "0")


def parse_hex_quantity(value: str | None) -> int:
    """Decode a JSON-RPC hex quantity; empty results (``0x``) decode to 0."""
    if not value or value in ("0x", "0X"):
        return 0
    return int(value, 16)


def to_units(raw: int, decimals: int) -> float:
    """Scale a raw integer balance down by ``decimals``."""
    return raw / (10**decimals)


def wei_to_gwei(raw: int) -> float:
    return raw / 1e9
