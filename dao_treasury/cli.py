"""Command-line interface for the DAO treasury engine."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import yaml

from .api import ApiResponse, TreasuryApi
from .config import load_config
from .logging_setup import configure_logging
from .services import build_service

WAIT_POLL_SECONDS = 1.0


def parse_target(value: str) -> tuple[str, float]:
    """Parse ``SYM=PCT`` into ``(symbol, percentage)``."""
    symbol, sep, pct = value.partition("=")
    if not sep or not symbol.strip():
        raise argparse.ArgumentTypeError(f"expected SYMBOL=PERCENT, got '{value}'")
    try:
        return symbol.strip().upper(), float(pct)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid percentage in '{value}'") from None


def _target_allocation(targets: list[tuple[str, float]]) -> list[dict[str, Any]]:
    """Keep repeated symbols so request validation can reject them."""
    return [{"symbol": symbol, "percentage": pct} for symbol, pct in targets]


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="dao-treasury",
        description="Cross-chain DAO treasury balances, risk and rebalancing",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    balances = sub.add_parser("balances", help="Aggregate balances across all chains")
    balances.add_argument("address", help="Wallet address")

    analyze = sub.add_parser("analyze", help="Risk analysis of a portfolio file")
    analyze.add_argument("file", help="JSON or YAML file with an asset list")

    rebalance = sub.add_parser("rebalance", help="Plan a cross-chain rebalance")
    rebalance.add_argument("address", help="Wallet address")
    rebalance.add_argument(
        "--target",
        action="append",
        type=parse_target,
        required=True,
        metavar="SYM=PCT",
        help="Target allocation entry; repeat per asset",
    )

    bridge = sub.add_parser("bridge", help="Start a cross-chain bridge transfer")
    bridge.add_argument("from_chain")
    bridge.add_argument("to_chain")
    bridge.add_argument("asset")
    bridge.add_argument("amount", type=float)
    bridge.add_argument("recipient")
    bridge.add_argument(
        "--wait",
        action="store_true",
        help="Poll until the transfer completes or fails",
    )

    sub.add_parser("gas", help="Per-chain fee quotes and the cheapest chain")

    return parser


def _load_assets(path: str) -> Any:
    with open(Path(path)) as f:
        raw = yaml.safe_load(f)
    return {"assets": raw} if isinstance(raw, list) else raw


async def _wait_for_bridge(api: TreasuryApi, response: ApiResponse) -> ApiResponse:
    operation_id = response.body["data"]["id"]
    while True:
        await asyncio.sleep(WAIT_POLL_SECONDS)
        response = await api.get_bridge_status(operation_id)
        if not response.ok or response.body["data"]["status"] in ("COMPLETED", "FAILED"):
            return response


async def _run(args: argparse.Namespace) -> ApiResponse:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    api = TreasuryApi(build_service(config), config.app)

    if args.command == "balances":
        return await api.get_multi_chain_balances({"walletAddress": args.address})
    if args.command == "analyze":
        return await api.analyze_portfolio(_load_assets(args.file))
    if args.command == "rebalance":
        return await api.get_cross_chain_rebalancing(
            {
                "walletAddress": args.address,
                "targetAllocation": _target_allocation(args.target),
            }
        )
    if args.command == "bridge":
        response = await api.initiate_cross_chain_bridge(
            {
                "fromChain": args.from_chain,
                "toChain": args.to_chain,
                "asset": args.asset,
                "amount": args.amount,
                "recipientAddress": args.recipient,
            }
        )
        if args.wait and response.ok:
            response = await _wait_for_bridge(api, response)
        return response
    return await api.get_gas_optimization()


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    response = asyncio.run(_run(args))
    print(json.dumps(response.body, indent=2, ensure_ascii=False))
    if not response.ok:
        sys.exit(1)
