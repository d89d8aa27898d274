"""Command-line interface for the lending orchestrator."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import AppConfig, load_config
from .logging_setup import configure_logging
from .registry import StaticMarketRegistry
from .simulation import Simulation, load_script


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="compound-manager",
        description="Collateralized lending and investment orchestration",
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

    sub.add_parser("markets", help="List configured markets")

    simulate_parser = sub.add_parser(
        "simulate", help="Run an operation script against the sandbox market"
    )
    simulate_parser.add_argument("script", help="Path to a YAML list of operations")

    return parser


def print_markets(config: AppConfig) -> None:
    registry = StaticMarketRegistry.from_config(config)
    print(f"Comptroller: {config.protocol.comptroller}")
    for market in registry.markets():
        kind = "native" if market.is_native else "token"
        print(f"  {market.symbol:<8} {kind:<6} {market.market_token}  underlying={market.underlying}")


async def run_simulation(config: AppConfig, script_path: str) -> int:
    """Run a script and print each step; returns the number of failed steps."""
    simulation = Simulation(config)
    results = await simulation.run_script(load_script(script_path))

    for result in results:
        mark = "ok " if result.ok else "ERR"
        print(f"[{mark}] #{result.index} {result.op} {result.wallet}: {result.detail}")

    print("")
    print("Final loan status:")
    for wallet, status in (await simulation.final_statuses()).items():
        print(f"  {wallet}: {Simulation.format_status(status)}")

    return sum(1 for r in results if not r.ok)


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "markets":
        print_markets(config)
        return 0
    if args.command == "simulate":
        failures = await run_simulation(config, args.script)
        return 1 if failures else 0

    build_parser().print_help()
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
