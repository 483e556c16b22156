#!/usr/bin/env python3
"""
Get Daily Strategy - Today's Recommendation From Local History

Uses the latest row of a daily history CSV as "today" and prices option
chains with the synthetic chain model, then prints the recommendation.

Usage:
    python scripts/get_daily_strategy.py data/spy_daily.csv --account-type medium --balance 40000

    # JSON output
    python scripts/get_daily_strategy.py data/spy_daily.csv --json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from spreadbot.config import configure_logging, load_trading_config
from spreadbot.core.errors import TradingBotError
from spreadbot.data import CachedMarketDataSource, HistoricalMarketDataSource, build_snapshots, load_price_history
from spreadbot.risk_manager import AccountInfo
from spreadbot.strategies.analyzer import OptionsStrategyAnalyzer


async def recommend(args) -> int:
    config = load_trading_config(args.config)
    configure_logging(config.logging, verbose=args.verbose)

    try:
        snapshots = build_snapshots(load_price_history(args.history), config.technical)
        source = CachedMarketDataSource(HistoricalMarketDataSource(
            snapshots,
            min_days=config.strategy.min_days_to_expiration,
            max_days=config.strategy.max_days_to_expiration,
        ))
        analyzer = OptionsStrategyAnalyzer(source, config)
        account = AccountInfo(
            account_type=args.account_type,
            balance=args.balance,
            current_drawdown=args.drawdown,
            open_positions=args.open_positions,
        )
        recommendation = await analyzer.get_recommendation(account)
    except (TradingBotError, ValueError) as e:
        logger.error(f"Could not build a recommendation: {e}")
        return 1

    if args.json:
        print(json.dumps(recommendation.to_dict(), indent=2, default=str))
        return 0

    print()
    print("=" * 60)
    print(f"DAILY STRATEGY ({recommendation.timestamp.date()})")
    print("=" * 60)
    print(recommendation)
    print(f"Confidence: {recommendation.confidence:.0f}%  Max risk: ${recommendation.max_risk:,.2f}")
    print()
    print(recommendation.reasoning)
    if recommendation.risk_metrics:
        print()
        print(f"Stop loss: {recommendation.risk_metrics.stop_loss:.2f}  "
              f"Profit target: {recommendation.risk_metrics.profit_target:.2f}")
    print("=" * 60)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Recommend today's options-spread strategy")
    parser.add_argument("history", help="Daily history CSV (date, high, low, close, volume, vix)")
    parser.add_argument("--config", default=None, help="Path to trading_config.yaml")
    parser.add_argument("--account-type", default="medium", help="small | medium | large | stressed")
    parser.add_argument("--balance", type=float, default=40_000.0, help="Account balance")
    parser.add_argument("--drawdown", type=float, default=0.0, help="Current drawdown fraction")
    parser.add_argument("--open-positions", type=int, default=0, help="Positions already open")
    parser.add_argument("--json", action="store_true", help="Print the recommendation as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    try:
        return asyncio.run(recommend(args))
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
