#!/usr/bin/env python3
"""
Run Backtest - Replay Daily History Through the Strategy Engine

This script:
1. Loads a daily OHLCV + VIX history CSV
2. Computes indicators and builds one snapshot per trading day
3. Replays the snapshots through the backtest simulator
4. Prints aggregate statistics and optionally exports the trade log

CSV columns (case-insensitive): date, high, low, close, volume, vix

Usage:
    # Daily sampling with the configured account type
    python scripts/run_backtest.py data/spy_daily.csv

    # Monthly sampling, $25k starting balance, trade log export
    python scripts/run_backtest.py data/spy_daily.csv --sampling monthly \\
        --balance 25000 --trades-out backtest_trades.csv
"""

import argparse
import sys
from pathlib import Path

from loguru import logger

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from spreadbot.backtest import Backtester
from spreadbot.config import configure_logging, load_trading_config
from spreadbot.core.errors import TradingBotError
from spreadbot.data import build_snapshots, load_price_history


def main() -> int:
    parser = argparse.ArgumentParser(description="Backtest the options-spread strategy engine")
    parser.add_argument("history", help="Daily history CSV (date, high, low, close, volume, vix)")
    parser.add_argument("--config", default=None, help="Path to trading_config.yaml")
    parser.add_argument("--balance", type=float, default=40_000.0, help="Initial account balance")
    parser.add_argument("--sampling", choices=["daily", "monthly"], help="Override backtest sampling")
    parser.add_argument("--account-type", help="Override backtest account type")
    parser.add_argument("--trades-out", help="Write the trade log to this CSV file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    try:
        config = load_trading_config(args.config)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    configure_logging(config.logging, verbose=args.verbose)
    if args.sampling:
        config.backtest.sampling = args.sampling
    if args.account_type:
        config.backtest.account_type = args.account_type

    try:
        frame = load_price_history(args.history)
        snapshots = build_snapshots(frame, config.technical)
        result = Backtester(config).run_backtest(snapshots, args.balance)
    except (TradingBotError, ValueError) as e:
        logger.error(f"Backtest failed: {e}")
        return 1

    print()
    print("=" * 60)
    print(f"BACKTEST: {args.history}")
    print("=" * 60)
    print(result.summary())
    print("=" * 60)

    if args.trades_out:
        result.to_polars().write_csv(args.trades_out)
        logger.info(f"✓ Trade log written to {args.trades_out}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
