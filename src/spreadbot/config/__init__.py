"""
Configuration Module

Dataclass configuration sections, YAML loader and loguru sink setup.
"""

from spreadbot.config.logging_config import LoggingConfig, configure_logging
from spreadbot.config.trading_config import (
    AccountBand,
    BacktestConfig,
    SignalConfig,
    StrategyConfig,
    TechnicalConfig,
    TradingConfig,
    VolatilityThresholds,
    load_trading_config,
)

__all__ = [
    "AccountBand",
    "BacktestConfig",
    "LoggingConfig",
    "SignalConfig",
    "StrategyConfig",
    "TechnicalConfig",
    "TradingConfig",
    "VolatilityThresholds",
    "configure_logging",
    "load_trading_config",
]
