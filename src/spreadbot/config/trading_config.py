"""
Trading Configuration Loader

Loads and validates engine configuration from YAML file.

Config location: config/trading_config.yaml

Schema:
- technical: Indicator periods (SMA, RSI, MACD, ADX)
- volatility: VIX level and IV percentile thresholds
- signals: Signal-strength and bias thresholds
- strategy: Expiration targets and credit/debit fallbacks
- accounts: Position-size band per account type
- backtest: Simulator settings
- logging: Loguru sink settings
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger

from spreadbot.config.logging_config import LoggingConfig


@dataclass
class TechnicalConfig:
    """Indicator period configuration."""
    sma_periods: List[int] = field(default_factory=lambda: [50, 200])
    rsi_period: int = 14
    macd_fast_period: int = 12
    macd_slow_period: int = 26
    adx_period: int = 14


@dataclass
class VolatilityThresholds:
    """VIX level and IV percentile thresholds."""
    low: float = 15.0
    medium: float = 20.0
    high: float = 25.0
    extreme: float = 30.0
    fear: float = 35.0
    percentile_high: float = 70.0
    percentile_low: float = 30.0
    percentile_condor: float = 40.0


@dataclass
class SignalConfig:
    """Signal-strength and market-bias thresholds."""
    strong_macd: float = 10.0
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0
    rsi_neutral_low: float = 40.0
    rsi_neutral_high: float = 60.0
    adx_strong_trend: float = 25.0
    min_signal_strength: float = 1.5
    strong_signal: float = 4.0
    moderate_signal: float = 2.5
    weak_signal: float = 1.0


@dataclass
class StrategyConfig:
    """Expiration targets and pricing fallbacks for strategy parameters."""
    min_days_to_expiration: int = 20
    max_days_to_expiration: int = 30
    target_days_to_expiration: int = 25
    expiry_tolerance_days: int = 5
    credit_width_fraction: float = 0.35
    debit_width_fraction: float = 0.40
    risk_free_rate: float = 0.04


@dataclass
class AccountBand:
    """Position-size band for one account type (fractions of balance)."""
    min_position_pct: float
    max_position_pct: float
    max_risk_per_trade: float
    max_open_positions: int


def default_account_bands() -> Dict[str, AccountBand]:
    """Account bands observed in production: small, medium, large, stressed."""
    return {
        "small": AccountBand(0.04, 0.10, 0.10, 2),
        "medium": AccountBand(0.05, 0.12, 0.12, 3),
        "large": AccountBand(0.06, 0.15, 0.15, 4),
        "stressed": AccountBand(0.02, 0.05, 0.05, 1),
    }


@dataclass
class BacktestConfig:
    """Backtest simulator configuration."""
    min_signal_strength: float = 1.0
    sampling: str = "daily"  # daily | monthly
    days_to_expiration: int = 30
    stop_loss_pct: float = 0.02
    profit_take_fraction: float = 0.5
    loss_take_fraction: float = 0.5
    neutral_band: float = 0.02
    account_type: str = "medium"


@dataclass
class TradingConfig:
    """Complete engine configuration."""

    technical: TechnicalConfig = field(default_factory=TechnicalConfig)
    volatility: VolatilityThresholds = field(default_factory=VolatilityThresholds)
    signals: SignalConfig = field(default_factory=SignalConfig)
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    accounts: Dict[str, AccountBand] = field(default_factory=default_account_bands)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "TradingConfig":
        """Create config from dictionary with nested dataclass instantiation."""
        accounts = default_account_bands()
        for name, band in (data.get("accounts") or {}).items():
            base = accounts.get(name, accounts["medium"])
            accounts[name] = AccountBand(
                min_position_pct=band.get("min_position_pct", base.min_position_pct),
                max_position_pct=band.get("max_position_pct", base.max_position_pct),
                max_risk_per_trade=band.get("max_risk_per_trade", base.max_risk_per_trade),
                max_open_positions=band.get("max_open_positions", base.max_open_positions),
            )

        return cls(
            technical=TechnicalConfig(**(data.get("technical") or {})),
            volatility=VolatilityThresholds(**(data.get("volatility") or {})),
            signals=SignalConfig(**(data.get("signals") or {})),
            strategy=StrategyConfig(**(data.get("strategy") or {})),
            accounts=accounts,
            backtest=BacktestConfig(**(data.get("backtest") or {})),
            logging=LoggingConfig(**(data.get("logging") or {})),
        )

    def account_band(self, account_type: str) -> AccountBand:
        """Look up the band for an account type (ValueError when unknown)."""
        try:
            return self.accounts[account_type]
        except KeyError:
            raise ValueError(
                f"Unknown account type: {account_type} "
                f"(expected one of {sorted(self.accounts)})"
            )

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        # Validate indicator periods
        if len(self.technical.sma_periods) != 2:
            errors.append(f"sma_periods must hold two periods: {self.technical.sma_periods}")
        elif not (0 < self.technical.sma_periods[0] < self.technical.sma_periods[1]):
            errors.append(f"sma_periods must be increasing and positive: {self.technical.sma_periods}")
        if self.technical.rsi_period < 2:
            errors.append(f"rsi_period must be >= 2: {self.technical.rsi_period}")
        if self.technical.macd_fast_period >= self.technical.macd_slow_period:
            errors.append("macd_fast_period must be < macd_slow_period")
        if self.technical.adx_period < 2:
            errors.append(f"adx_period must be >= 2: {self.technical.adx_period}")

        # Validate volatility thresholds
        vol = self.volatility
        if not (0 < vol.low < vol.medium < vol.high <= vol.extreme <= vol.fear):
            errors.append("volatility thresholds must satisfy low < medium < high <= extreme <= fear")
        if not (0 <= vol.percentile_low < vol.percentile_high <= 100):
            errors.append("percentile thresholds must satisfy 0 <= low < high <= 100")
        if not (0 <= vol.percentile_condor <= 100):
            errors.append(f"percentile_condor must be between 0 and 100: {vol.percentile_condor}")

        # Validate signal thresholds
        if not (0 <= self.signals.rsi_oversold < self.signals.rsi_overbought <= 100):
            errors.append("RSI thresholds must satisfy 0 <= oversold < overbought <= 100")
        if not (0 <= self.signals.min_signal_strength <= 5):
            errors.append(f"min_signal_strength must be between 0 and 5: {self.signals.min_signal_strength}")
        sig = self.signals
        if not (0 <= sig.weak_signal <= sig.moderate_signal <= sig.strong_signal <= 5):
            errors.append("sizing buckets must satisfy 0 <= weak <= moderate <= strong <= 5")

        # Validate strategy settings
        strat = self.strategy
        if not (0 < strat.min_days_to_expiration <= strat.target_days_to_expiration <= strat.max_days_to_expiration):
            errors.append("days to expiration must satisfy 0 < min <= target <= max")
        if strat.expiry_tolerance_days < 0:
            errors.append(f"expiry_tolerance_days must be >= 0: {strat.expiry_tolerance_days}")
        if not (0 < strat.credit_width_fraction < 1):
            errors.append(f"credit_width_fraction must be between 0 and 1: {strat.credit_width_fraction}")
        if not (0 < strat.debit_width_fraction < 1):
            errors.append(f"debit_width_fraction must be between 0 and 1: {strat.debit_width_fraction}")

        # Validate account bands
        for name, band in self.accounts.items():
            if not (0 < band.min_position_pct <= band.max_position_pct <= 1):
                errors.append(f"account '{name}': band must satisfy 0 < min <= max <= 1")
            if not (0 < band.max_risk_per_trade <= 1):
                errors.append(f"account '{name}': max_risk_per_trade must be between 0 and 1")
            if band.max_open_positions < 1:
                errors.append(f"account '{name}': max_open_positions must be >= 1")

        # Validate backtest settings
        bt = self.backtest
        if bt.sampling not in ("daily", "monthly"):
            errors.append(f"backtest sampling must be 'daily' or 'monthly': {bt.sampling}")
        if bt.days_to_expiration < 2:
            errors.append(f"backtest days_to_expiration must be >= 2: {bt.days_to_expiration}")
        if not (0 < bt.stop_loss_pct < 1):
            errors.append(f"stop_loss_pct must be between 0 and 1: {bt.stop_loss_pct}")
        if not (0 < bt.profit_take_fraction <= 1):
            errors.append(f"profit_take_fraction must be between 0 and 1: {bt.profit_take_fraction}")
        if not (0 < bt.loss_take_fraction <= 1):
            errors.append(f"loss_take_fraction must be between 0 and 1: {bt.loss_take_fraction}")
        if bt.account_type not in self.accounts:
            errors.append(f"backtest account_type is not a configured account: {bt.account_type}")

        errors.extend(self.logging.validate())

        return errors


def merge_config_with_env(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge configuration with environment variables.

    Environment variables override config file settings.

    Examples:
        SPREADBOT_LOG_LEVEL=DEBUG
        SPREADBOT_MIN_SIGNAL_STRENGTH=2.0
        SPREADBOT_BACKTEST_SAMPLING=monthly

    Args:
        config_data: Configuration data from file

    Returns:
        Merged configuration with env vars applied
    """
    env_mapping = {
        "SPREADBOT_LOG_LEVEL": ("logging", "level", str),
        "SPREADBOT_LOG_FILE": ("logging", "file", str),
        "SPREADBOT_MIN_SIGNAL_STRENGTH": ("signals", "min_signal_strength", float),
        "SPREADBOT_TARGET_DTE": ("strategy", "target_days_to_expiration", int),
        "SPREADBOT_BACKTEST_SAMPLING": ("backtest", "sampling", str),
        "SPREADBOT_BACKTEST_ACCOUNT_TYPE": ("backtest", "account_type", str),
    }

    for env_var, (section, key, cast) in env_mapping.items():
        env_value = os.environ.get(env_var)
        if env_value is not None:
            config_data.setdefault(section, {})[key] = cast(env_value)
            logger.debug(f"Overriding {section}.{key} from env: {env_var}")

    return config_data


def load_trading_config(config_path: Optional[str] = None) -> TradingConfig:
    """
    Load trading configuration from YAML file.

    Args:
        config_path: Path to config file (default: config/trading_config.yaml)

    Returns:
        TradingConfig object

    Raises:
        ValueError: If configuration is invalid
    """
    if config_path is None:
        # Determine project root and config path
        project_root = Path(__file__).parent.parent.parent.parent
        config_path = project_root / "config" / "trading_config.yaml"

    config_file = Path(config_path)

    data: Dict[str, Any] = {}
    if not config_file.exists():
        logger.warning(f"Trading config file not found: {config_file}, using defaults")
    else:
        try:
            with open(config_file, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing YAML config: {e}")

        if not data:
            logger.warning(f"Empty config file: {config_file}, using defaults")

    data = merge_config_with_env(data)

    try:
        config = TradingConfig.from_dict(data)
    except TypeError as e:
        raise ValueError(f"Unknown configuration key: {e}")

    errors = config.validate()
    if errors:
        error_msg = "Configuration validation errors:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)

    logger.info(f"✓ Loaded trading config from {config_file}")
    logger.debug(f"  SMA periods: {config.technical.sma_periods}")
    logger.debug(f"  VIX thresholds: {config.volatility.low}/{config.volatility.medium}/{config.volatility.high}")
    logger.debug(f"  Min signal strength: {config.signals.min_signal_strength}")

    return config
