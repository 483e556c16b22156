"""
Risk Manager Module

Account-band position sizing and per-trade risk metrics.
"""

from spreadbot.risk_manager.models import AccountInfo, PositionSizing, RiskLevel, RiskMetrics
from spreadbot.risk_manager.position_sizing import PositionSizer, RiskManager, determine_risk_level

__all__ = [
    "AccountInfo",
    "PositionSizer",
    "PositionSizing",
    "RiskManager",
    "RiskLevel",
    "RiskMetrics",
    "determine_risk_level",
]
