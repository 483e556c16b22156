"""
Logging Configuration

Loguru sink settings for host scripts. Components never configure sinks
themselves; they receive a logger handle (or bind the default one) and only
emit events.
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from loguru import logger

VALID_LEVELS = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


@dataclass
class LoggingConfig:
    """
    Loguru configuration.

    Attributes:
        level: Logging level for the console sink
        file: Optional path of a rotating file sink
        max_log_size_mb: File size before rotation
        retention_days: Days of rotated files to keep
    """
    level: str = "INFO"
    file: Optional[str] = None
    max_log_size_mb: int = 50
    retention_days: int = 10

    def validate(self) -> List[str]:
        errors = []
        if self.level.upper() not in VALID_LEVELS:
            errors.append(f"Invalid log level: {self.level}. Must be one of {VALID_LEVELS}")
        if self.max_log_size_mb < 1:
            errors.append(f"max_log_size_mb must be >= 1: {self.max_log_size_mb}")
        if self.retention_days < 1:
            errors.append(f"retention_days must be >= 1: {self.retention_days}")
        return errors

    def get_log_config(self) -> dict:
        """
        Get file-sink configuration for loguru.

        Returns:
            Dictionary with loguru add() keyword arguments
        """
        return {
            "rotation": f"{self.max_log_size_mb} MB",
            "retention": f"{self.retention_days} days",
            "compression": "zip",
            "level": self.level.upper(),
            "format": (
                "{time:YYYY-MM-DD HH:mm:ss} | "
                "{level: <8} | "
                "{name}:{function}:{line} | "
                "{message}"
            ),
        }


def configure_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """
    Install loguru sinks: colored stderr, plus a rotating file when configured.

    Args:
        config: Logging configuration
        verbose: Force DEBUG level on the console sink
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else config.level.upper(),
        format=CONSOLE_FORMAT,
    )

    if config.file:
        Path(config.file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(config.file, **config.get_log_config())
        logger.debug(f"File logging enabled: {config.file}")
