"""Shared pytest fixtures for spreadbot tests."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Import all fixtures for global availability
from tests.fixtures.market_fixtures import *


@pytest.fixture
def history_csv(tmp_path, price_frame):
    """
    Write the synthetic price history to a CSV file.

    Returns:
        Path: CSV with date, high, low, close, volume, vix columns
    """
    path = tmp_path / "history.csv"
    price_frame.write_csv(path)
    return path
