"""
Tests for the historical data loader.

Tests CSV loading, column validation and snapshot construction with the
200-day warm-up.
"""

import numpy as np
import pytest

from spreadbot.core.errors import DataError, InsufficientDataError
from spreadbot.data.history import build_snapshots, load_price_history, prepare_history
from tests.fixtures.market_fixtures import make_price_frame


class TestLoadPriceHistory:
    """Test CSV loading."""

    def test_load_csv(self, history_csv):
        frame = load_price_history(history_csv)

        assert frame.height == 300
        assert frame.columns == ["date", "high", "low", "close", "volume", "vix"]

    def test_column_names_are_case_insensitive(self, tmp_path, price_frame):
        path = tmp_path / "upper.csv"
        price_frame.rename({c: c.upper() for c in price_frame.columns}).write_csv(path)

        assert load_price_history(path).height == 300

    def test_missing_file(self, tmp_path):
        with pytest.raises(DataError):
            load_price_history(tmp_path / "missing.csv")

    def test_missing_column(self, price_frame):
        with pytest.raises(DataError) as exc_info:
            prepare_history(price_frame.drop("vix"))

        assert "vix" in str(exc_info.value)

    def test_sorted_by_date(self, price_frame):
        frame = prepare_history(price_frame.reverse())
        dates = frame["date"].to_list()

        assert dates == sorted(dates)


class TestBuildSnapshots:
    """Test indicator computation over a history."""

    def test_snapshot_count_after_warmup(self, price_frame):
        snapshots = build_snapshots(prepare_history(price_frame))

        assert len(snapshots) == 101
        assert snapshots[0].trade_date == price_frame["date"][199]
        assert snapshots[-1].trade_date == price_frame["date"][299]

    def test_moving_averages(self, price_frame):
        close = price_frame["close"].to_numpy()
        last = build_snapshots(prepare_history(price_frame))[-1]

        assert last.price == pytest.approx(close[-1])
        assert last.sma50 == pytest.approx(np.mean(close[-50:]))
        assert last.sma200 == pytest.approx(np.mean(close[-200:]))

    def test_first_snapshot_averages_its_own_window(self, price_frame):
        """The first snapshot sits on row 199 and averages the rows that end there."""
        close = price_frame["close"].to_numpy()
        first = build_snapshots(prepare_history(price_frame))[0]

        assert first.price == pytest.approx(close[199])
        assert first.sma50 == pytest.approx(np.mean(close[150:200]))
        assert first.sma200 == pytest.approx(np.mean(close[:200]))

    def test_indicator_ranges(self, price_frame):
        for snapshot in build_snapshots(prepare_history(price_frame)):
            assert 0.0 <= snapshot.rsi <= 100.0
            assert 0.0 <= snapshot.adx <= 100.0
            assert 0.0 <= snapshot.iv_percentile <= 100.0
            assert snapshot.vix > 0

    def test_chronological(self, price_frame):
        snapshots = build_snapshots(prepare_history(price_frame))
        timestamps = [s.timestamp for s in snapshots]

        assert timestamps == sorted(timestamps)

    def test_short_history(self):
        with pytest.raises(InsufficientDataError) as exc_info:
            build_snapshots(prepare_history(make_price_frame(rows=150)))

        assert exc_info.value.required == 200
        assert exc_info.value.available == 150
