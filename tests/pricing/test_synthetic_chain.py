"""Unit tests for the synthetic option chain builder."""

from datetime import date, timedelta

import pytest

from spreadbot.core.models import OptionRight
from spreadbot.pricing.synthetic_chain import SyntheticChainBuilder, build_synthetic_chain, estimate_strike_interval
from tests.fixtures.market_fixtures import make_snapshot


class TestStrikeInterval:
    """Test strike interval estimation."""

    @pytest.mark.parametrize("price,expected", [(12.0, 0.5), (150.0, 1.0), (603.75, 1.0), (4500.0, 5.0)])
    def test_interval(self, price, expected):
        assert estimate_strike_interval(price) == expected


class TestSyntheticChainBuilder:
    """Test model-priced chains."""

    def test_expiration_and_days(self, bullish_snapshot):
        chain = build_synthetic_chain(bullish_snapshot, 25)

        assert chain.days_to_expiration == 25
        assert chain.expiration == bullish_snapshot.trade_date + timedelta(days=25)
        assert chain.underlying_price == bullish_snapshot.price
        assert chain.iv_percentile == bullish_snapshot.iv_percentile

    def test_as_of_overrides_snapshot_date(self, bullish_snapshot):
        chain = build_synthetic_chain(bullish_snapshot, 10, as_of=date(2025, 3, 3))
        assert chain.expiration == date(2025, 3, 13)

    def test_strike_grid_covers_range(self, option_chain):
        strikes = option_chain.strikes(OptionRight.PUT)

        assert strikes == option_chain.strikes(OptionRight.CALL)
        assert strikes[0] <= 603.75 * 0.85
        assert strikes[-1] >= 603.75 * 1.15
        assert all(b - a == pytest.approx(1.0) for a, b in zip(strikes, strikes[1:]))

    def test_quotes_are_consistent(self, option_chain):
        for right in (OptionRight.CALL, OptionRight.PUT):
            for quote in option_chain.quotes(right).values():
                assert 0.0 <= quote.bid <= quote.ask
                assert quote.implied_volatility > 0
                assert quote.delta is not None

    def test_put_skew(self, option_chain):
        """Downside puts carry more IV than at-the-money puts."""
        otm = option_chain.quote(OptionRight.PUT, 560.0)
        atm = option_chain.quote(OptionRight.PUT, 604.0)

        assert otm.implied_volatility > atm.implied_volatility
        assert atm.implied_volatility == pytest.approx(0.18)

    def test_call_skew_floor(self):
        builder = SyntheticChainBuilder(call_skew_slope=10.0)
        iv = builder.implied_volatility(OptionRight.CALL, 100.0, 200.0, 0.2)

        assert iv == pytest.approx(0.1)

    def test_higher_vix_richer_premium(self):
        calm = build_synthetic_chain(make_snapshot(vix=15.0), 25)
        stressed = build_synthetic_chain(make_snapshot(vix=35.0), 25)

        assert stressed.quote(OptionRight.PUT, 590.0).mid > calm.quote(OptionRight.PUT, 590.0).mid
