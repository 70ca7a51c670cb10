"""Tests for synthetic tracker fund prices."""

import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))

from calc.synthetic_price import SyntheticPriceCalculator, SYNTHETIC_SERIES
from market.MarketData import MarketData
from model.errors import DataUnavailable, ValidationError


@pytest.fixture(scope="module")
def market():
    return MarketData()


@pytest.fixture(scope="module")
def prices(market):
    return SyntheticPriceCalculator(market)


class TestSyntheticPrice:
    """Tests for SyntheticPriceCalculator.price."""

    @pytest.mark.parametrize("series_id", list(SYNTHETIC_SERIES.keys()))
    def test_anchor_year_matches_base_price(self, prices, series_id):
        config = SYNTHETIC_SERIES[series_id]
        assert prices.price(series_id, config.base_year) == pytest.approx(config.base_price)

    def test_gbp_index_scales_by_performance(self, prices, market):
        expected = market.lookup("ftse100", 2005) / market.lookup("ftse100", 2019) * 55.00
        assert prices.price("ftse100", 2005) == pytest.approx(expected)

    def test_usd_index_adjusts_for_exchange_rate(self, prices, market):
        performance = market.lookup("sp500", 2000) / market.lookup("sp500", 2019)
        fx = market.lookup("gbpUsd", 2019) / market.lookup("gbpUsd", 2000)
        assert prices.price("sp500", 2000) == pytest.approx(performance * 44.30 * fx)

    def test_gold_etf_tracks_gold(self, prices, market):
        expected = market.lookup("gold", 2010) / market.lookup("gold", 2019) * 99.70
        assert prices.price("goldEtf", 2010) == pytest.approx(expected)

    def test_before_earliest_year(self, prices):
        with pytest.raises(DataUnavailable) as excinfo:
            prices.price("nasdaq100", 1984)
        assert "Nasdaq 100 data not available for year 1984" in str(excinfo.value)
        assert "Earliest available: 1985" in str(excinfo.value)

    def test_after_latest_year(self, prices):
        with pytest.raises(DataUnavailable) as excinfo:
            prices.price("sp500", 2030)
        assert "Latest available: 2026" in str(excinfo.value)

    def test_unknown_index(self, prices):
        with pytest.raises(ValidationError, match="Unknown index type: dax"):
            prices.price("dax", 2000)

    def test_prices_positive_over_full_range(self, prices):
        for series_id in SYNTHETIC_SERIES:
            assert prices.validate_prices(series_id) == []


class TestSyntheticPriceHelpers:
    """Tests for unit conversion and return helpers."""

    def test_units_and_value_invert(self, prices):
        units = prices.units(10000, 2000, "sp500")
        assert prices.value(units, 2000, "sp500") == pytest.approx(10000)

    def test_zero_amount(self, prices):
        assert prices.units(0, 2000, "sp500") == 0.0
        assert prices.value(0, 2000, "sp500") == 0.0

    def test_negative_amount_rejected(self, prices):
        with pytest.raises(ValidationError):
            prices.units(-1, 2000, "sp500")
        with pytest.raises(ValidationError):
            prices.value(-1, 2000, "sp500")

    def test_total_and_annualized_return(self, prices):
        total = prices.total_return(2000, 2010, "ftse100")
        assert total == pytest.approx(prices.price("ftse100", 2010) / prices.price("ftse100", 2000))
        annual = prices.annualized_return(2000, 2010, "ftse100")
        assert (1 + annual) ** 10 == pytest.approx(total)

    def test_annualized_return_needs_later_end(self, prices):
        with pytest.raises(ValidationError):
            prices.annualized_return(2010, 2010, "ftse100")

    def test_availability(self, prices):
        assert prices.earliest_year("nasdaq100") == 1985
        assert prices.earliest_year("ftse100") == 1984
        assert prices.is_data_available("sp500", 1980)
        assert not prices.is_data_available("nasdaq100", 1984)
        assert not prices.is_data_available("dax", 2000)

    def test_get_all_prices(self, prices):
        series = prices.get_all_prices("ftse100", 2000, 2004)
        assert list(series.keys()) == [2000, 2001, 2002, 2003, 2004]
        assert series[2002] == pytest.approx(prices.price("ftse100", 2002))
