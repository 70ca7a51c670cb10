"""Tests for the physical gold strategy."""

import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))

from calc.gold_strategy import GoldStrategyCalculator
from market.MarketData import MarketData
from model.SimulationConfig import FeeConfig
from model.StrategyData import STATUS_ACTIVE, STATUS_DEPLETED, STATUS_EXHAUSTED
from model.errors import ValidationError
from tax.UKTaxDetails import UKTaxDetails


@pytest.fixture(scope="module")
def gold():
    return GoldStrategyCalculator(UKTaxDetails(), MarketData())


@pytest.fixture(scope="module")
def result(gold):
    return gold.calculate(500000, 2000, 4, 25)


class TestGoldPurchase:
    """Tests for the up-front withdrawal and purchase."""

    def test_initial_tax(self, result):
        assert result.summary.initial_tax_paid == pytest.approx(143134, abs=0.01)
        assert result.initial_position.tax.netIncome == pytest.approx(356866, abs=0.01)

    def test_purchase_cost_and_ounces(self, result):
        position = result.initial_position
        assert position.purchase_cost == pytest.approx(356866 * 0.03, abs=0.01)
        assert position.amount_invested == pytest.approx(356866 * 0.97, abs=0.01)
        assert position.unit_price == pytest.approx(177.83)
        assert position.holdings == pytest.approx(356866 * 0.97 / 177.83, rel=1e-9)
        assert position.holdings == pytest.approx(1946.6, abs=0.1)

    def test_result_metadata(self, result):
        assert result.strategy_id == "gold"
        assert result.holdings_unit == "oz"
        assert len(result.yearly_results) == 25
        assert result.yearly_results[0].year == 2000
        assert result.yearly_results[-1].year == 2024


class TestGoldDrawdown:
    """Tests for the yearly sales."""

    def test_successful_over_25_years(self, result):
        assert result.summary.strategy_successful is True
        assert result.summary.year_depleted is None
        assert result.summary.final_value > 100000
        assert result.summary.final_gold_ounces == pytest.approx(result.yearly_results[-1].closing_holdings)

    def test_withdrawals_are_untaxed(self, result):
        for record in result.yearly_results:
            assert record.status == STATUS_ACTIVE
            assert record.gross_withdrawal == pytest.approx(20000)
            assert record.tax_paid == 0.0
            assert record.net_withdrawal == pytest.approx(20000)

    def test_dealing_cost_on_every_sale(self, result):
        first = result.get_year(2000)
        assert first.holdings_sold == pytest.approx(20000 / (177.83 * 0.97))
        assert first.transaction_cost == pytest.approx(20000 / 0.97 * 0.03)
        assert result.summary.total_transaction_costs == pytest.approx(25 * 20000 / 0.97 * 0.03)

    def test_no_storage_fee_by_default(self, result):
        assert result.summary.total_storage_fees == 0.0

    def test_storage_fee_charged_on_opening_value(self, gold):
        fees = FeeConfig(gold_storage_fee_percent=1.0)
        result = gold.calculate(500000, 2000, 4, 5, fees=fees)
        first = result.yearly_results[0]
        assert first.fee == pytest.approx(first.opening_value * 0.01)
        assert result.summary.total_storage_fees > 0

    def test_high_withdrawal_rate_depletes(self, gold):
        result = gold.calculate(500000, 2000, 10, 25)
        statuses = [r.status for r in result.yearly_results]
        assert result.summary.year_depleted == 2008
        assert statuses.index(STATUS_DEPLETED) == 8
        assert all(s == STATUS_EXHAUSTED for s in statuses[9:])
        assert all(r.withdrawal_requested == 0.0 for r in result.yearly_results[9:])
        assert result.summary.year_exhausted == 2009
        assert result.summary.strategy_successful is False
        assert result.summary.final_value == 0.0

    def test_inflation_linked_withdrawals(self, gold):
        fees = FeeConfig(adjust_for_inflation=True)
        result = gold.calculate(500000, 2000, 4, 10, fees=fees)
        multiplier = gold.market.inflation_multiplier(2000, 2009)
        assert result.get_year(2000).withdrawal_requested == pytest.approx(20000)
        assert result.get_year(2009).withdrawal_requested == pytest.approx(20000 * multiplier)


class TestGoldValidation:
    """Tests for input and data coverage checks."""

    def test_start_before_data(self, gold):
        with pytest.raises(ValidationError, match="Gold price data not available until 1980"):
            gold.calculate(500000, 1979, 4, 10)

    def test_horizon_past_data(self, gold):
        with pytest.raises(ValidationError):
            gold.calculate(500000, 2000, 4, 30)

    @pytest.mark.parametrize("amount,rate,years", [(0, 4, 10), (-5, 4, 10), (500000, 0, 10), (500000, 101, 10), (500000, 4, 0)])
    def test_invalid_inputs(self, gold, amount, rate, years):
        with pytest.raises(ValidationError):
            gold.calculate(amount, 2000, rate, years)

    def test_years_remaining(self, gold):
        assert gold.years_remaining(0, 2024, 20000) == 0
        assert gold.years_remaining(100, 2024, 20000) == 7
