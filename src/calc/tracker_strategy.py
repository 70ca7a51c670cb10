"""Index tracker fund held inside a SIPP.

The pension stays invested in the wrapper. Capital buys synthetic fund
units at the start year price with no initial tax. Each year a management
fee is taken as units, withdrawals sell units with no dealing cost, and the
sale proceeds are taxed as a pension withdrawal.
"""

from typing import Optional

from calc.drawdown import DrawdownMachine, proportional_fee, summarize, estimate_years_remaining, withdrawal_target
from calc.synthetic_price import SyntheticPriceCalculator
from market.MarketData import CPI_SERIES_ID
from model.SimulationConfig import FeeConfig, SimulationInputs
from model.StrategyData import StrategyResult, InitialPosition, TrackerSummary, KIND_TRACKER
from model.errors import ValidationError
from tax.UKTaxDetails import UKTaxDetails


class TrackerStrategyCalculator:
    """Simulates drawing an income from a tracker fund in a pension wrapper."""

    def __init__(self, tax: UKTaxDetails, prices: SyntheticPriceCalculator):
        self.tax = tax
        self.prices = prices

    def earliest_year(self, index: str) -> int:
        return max(self.prices.earliest_year(index), self.tax.first_year)

    def latest_year(self, index: str) -> int:
        return min(self.prices.latest_year(index), self.tax.last_year)

    def pension_tax(self, gross: float, year: int) -> float:
        return self.tax.computeTax(gross, year, True).taxPaid

    def calculate(self, pension_amount: float, start_year: int, withdrawal_rate: float, years: int,
                  index: str = "sp500", fees: Optional[FeeConfig] = None,
                  strategy_id: Optional[str] = None) -> StrategyResult:
        """Run the tracker strategy for one index.

        Args:
            pension_amount: Starting pension value in GBP
            start_year: Year the units are bought
            withdrawal_rate: Annual gross withdrawal as a percentage of pension_amount
            years: Number of years to simulate
            index: Synthetic price series to track
            fees: Cost assumptions; defaults apply when omitted
            strategy_id: Identifier recorded on the result (defaults to the index)

        Returns:
            StrategyResult with yearly records in fund units
        """
        fees = fees or FeeConfig()
        inputs = SimulationInputs(pension_amount, start_year, withdrawal_rate, years)
        self.prices.config(index)
        self._validate_coverage(inputs, index, fees)

        def price(year: int) -> float:
            return self.prices.price(index, year)

        purchase_price = price(inputs.start_year)
        position = InitialPosition(
            capital=inputs.pension_amount,
            unit_price=purchase_price,
            holdings=inputs.pension_amount / purchase_price,
            amount_invested=inputs.pension_amount,
        )

        machine = DrawdownMachine(
            price_for_year=price,
            fee_policy=proportional_fee(fees.sipp_management_fee_rate),
            tax_policy=self.pension_tax,
            sale_cost_rate=0.0,
        )
        target = inputs.target_withdrawal
        multiplier = self.prices.market.inflation_multiplier if fees.adjust_for_inflation else None
        records = machine.run(position.holdings, inputs.start_year, inputs.years,
                              withdrawal_target(target, inputs.start_year, multiplier))

        return StrategyResult(
            strategy_id=strategy_id or index,
            kind=KIND_TRACKER,
            series_id=index,
            holdings_unit="units",
            inputs=inputs,
            fees=fees,
            initial_position=position,
            yearly_results=records,
            summary=summarize(records, position, target, TrackerSummary),
        )

    def after_tax_value(self, value: float, year: int) -> float:
        """Value left if the whole fund were withdrawn and taxed in one year."""
        if value <= 0:
            return 0.0
        return self.tax.computeTax(value, year, True).netIncome

    def years_remaining(self, units: float, year: int, target: float, index: str = "sp500",
                        fees: Optional[FeeConfig] = None) -> int:
        """Full withdrawals left at this year's unit price."""
        fees = fees or FeeConfig()
        return estimate_years_remaining(units, self.prices.price(index, year), target,
                                        fees.sipp_management_fee_rate)

    def _validate_coverage(self, inputs: SimulationInputs, index: str, fees: FeeConfig):
        name = self.prices.config(index).name
        earliest = self.earliest_year(index)
        latest = self.latest_year(index)
        if inputs.start_year < earliest:
            raise ValidationError(f"{name} data not available until {earliest}")
        if inputs.start_year > latest:
            raise ValidationError(f"Start year {inputs.start_year} is after the last year of {name} data ({latest})")
        if inputs.end_year > latest:
            raise ValidationError(
                f"Simulation ends in {inputs.end_year} but {name} data is only available to {latest}. "
                f"Reduce years to at most {latest - inputs.start_year + 1}"
            )
        if fees.adjust_for_inflation:
            if not self.prices.market.covers(CPI_SERIES_ID, inputs.start_year, inputs.end_year):
                raise ValidationError(f"Inflation adjustment needs CPI data for {inputs.start_year}-{inputs.end_year}")
