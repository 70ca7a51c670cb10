"""Physical gold held outside the pension.

The whole pension is withdrawn up front (taxed as a pension withdrawal with
the tax-free lump sum applied) and the net proceeds buy gold. Gold sales are
exempt from capital gains tax, so withdrawals carry no tax, but every
purchase and sale pays a transaction cost and holdings may incur an annual
storage fee.
"""

from typing import Optional

from calc.drawdown import DrawdownMachine, proportional_fee, no_tax, summarize, estimate_years_remaining, withdrawal_target
from market.MarketData import MarketData, CPI_SERIES_ID
from model.SimulationConfig import FeeConfig, SimulationInputs
from model.StrategyData import StrategyResult, InitialPosition, GoldSummary, KIND_GOLD
from model.errors import ValidationError
from tax.UKTaxDetails import UKTaxDetails

GOLD_SERIES_ID = "gold"


class GoldStrategyCalculator:
    """Simulates drawing an income by selling physical gold."""

    def __init__(self, tax: UKTaxDetails, market: MarketData):
        self.tax = tax
        self.market = market

    def earliest_year(self) -> int:
        return max(self.market.earliest_year(GOLD_SERIES_ID), self.tax.first_year)

    def latest_year(self) -> int:
        return min(self.market.latest_year(GOLD_SERIES_ID), self.tax.last_year)

    def price(self, year: int) -> float:
        """Gold price in GBP per troy ounce."""
        return self.market.lookup(GOLD_SERIES_ID, year)

    def calculate(self, pension_amount: float, start_year: int, withdrawal_rate: float, years: int,
                  fees: Optional[FeeConfig] = None, strategy_id: str = "gold") -> StrategyResult:
        """Run the gold strategy.

        Args:
            pension_amount: Starting pension value in GBP
            start_year: Year the pension is withdrawn and gold bought
            withdrawal_rate: Annual withdrawal as a percentage of pension_amount
            years: Number of years to simulate
            fees: Cost assumptions; defaults apply when omitted
            strategy_id: Identifier recorded on the result

        Returns:
            StrategyResult with yearly records in ounces
        """
        fees = fees or FeeConfig()
        inputs = SimulationInputs(pension_amount, start_year, withdrawal_rate, years)
        self._validate_coverage(inputs, fees)

        initial_tax = self.tax.computeTax(inputs.pension_amount, inputs.start_year, True)
        net_proceeds = initial_tax.netIncome
        purchase_cost = net_proceeds * fees.gold_transaction_rate
        invested = net_proceeds - purchase_cost
        purchase_price = self.price(inputs.start_year)
        position = InitialPosition(
            capital=inputs.pension_amount,
            unit_price=purchase_price,
            holdings=invested / purchase_price,
            amount_invested=invested,
            purchase_cost=purchase_cost,
            tax_paid=initial_tax.taxPaid,
            tax=initial_tax,
        )

        machine = DrawdownMachine(
            price_for_year=self.price,
            fee_policy=proportional_fee(fees.gold_storage_fee_rate),
            tax_policy=no_tax,
            sale_cost_rate=fees.gold_transaction_rate,
        )
        target = inputs.target_withdrawal
        multiplier = self.market.inflation_multiplier if fees.adjust_for_inflation else None
        records = machine.run(position.holdings, inputs.start_year, inputs.years,
                              withdrawal_target(target, inputs.start_year, multiplier))

        return StrategyResult(
            strategy_id=strategy_id,
            kind=KIND_GOLD,
            series_id=GOLD_SERIES_ID,
            holdings_unit="oz",
            inputs=inputs,
            fees=fees,
            initial_position=position,
            yearly_results=records,
            summary=summarize(records, position, target, GoldSummary),
        )

    def years_remaining(self, ounces: float, year: int, target: float,
                        fees: Optional[FeeConfig] = None) -> int:
        """Full withdrawals left at this year's gold price."""
        fees = fees or FeeConfig()
        return estimate_years_remaining(ounces, self.price(year), target,
                                        fees.gold_storage_fee_rate, fees.gold_transaction_rate)

    def _validate_coverage(self, inputs: SimulationInputs, fees: FeeConfig):
        earliest = self.earliest_year()
        latest = self.latest_year()
        if inputs.start_year < earliest:
            raise ValidationError(f"Gold price data not available until {earliest}")
        if inputs.start_year > latest:
            raise ValidationError(f"Start year {inputs.start_year} is after the last year of gold price data ({latest})")
        if inputs.end_year > latest:
            raise ValidationError(
                f"Simulation ends in {inputs.end_year} but gold data is only available to {latest}. "
                f"Reduce years to at most {latest - inputs.start_year + 1}"
            )
        if fees.adjust_for_inflation:
            if not self.market.covers(CPI_SERIES_ID, inputs.start_year, inputs.end_year):
                raise ValidationError(f"Inflation adjustment needs CPI data for {inputs.start_year}-{inputs.end_year}")

