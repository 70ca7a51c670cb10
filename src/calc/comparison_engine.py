"""Runs any two strategies over identical inputs and ranks them.

Each side may be a base strategy (gold or a tracker) or a 50/50 blend. Both
are normalized into the same per-year shape, tracker holdings are valued as
if withdrawn in full at the end (taxed as a pension withdrawal), and the side
with the larger total value realized wins.
"""

import os
from typing import Optional, Union

from calc.combined_strategy import CombinedStrategyCalculator
from calc.gold_strategy import GoldStrategyCalculator
from calc.synthetic_price import SyntheticPriceCalculator
from calc.tracker_strategy import TrackerStrategyCalculator
from calc.strategy_registry import (
    StrategyDefinition, GoldVariant, TrackerVariant, CombinedVariant, get_strategy,
)
from market.MarketData import MarketData
from model.ComparisonData import (
    NormalizedYear, YearDifference, YearComparison, StrategyMetrics, ComparedStrategy,
    ComparisonSummary, ComparisonResult,
    WINNER_STRATEGY1, WINNER_STRATEGY2, WINNER_TIE, TIE_THRESHOLD,
)
from model.SimulationConfig import (
    FeeConfig, SimulationInputs,
    DEFAULT_PENSION_AMOUNT, DEFAULT_START_YEAR, DEFAULT_WITHDRAWAL_RATE, DEFAULT_YEARS,
)
from model.StrategyData import StrategyResult, CombinedStrategyResult, KIND_TRACKER, STATUS_ACTIVE
from model.errors import ValidationError
from tax.UKTaxDetails import UKTaxDetails

AnyStrategyResult = Union[StrategyResult, CombinedStrategyResult]


class ComparisonEngine:
    """Compares two registered strategies."""

    def __init__(self, tax: UKTaxDetails, strategies: CombinedStrategyCalculator):
        self.tax = tax
        self.strategies = strategies

    def latest_year(self, strategy_id: str) -> int:
        """Last year with data for every series the strategy depends on."""
        variant = get_strategy(strategy_id).variant
        if isinstance(variant, GoldVariant):
            return self.strategies.gold.latest_year()
        if isinstance(variant, TrackerVariant):
            return self.strategies.tracker.latest_year(variant.index)
        return min(self.latest_year(variant.strategy_a), self.latest_year(variant.strategy_b))

    def run_strategy(self, strategy_id: str, inputs: SimulationInputs, fees: FeeConfig) -> AnyStrategyResult:
        variant = get_strategy(strategy_id).variant
        if isinstance(variant, CombinedVariant):
            return self.strategies.calculate(strategy_id, inputs.pension_amount, inputs.start_year,
                                             inputs.withdrawal_rate, inputs.years, fees)
        return self.strategies.run_base(strategy_id, inputs.pension_amount, inputs.start_year,
                                        inputs.withdrawal_rate, inputs.years, fees)

    def compare(self, strategy1_id: str, strategy2_id: str,
                pension_amount: float = DEFAULT_PENSION_AMOUNT,
                start_year: int = DEFAULT_START_YEAR,
                withdrawal_rate: float = DEFAULT_WITHDRAWAL_RATE,
                years: int = DEFAULT_YEARS,
                fees: Optional[FeeConfig] = None) -> ComparisonResult:
        """Simulate both strategies and build the comparison.

        Raises:
            ValidationError: bad inputs, unknown or identical strategies, or a
                start year / horizon outside either strategy's data
        """
        fees = fees or FeeConfig()
        inputs = SimulationInputs(pension_amount, start_year, withdrawal_rate, years)
        definition1 = get_strategy(strategy1_id)
        definition2 = get_strategy(strategy2_id)
        if strategy1_id == strategy2_id:
            raise ValidationError("Cannot compare a strategy with itself")
        for definition in (definition1, definition2):
            self._validate_years(definition, inputs)

        result1 = self.run_strategy(strategy1_id, inputs, fees)
        result2 = self.run_strategy(strategy2_id, inputs, fees)

        side1 = self._compared_strategy(definition1, result1, inputs)
        side2 = self._compared_strategy(definition2, result2, inputs)

        yearly = []
        for year1, year2 in zip(side1.yearly, side2.yearly):
            yearly.append(YearComparison(
                year=year1.year,
                strategy1=year1,
                strategy2=year2,
                difference=YearDifference(
                    asset_value=year1.asset_value - year2.asset_value,
                    net_withdrawal=year1.net_withdrawal - year2.net_withdrawal,
                    strategy1_leads_by=year1.asset_value - year2.asset_value,
                ),
            ))

        return ComparisonResult(
            inputs=inputs,
            fees=fees,
            strategy1=side1,
            strategy2=side2,
            yearly_comparison=yearly,
            summary=self._summary(side1, side2),
        )

    def after_tax_final_value(self, result: AnyStrategyResult) -> float:
        """Final holdings value net of the tax due on withdrawing them."""
        if isinstance(result, CombinedStrategyResult):
            return self.after_tax_final_value(result.component_a) + self.after_tax_final_value(result.component_b)
        if result.kind == KIND_TRACKER:
            return self.strategies.tracker.after_tax_value(result.summary.final_value, result.inputs.end_year)
        return result.summary.final_value

    def _validate_years(self, definition: StrategyDefinition, inputs: SimulationInputs):
        if inputs.start_year < definition.earliest_year:
            raise ValidationError(f"{definition.name} data not available until {definition.earliest_year}")
        latest = self.latest_year(definition.id)
        if inputs.end_year > latest:
            raise ValidationError(
                f"Not enough data: comparison ends in {inputs.end_year}, "
                f"but {definition.name} data only available until {latest}"
            )

    def _normalize(self, result: AnyStrategyResult):
        if isinstance(result, CombinedStrategyResult):
            return [NormalizedYear(
                year=r.year,
                asset_value=r.combined_end_value,
                gross_withdrawal=r.combined_gross_withdrawal,
                net_withdrawal=r.combined_net_withdrawal,
                tax_paid=r.combined_tax_paid,
                fees=r.combined_fees + r.combined_transaction_costs,
                status=r.status,
            ) for r in result.yearly_results]
        return [NormalizedYear(
            year=r.year,
            asset_value=r.closing_value,
            gross_withdrawal=r.gross_withdrawal,
            net_withdrawal=r.net_withdrawal,
            tax_paid=r.tax_paid,
            fees=r.total_costs,
            status=r.status,
        ) for r in result.yearly_results]

    def _purchase_costs(self, result: AnyStrategyResult) -> float:
        if isinstance(result, CombinedStrategyResult):
            return self._purchase_costs(result.component_a) + self._purchase_costs(result.component_b)
        return result.initial_position.purchase_cost

    def _compared_strategy(self, definition: StrategyDefinition, result: AnyStrategyResult,
                           inputs: SimulationInputs) -> ComparedStrategy:
        summary = result.summary
        yearly = self._normalize(result)
        final_value = summary.final_value
        after_tax = self.after_tax_final_value(result)
        total_fees = summary.total_fees + summary.total_transaction_costs + self._purchase_costs(result)
        metrics = StrategyMetrics(
            initial_tax_paid=summary.initial_tax_paid,
            total_fees=total_fees,
            total_withdrawal_tax=summary.total_tax_paid,
            remaining_tax_liability=final_value - after_tax,
            total_costs=total_fees + summary.initial_tax_paid + summary.total_tax_paid,
            total_gross_withdrawn=summary.total_gross_withdrawn,
            total_net_withdrawn=summary.total_net_withdrawn,
            final_asset_value=final_value,
            final_after_tax_value=after_tax,
            total_value_realized=summary.total_net_withdrawn + after_tax,
            years_with_full_withdrawal=sum(1 for y in yearly if y.status == STATUS_ACTIVE),
            year_depleted=summary.year_depleted,
            strategy_successful=summary.strategy_successful,
        )
        return ComparedStrategy(
            id=definition.id,
            name=definition.name,
            short_name=definition.short_name,
            category=definition.category,
            result=result,
            metrics=metrics,
            yearly=yearly,
        )

    def _summary(self, side1: ComparedStrategy, side2: ComparedStrategy) -> ComparisonSummary:
        m1 = side1.metrics
        m2 = side2.metrics
        difference = m1.total_value_realized - m2.total_value_realized
        if m2.total_value_realized != 0:
            percentage = abs(difference) / abs(m2.total_value_realized) * 100
        else:
            percentage = 0.0

        if abs(difference) < TIE_THRESHOLD:
            winner, winner_name = WINNER_TIE, "Tie"
        elif difference > 0:
            winner, winner_name = WINNER_STRATEGY1, side1.short_name
        else:
            winner, winner_name = WINNER_STRATEGY2, side2.short_name

        return ComparisonSummary(
            winner=winner,
            winner_name=winner_name,
            difference=abs(difference),
            percentage_difference=percentage,
            strategy1_leads_by=difference,
            comparison={
                "initial_tax_difference": m1.initial_tax_paid - m2.initial_tax_paid,
                "total_fees_difference": m1.total_fees - m2.total_fees,
                "total_costs_difference": m1.total_costs - m2.total_costs,
                "total_net_withdrawn_difference": m1.total_net_withdrawn - m2.total_net_withdrawn,
                "final_value_difference": m1.final_after_tax_value - m2.final_after_tax_value,
                "total_value_difference": difference,
            },
        )


def build_comparison_engine(base_path: Optional[str] = None) -> ComparisonEngine:
    """Load reference data and wire the calculators together.

    Args:
        base_path: Repository root holding reference/; defaults to this checkout
    """
    tax_path = None
    market_path = None
    if base_path is not None:
        tax_path = os.path.join(base_path, 'reference', 'uk-tax-details.json')
        market_path = os.path.join(base_path, 'reference', 'market-data.json')
    tax = UKTaxDetails(tax_path)
    market = MarketData(market_path)
    prices = SyntheticPriceCalculator(market)
    gold = GoldStrategyCalculator(tax, market)
    tracker = TrackerStrategyCalculator(tax, prices)
    return ComparisonEngine(tax, CombinedStrategyCalculator(gold, tracker))
