"""50/50 blends of two base strategies.

Capital is split evenly, each half runs through its own simulator over the
same years and withdrawal rate, and the two yearly outputs are merged.
"""

from typing import Optional

from calc.gold_strategy import GoldStrategyCalculator
from calc.tracker_strategy import TrackerStrategyCalculator
from calc.strategy_registry import (
    GoldVariant, TrackerVariant, CombinedVariant,
    get_strategy, find_combination, resolve_variant,
)
from model.SimulationConfig import FeeConfig, SimulationInputs
from model.StrategyData import (
    StrategyResult, CombinedYearRecord, CombinedSummary, CombinedStrategyResult,
    STATUS_ACTIVE, STATUS_DEPLETED, STATUS_EXHAUSTED, STATUS_PARTIAL,
)
from model.errors import ValidationError


def combined_status(status_a: str, status_b: str) -> str:
    """Status of a blended year from its two component statuses."""
    if status_a == STATUS_ACTIVE and status_b == STATUS_ACTIVE:
        return STATUS_ACTIVE
    if status_a == STATUS_EXHAUSTED and status_b == STATUS_EXHAUSTED:
        return STATUS_EXHAUSTED
    if status_a == STATUS_DEPLETED and status_b == STATUS_DEPLETED:
        return STATUS_DEPLETED
    return STATUS_PARTIAL


class CombinedStrategyCalculator:
    """Runs base strategies, alone or as a 50/50 pair."""

    def __init__(self, gold: GoldStrategyCalculator, tracker: TrackerStrategyCalculator):
        self.gold = gold
        self.tracker = tracker

    def run_base(self, strategy_id: str, pension_amount: float, start_year: int, withdrawal_rate: float,
                 years: int, fees: Optional[FeeConfig] = None) -> StrategyResult:
        """Simulate a single gold or tracker strategy by identifier."""
        variant = resolve_variant(strategy_id)
        if isinstance(variant, GoldVariant):
            return self.gold.calculate(pension_amount, start_year, withdrawal_rate, years,
                                       fees=fees, strategy_id=strategy_id)
        if isinstance(variant, TrackerVariant):
            return self.tracker.calculate(pension_amount, start_year, withdrawal_rate, years,
                                          index=variant.index, fees=fees, strategy_id=strategy_id)
        raise ValidationError(f"Strategy '{strategy_id}' is not a base strategy")

    def calculate(self, combination_id: str, pension_amount: float, start_year: int, withdrawal_rate: float,
                  years: int, fees: Optional[FeeConfig] = None) -> CombinedStrategyResult:
        """Simulate a registered combination.

        Args:
            combination_id: Registry id such as 'gold-sp500'
            pension_amount: Total starting pension, split evenly between the two sides
            start_year: First simulated year
            withdrawal_rate: Annual withdrawal as a percentage of capital, applied to each side
            years: Number of years to simulate
            fees: Cost assumptions shared by both sides

        Returns:
            CombinedStrategyResult with both component results and merged years
        """
        fees = fees or FeeConfig()
        inputs = SimulationInputs(pension_amount, start_year, withdrawal_rate, years)
        definition = get_strategy(combination_id)
        variant = definition.variant
        if not isinstance(variant, CombinedVariant):
            raise ValidationError(f"Strategy '{combination_id}' is not a combined strategy")
        if inputs.start_year < definition.earliest_year:
            raise ValidationError(f"{definition.name} data not available until {definition.earliest_year}")

        share_a, share_b = variant.split
        result_a = self.run_base(variant.strategy_a, inputs.pension_amount * share_a, inputs.start_year,
                                 inputs.withdrawal_rate, inputs.years, fees)
        result_b = self.run_base(variant.strategy_b, inputs.pension_amount * share_b, inputs.start_year,
                                 inputs.withdrawal_rate, inputs.years, fees)

        yearly = [self._merge_year(a, b) for a, b in zip(result_a.yearly_results, result_b.yearly_results)]

        return CombinedStrategyResult(
            strategy_id=definition.id,
            name=definition.name,
            inputs=inputs,
            fees=fees,
            component_a=result_a,
            component_b=result_b,
            yearly_results=yearly,
            summary=self._summarize(inputs, result_a, result_b, yearly),
            split=variant.split,
        )

    def calculate_by_ids(self, strategy_a: str, strategy_b: str, pension_amount: float, start_year: int,
                         withdrawal_rate: float, years: int, fees: Optional[FeeConfig] = None) -> CombinedStrategyResult:
        """Simulate the registered combination of two base strategies, in either order."""
        combination = find_combination(strategy_a, strategy_b)
        return self.calculate(combination.id, pension_amount, start_year, withdrawal_rate, years, fees)

    def _merge_year(self, a, b) -> CombinedYearRecord:
        return CombinedYearRecord(
            year=a.year,
            status=combined_status(a.status, b.status),
            record_a=a,
            record_b=b,
            combined_start_value=a.opening_value + b.opening_value,
            combined_fees=a.fee + b.fee,
            combined_transaction_costs=a.transaction_cost + b.transaction_cost,
            combined_gross_withdrawal=a.gross_withdrawal + b.gross_withdrawal,
            combined_tax_paid=a.tax_paid + b.tax_paid,
            combined_net_withdrawal=a.net_withdrawal + b.net_withdrawal,
            combined_end_value=a.closing_value + b.closing_value,
        )

    def _summarize(self, inputs: SimulationInputs, result_a: StrategyResult, result_b: StrategyResult,
                   yearly) -> CombinedSummary:
        sa = result_a.summary
        sb = result_b.summary
        summary = CombinedSummary(
            initial_investment=inputs.pension_amount,
            allocation_a=sa.initial_investment,
            allocation_b=sb.initial_investment,
            initial_tax_paid=sa.initial_tax_paid + sb.initial_tax_paid,
            total_gross_withdrawn=sa.total_gross_withdrawn + sb.total_gross_withdrawn,
            total_net_withdrawn=sa.total_net_withdrawn + sb.total_net_withdrawn,
            total_fees=sa.total_fees + sb.total_fees,
            total_transaction_costs=sa.total_transaction_costs + sb.total_transaction_costs,
            total_tax_paid=sa.total_tax_paid + sb.total_tax_paid,
            final_value_a=sa.final_value,
            final_value_b=sb.final_value,
            final_value=sa.final_value + sb.final_value,
        )
        for record in yearly:
            if record.status == STATUS_ACTIVE:
                summary.active_years += 1
                summary.full_withdrawal_years += 1
            elif record.status == STATUS_PARTIAL:
                summary.partial_years += 1
            elif record.status == STATUS_DEPLETED and summary.year_depleted is None:
                summary.year_depleted = record.year
            elif record.status == STATUS_EXHAUSTED and summary.year_exhausted is None:
                summary.year_exhausted = record.year
        # A blend still paying out from one side counts as successful
        summary.strategy_successful = bool(yearly) and yearly[-1].status in (STATUS_ACTIVE, STATUS_PARTIAL)
        summary.total_value_realized = summary.total_net_withdrawn + summary.final_value
        return summary
