"""Data model for a side-by-side comparison of two strategies."""

from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Union

from model.SimulationConfig import FeeConfig, SimulationInputs
from model.StrategyData import StrategyResult, CombinedStrategyResult


WINNER_STRATEGY1 = "strategy1"
WINNER_STRATEGY2 = "strategy2"
WINNER_TIE = "tie"

# Differences in total value realized below this many pounds count as a tie
TIE_THRESHOLD = 100


@dataclass
class NormalizedYear:
    """One year of any strategy in a common shape."""
    year: int
    asset_value: float
    gross_withdrawal: float
    net_withdrawal: float
    tax_paid: float
    fees: float
    status: str


@dataclass
class YearDifference:
    asset_value: float
    net_withdrawal: float
    strategy1_leads_by: float


@dataclass
class YearComparison:
    year: int
    strategy1: NormalizedYear
    strategy2: NormalizedYear
    difference: YearDifference


@dataclass
class StrategyMetrics:
    """Headline figures for one side of a comparison."""
    initial_tax_paid: float
    total_fees: float
    total_withdrawal_tax: float
    remaining_tax_liability: float
    total_costs: float
    total_gross_withdrawn: float
    total_net_withdrawn: float
    final_asset_value: float
    final_after_tax_value: float
    total_value_realized: float
    years_with_full_withdrawal: int
    year_depleted: Optional[int]
    strategy_successful: bool


@dataclass
class ComparedStrategy:
    id: str
    name: str
    short_name: str
    category: str
    result: Union[StrategyResult, CombinedStrategyResult]
    metrics: StrategyMetrics
    yearly: List[NormalizedYear]


@dataclass
class ComparisonSummary:
    winner: str
    winner_name: str
    difference: float  # Absolute difference in total value realized
    percentage_difference: float  # Relative to strategy 2's total value realized
    strategy1_leads_by: float  # Signed: strategy 1 minus strategy 2
    comparison: Dict[str, float]


@dataclass
class ComparisonResult:
    inputs: SimulationInputs
    fees: FeeConfig
    strategy1: ComparedStrategy
    strategy2: ComparedStrategy
    yearly_comparison: List[YearComparison]
    summary: ComparisonSummary

    @property
    def years(self) -> List[int]:
        return [y.year for y in self.yearly_comparison]

    def get_year(self, year: int) -> Optional[YearComparison]:
        for entry in self.yearly_comparison:
            if entry.year == year:
                return entry
        return None

    def to_dict(self) -> dict:
        """Serializable view without the raw simulator outputs."""
        def side(strategy: ComparedStrategy) -> dict:
            return {
                "id": strategy.id,
                "name": strategy.name,
                "shortName": strategy.short_name,
                "category": strategy.category,
                "metrics": asdict(strategy.metrics),
            }
        return {
            "inputs": self.inputs.to_dict(),
            "costs": self.fees.to_dict(),
            "strategy1": side(self.strategy1),
            "strategy2": side(self.strategy2),
            "yearlyComparison": [asdict(y) for y in self.yearly_comparison],
            "summary": asdict(self.summary),
        }
