"""Data model for single-asset and blended strategy simulations.

One YearRecord is produced per simulated year by the drawdown state machine;
StrategySummary aggregates them. Combined (50/50) strategies keep both
component results and add merged per-year records.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from model.TaxBreakdown import TaxBreakdown
from model.SimulationConfig import FeeConfig, SimulationInputs


STATUS_ACTIVE = "active"
STATUS_DEPLETED = "depleted"
STATUS_EXHAUSTED = "exhausted"
# Only used by combined strategies: one side is still drawing, the other is not
STATUS_PARTIAL = "partial"

KIND_GOLD = "gold"
KIND_TRACKER = "tracker"
KIND_COMBINED = "combined"


@dataclass
class YearRecord:
    """State-machine output for one year of one holding."""
    year: int
    status: str
    unit_price: float
    opening_holdings: float = 0.0
    opening_value: float = 0.0

    # Annual fee (gold storage or fund management), paid before any withdrawal
    fee: float = 0.0
    holdings_sold_for_fee: float = 0.0
    value_after_fee: float = 0.0

    # Withdrawal
    withdrawal_requested: float = 0.0
    holdings_sold: float = 0.0
    gross_withdrawal: float = 0.0  # Sale proceeds after transaction costs, before tax
    transaction_cost: float = 0.0  # Covers both the fee sale and the withdrawal sale
    tax_paid: float = 0.0
    net_withdrawal: float = 0.0

    closing_holdings: float = 0.0
    closing_value: float = 0.0

    @property
    def total_costs(self) -> float:
        return self.fee + self.transaction_cost


@dataclass
class InitialPosition:
    """How the starting capital was turned into holdings."""
    capital: float
    unit_price: float
    holdings: float
    amount_invested: float
    purchase_cost: float = 0.0
    tax_paid: float = 0.0
    tax: Optional[TaxBreakdown] = None  # Pension withdrawal tax, when capital leaves the wrapper


@dataclass
class StrategySummary:
    """Totals over every YearRecord of a simulation."""
    initial_investment: float
    initial_tax_paid: float
    amount_invested: float
    initial_holdings: float
    target_annual_withdrawal: float
    total_gross_withdrawn: float = 0.0
    total_net_withdrawn: float = 0.0
    total_fees: float = 0.0
    total_transaction_costs: float = 0.0
    total_tax_paid: float = 0.0
    final_holdings: float = 0.0
    final_value: float = 0.0
    total_value_realized: float = 0.0
    active_years: int = 0
    full_withdrawal_years: int = 0
    year_depleted: Optional[int] = None
    year_exhausted: Optional[int] = None
    strategy_successful: bool = False


class GoldSummary(StrategySummary):
    """Summary with gold naming for holdings and fees."""

    @property
    def final_gold_ounces(self) -> float:
        return self.final_holdings

    @property
    def final_gold_value(self) -> float:
        return self.final_value

    @property
    def total_storage_fees(self) -> float:
        return self.total_fees

    @property
    def total_withdrawn(self) -> float:
        return self.total_net_withdrawn


class TrackerSummary(StrategySummary):
    """Summary with fund naming for holdings and fees."""

    @property
    def final_units(self) -> float:
        return self.final_holdings

    @property
    def total_management_fees(self) -> float:
        return self.total_fees


@dataclass
class StrategyResult:
    """Complete output of one single-asset simulation."""
    strategy_id: str
    kind: str
    series_id: str
    holdings_unit: str
    inputs: SimulationInputs
    fees: FeeConfig
    initial_position: InitialPosition
    yearly_results: List[YearRecord]
    summary: StrategySummary

    def get_year(self, year: int) -> Optional[YearRecord]:
        for record in self.yearly_results:
            if record.year == year:
                return record
        return None


@dataclass
class CombinedYearRecord:
    """Merged year of a 50/50 blend; values are the sum of both sides."""
    year: int
    status: str
    record_a: YearRecord
    record_b: YearRecord
    combined_start_value: float = 0.0
    combined_fees: float = 0.0
    combined_transaction_costs: float = 0.0
    combined_gross_withdrawal: float = 0.0
    combined_tax_paid: float = 0.0
    combined_net_withdrawal: float = 0.0
    combined_end_value: float = 0.0


@dataclass
class CombinedSummary:
    initial_investment: float
    allocation_a: float
    allocation_b: float
    initial_tax_paid: float = 0.0
    total_gross_withdrawn: float = 0.0
    total_net_withdrawn: float = 0.0
    total_fees: float = 0.0
    total_transaction_costs: float = 0.0
    total_tax_paid: float = 0.0
    final_value: float = 0.0
    final_value_a: float = 0.0
    final_value_b: float = 0.0
    total_value_realized: float = 0.0
    active_years: int = 0
    partial_years: int = 0
    full_withdrawal_years: int = 0
    year_depleted: Optional[int] = None
    year_exhausted: Optional[int] = None
    strategy_successful: bool = False


@dataclass
class CombinedStrategyResult:
    """Output of a 50/50 blend of two base strategies."""
    strategy_id: str
    name: str
    inputs: SimulationInputs
    fees: FeeConfig
    component_a: StrategyResult
    component_b: StrategyResult
    yearly_results: List[CombinedYearRecord]
    summary: CombinedSummary
    split: Tuple[float, float] = (0.5, 0.5)
    kind: str = field(default=KIND_COMBINED)

    def get_year(self, year: int) -> Optional[CombinedYearRecord]:
        for record in self.yearly_results:
            if record.year == year:
                return record
        return None
