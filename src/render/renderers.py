"""Renderer classes for displaying strategy comparison results.

Each comparison renderer takes a ComparisonResult and prints the part it is
responsible for. TaxDetailsRenderer and StrategiesRenderer render a single
tax calculation and the strategy registry respectively.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from calc.comparison_insights import key_insights, find_crossover_point, cumulative_withdrawals, summary_text
from calc.strategy_registry import StrategyDefinition
from model.ComparisonData import ComparisonResult, ComparedStrategy
from model.StrategyData import CombinedStrategyResult
from model.TaxBreakdown import TaxBreakdown
from model.field_metadata import get_short_name, wrap_header


def format_multiline_headers(columns: List[tuple], year_width: int = 6) -> tuple[List[str], str]:
    """Format column headers with multi-line wrapping support.

    Args:
        columns: List of (header_text, width) tuples for each column
        year_width: Width of the Year column (default 6)

    Returns:
        Tuple of (list of header lines, separator line)
    """
    wrapped = [(wrap_header(header, width), width) for header, width in columns]
    max_lines = max(len(lines) for lines, _ in wrapped) if wrapped else 1

    # Pad at the top so the last header line sits above the separator
    for lines, _ in wrapped:
        while len(lines) < max_lines:
            lines.insert(0, "")

    header_lines = []
    for line_idx in range(max_lines):
        label = 'Year' if line_idx == max_lines - 1 else ''
        header_line = f"  {label:<{year_width}}"
        for lines, width in wrapped:
            header_line += f" {lines[line_idx]:>{width}}"
        header_lines.append(header_line)

    sep_line = f"  {'-' * year_width}"
    for _, width in wrapped:
        sep_line += f" {'-' * width}"

    return header_lines, sep_line


def parse_year_range(year_range: str, first_year: int, last_year: int) -> tuple:
    """Parse 'start-end', 'start-', '-end' or a single year into (start, end)."""
    if '-' not in year_range:
        year = int(year_range)
        return (year, year)

    parts = year_range.split('-')
    start_year = int(parts[0]) if parts[0] else first_year
    end_year = int(parts[1]) if parts[1] else last_year
    return (start_year, end_year)


def _banner(title: str, width: int) -> None:
    print()
    print("=" * width)
    print(f"{title:^{width}}")
    print("=" * width)
    print()


class BaseRenderer(ABC):
    """Abstract base class for all renderers."""

    @abstractmethod
    def render(self, data: Any) -> None:
        """Render the data to output."""
        pass


class YearRangeRenderer(BaseRenderer):
    """Base for renderers that print one row per year."""

    def __init__(self, start_year: int = None, end_year: int = None):
        self.start_year = start_year
        self.end_year = end_year

    def in_range(self, year: int) -> bool:
        if self.start_year is not None and year < self.start_year:
            return False
        if self.end_year is not None and year > self.end_year:
            return False
        return True


class ComparisonSummaryRenderer(BaseRenderer):
    """Side-by-side headline metrics and the winner."""

    def render(self, data: ComparisonResult) -> None:
        inputs = data.inputs
        s1 = data.strategy1
        s2 = data.strategy2
        _banner("STRATEGY COMPARISON", 90)
        print(f"  {'Pension Amount:':<32} £{inputs.pension_amount:>14,.2f}")
        print(f"  {'Period:':<32} {inputs.start_year}-{inputs.end_year} ({inputs.years} years)")
        print(f"  {'Withdrawal Rate:':<32} {inputs.withdrawal_rate:>14}%")
        print(f"  {'Annual Withdrawal Target:':<32} £{inputs.target_withdrawal:>14,.2f}")
        if data.fees.adjust_for_inflation:
            print(f"  {'Withdrawals:':<32} {'CPI-linked':>15}")
        print()
        print(f"  {'':<32} {s1.short_name:>24} {s2.short_name:>24}")
        print(f"  {'-' * 32} {'-' * 24} {'-' * 24}")
        rows = [
            ("Initial Tax Paid", "initial_tax_paid"),
            ("Fees & Dealing Costs", "total_fees"),
            ("Tax On Withdrawals", "total_withdrawal_tax"),
            ("Gross Withdrawn", "total_gross_withdrawn"),
            ("Net Withdrawn", "total_net_withdrawn"),
            ("Final Value", "final_asset_value"),
            ("Tax Due On Final Value", "remaining_tax_liability"),
            ("Final Value After Tax", "final_after_tax_value"),
            ("Total Value Realized", "total_value_realized"),
        ]
        for label, attr in rows:
            v1 = getattr(s1.metrics, attr)
            v2 = getattr(s2.metrics, attr)
            print(f"  {label + ':':<32} £{v1:>23,.2f} £{v2:>23,.2f}")
        print(f"  {'Full Withdrawal Years:':<32} {s1.metrics.years_with_full_withdrawal:>24} {s2.metrics.years_with_full_withdrawal:>24}")
        depleted1 = s1.metrics.year_depleted or '-'
        depleted2 = s2.metrics.year_depleted or '-'
        print(f"  {'Year Depleted:':<32} {depleted1:>24} {depleted2:>24}")
        print()
        print("=" * 90)
        summary = data.summary
        if summary.winner == 'tie':
            print(f"{'RESULT: TIE':^90}")
        else:
            verdict = f"WINNER: {summary.winner_name} by £{summary.difference:,.2f} ({summary.percentage_difference:.1f}%)"
            print(f"{verdict:^90}")
        print("=" * 90)
        print()


class YearlyComparisonRenderer(YearRangeRenderer):
    """Normalized year-by-year table for both strategies."""

    def render(self, data: ComparisonResult) -> None:
        s1 = data.strategy1.short_name
        s2 = data.strategy2.short_name
        _banner(f"YEARLY COMPARISON: {s1} vs {s2}", 122)

        columns = [
            (f"{s1} {get_short_name('asset_value')}", 16),
            (f"{s1} {get_short_name('net_withdrawal')}", 14),
            (f"{s1} {get_short_name('status')}", 10),
            (f"{s2} {get_short_name('asset_value')}", 16),
            (f"{s2} {get_short_name('net_withdrawal')}", 14),
            (f"{s2} {get_short_name('status')}", 10),
            ("Asset Value Difference", 16),
        ]
        header_lines, sep_line = format_multiline_headers(columns, year_width=6)
        for line in header_lines:
            print(line)
        print(sep_line)

        for entry in data.yearly_comparison:
            if not self.in_range(entry.year):
                continue
            a = entry.strategy1
            b = entry.strategy2
            print(f"  {entry.year:<6} £{a.asset_value:>15,.2f} £{a.net_withdrawal:>13,.2f} {a.status:>10}"
                  f" £{b.asset_value:>15,.2f} £{b.net_withdrawal:>13,.2f} {b.status:>10}"
                  f" £{entry.difference.asset_value:>15,.2f}")
        print()


class StrategyDetailRenderer(YearRangeRenderer):
    """Raw drawdown records for one side of a comparison."""

    side = 1

    def render(self, data: ComparisonResult) -> None:
        strategy: ComparedStrategy = data.strategy1 if self.side == 1 else data.strategy2
        result = strategy.result
        if isinstance(result, CombinedStrategyResult):
            self._render_combined(strategy.name, result)
            return

        unit = result.holdings_unit
        _banner(f"{strategy.name.upper()} - YEAR BY YEAR", 150)
        position = result.initial_position
        if position.tax_paid:
            print(f"  {'Tax On Initial Withdrawal:':<32} £{position.tax_paid:>14,.2f}")
        if position.purchase_cost:
            print(f"  {'Purchase Cost:':<32} £{position.purchase_cost:>14,.2f}")
        print(f"  {'Amount Invested:':<32} £{position.amount_invested:>14,.2f}")
        print(f"  {'Initial Holdings:':<32} {position.holdings:>15,.4f} {unit}")
        print()

        columns = [
            (get_short_name("unit_price"), 12),
            (get_short_name("opening_holdings"), 14),
            (get_short_name("fee"), 12),
            (get_short_name("gross_withdrawal"), 14),
            (get_short_name("transaction_cost"), 12),
            (get_short_name("tax_paid"), 12),
            (get_short_name("net_withdrawal"), 14),
            (get_short_name("closing_holdings"), 14),
            (get_short_name("closing_value"), 16),
            (get_short_name("status"), 10),
        ]
        header_lines, sep_line = format_multiline_headers(columns, year_width=6)
        for line in header_lines:
            print(line)
        print(sep_line)
        for r in result.yearly_results:
            if not self.in_range(r.year):
                continue
            print(f"  {r.year:<6} £{r.unit_price:>11,.2f} {r.opening_holdings:>14,.4f} £{r.fee:>11,.2f}"
                  f" £{r.gross_withdrawal:>13,.2f} £{r.transaction_cost:>11,.2f} £{r.tax_paid:>11,.2f}"
                  f" £{r.net_withdrawal:>13,.2f} {r.closing_holdings:>14,.4f} £{r.closing_value:>15,.2f} {r.status:>10}")
        print()

    def _render_combined(self, name: str, result: CombinedStrategyResult) -> None:
        _banner(f"{name.upper()} - YEAR BY YEAR", 120)
        columns = [
            ("Start Value", 16),
            ("Fees", 12),
            ("Dealing Cost", 12),
            ("Tax Paid", 12),
            ("Net Withdrawal", 14),
            ("End Value", 16),
            ("Status", 10),
        ]
        header_lines, sep_line = format_multiline_headers(columns, year_width=6)
        for line in header_lines:
            print(line)
        print(sep_line)
        for r in result.yearly_results:
            if not self.in_range(r.year):
                continue
            print(f"  {r.year:<6} £{r.combined_start_value:>15,.2f} £{r.combined_fees:>11,.2f}"
                  f" £{r.combined_transaction_costs:>11,.2f} £{r.combined_tax_paid:>11,.2f}"
                  f" £{r.combined_net_withdrawal:>13,.2f} £{r.combined_end_value:>15,.2f} {r.status:>10}")
        print()


class Strategy1Renderer(StrategyDetailRenderer):
    side = 1


class Strategy2Renderer(StrategyDetailRenderer):
    side = 2


class InsightsRenderer(YearRangeRenderer):
    """Narrative insights plus cumulative withdrawals."""

    def render(self, data: ComparisonResult) -> None:
        _banner("KEY INSIGHTS", 80)
        print(summary_text(data))
        print()
        for insight in key_insights(data):
            print(f"  * {insight}")
        crossover = find_crossover_point(data)
        if crossover is None:
            print("  * No crossover: the same strategy held more assets throughout")
        print()

        s1 = data.strategy1.short_name
        s2 = data.strategy2.short_name
        columns = [(f"{s1} Cumulative", 18), (f"{s2} Cumulative", 18), ("Difference", 16)]
        header_lines, sep_line = format_multiline_headers(columns, year_width=6)
        for line in header_lines:
            print(line)
        print(sep_line)
        for row in cumulative_withdrawals(data):
            if not self.in_range(row.year):
                continue
            print(f"  {row.year:<6} £{row.strategy1_cumulative:>17,.2f} £{row.strategy2_cumulative:>17,.2f} £{row.difference:>15,.2f}")
        print()


class TaxDetailsRenderer(BaseRenderer):
    """Band-by-band breakdown of one income tax calculation."""

    def __init__(self, year: int, is_pension_withdrawal: bool = False):
        self.year = year
        self.is_pension_withdrawal = is_pension_withdrawal

    def render(self, data: TaxBreakdown) -> None:
        bands = data.breakdown
        kind = "PENSION WITHDRAWAL" if self.is_pension_withdrawal else "INCOME"
        _banner(f"UK INCOME TAX ON {kind} - {self.year}", 60)
        print(f"  {'Gross Amount:':<36} £{data.grossIncome:>14,.2f}")
        print(f"  {'Tax-Free Lump Sum:':<36} £{data.taxFreeAmount:>14,.2f}")
        print(f"  {'Personal Allowance Used:':<36} £{bands.personalAllowance:>14,.2f}")
        print(f"  {'Taxable Amount:':<36} £{data.taxableAmount:>14,.2f}")
        print()
        print(f"  {'Basic Rate Band:':<36} £{bands.basicRateAmount:>14,.2f}")
        print(f"  {'Basic Rate Tax:':<36} £{bands.basicRateTax:>14,.2f}")
        print(f"  {'Higher Rate Band:':<36} £{bands.higherRateAmount:>14,.2f}")
        print(f"  {'Higher Rate Tax:':<36} £{bands.higherRateTax:>14,.2f}")
        if bands.additionalRateAmount > 0:
            print(f"  {'Additional Rate Band:':<36} £{bands.additionalRateAmount:>14,.2f}")
            print(f"  {'Additional Rate Tax:':<36} £{bands.additionalRateTax:>14,.2f}")
        print(f"  {'-' * 52}")
        print(f"  {'TOTAL TAX:':<36} £{data.taxPaid:>14,.2f}")
        print()
        print("=" * 60)
        print(f"{'NET AMOUNT:':^40} £{data.netIncome:>14,.2f}")
        print("=" * 60)
        print()


class StrategiesRenderer(BaseRenderer):
    """Lists registered strategies, optionally only those available in a year."""

    def __init__(self, year: Optional[int] = None):
        self.year = year

    def render(self, data: List[StrategyDefinition]) -> None:
        title = "AVAILABLE STRATEGIES" if self.year is None else f"STRATEGIES AVAILABLE FROM {self.year}"
        _banner(title, 100)
        print(f"  {'Id':<20} {'Name':<40} {'Type':<10} {'From':>6}")
        print(f"  {'-' * 20} {'-' * 40} {'-' * 10} {'-' * 6}")
        for strategy in data:
            if self.year is not None and self.year < strategy.earliest_year:
                continue
            print(f"  {strategy.id:<20} {strategy.name:<40} {strategy.category:<10} {strategy.earliest_year:>6}")
        print()


# Registry mapping mode names to renderers of a ComparisonResult
RENDERER_REGISTRY = {
    'Summary': ComparisonSummaryRenderer,
    'Yearly': YearlyComparisonRenderer,
    'Strategy1': Strategy1Renderer,
    'Strategy2': Strategy2Renderer,
    'Insights': InsightsRenderer,
}
