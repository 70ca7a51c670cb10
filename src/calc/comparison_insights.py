"""Read-only views derived from a ComparisonResult for display."""

from dataclasses import dataclass
from typing import List, Optional

from model.ComparisonData import ComparisonResult, WINNER_TIE, WINNER_STRATEGY1


@dataclass
class CumulativeWithdrawal:
    year: int
    strategy1_cumulative: float
    strategy2_cumulative: float
    difference: float


@dataclass
class CrossoverPoint:
    year: int
    leader: str  # Short name of the strategy that took the lead
    overtaken: str
    years_from_start: int


def cumulative_withdrawals(result: ComparisonResult) -> List[CumulativeWithdrawal]:
    """Running totals of net withdrawals for both sides."""
    total1 = 0.0
    total2 = 0.0
    series = []
    for entry in result.yearly_comparison:
        total1 += entry.strategy1.net_withdrawal
        total2 += entry.strategy2.net_withdrawal
        series.append(CumulativeWithdrawal(entry.year, total1, total2, total1 - total2))
    return series


def find_crossover_point(result: ComparisonResult) -> Optional[CrossoverPoint]:
    """First year in which the strategy holding more assets changes."""
    yearly = result.yearly_comparison
    if len(yearly) < 2:
        return None

    name1 = result.strategy1.short_name
    name2 = result.strategy2.short_name
    previous = yearly[0].difference.strategy1_leads_by
    for entry in yearly[1:]:
        current = entry.difference.strategy1_leads_by
        if previous > 0 and current <= 0:
            return CrossoverPoint(entry.year, name2, name1, entry.year - result.inputs.start_year)
        if previous <= 0 and current > 0:
            return CrossoverPoint(entry.year, name1, name2, entry.year - result.inputs.start_year)
        previous = current
    return None


def key_insights(result: ComparisonResult) -> List[str]:
    """Short narrative observations about a comparison."""
    insights = []
    inputs = result.inputs
    sides = (result.strategy1, result.strategy2)

    for side in sides:
        metrics = side.metrics
        if metrics.initial_tax_paid > 0:
            percent = metrics.initial_tax_paid / inputs.pension_amount * 100
            insights.append(
                f"{side.short_name} paid {percent:.1f}% initial tax (£{metrics.initial_tax_paid:,.0f})"
            )

    for side in sides:
        insights.append(
            f"{side.short_name} incurred £{side.metrics.total_fees:,.0f} in fees and dealing costs over {inputs.years} years"
        )

    tax1 = _lifetime_tax(result.strategy1.metrics)
    tax2 = _lifetime_tax(result.strategy2.metrics)
    if tax1 < tax2:
        insights.append(f"{result.strategy1.short_name} paid £{tax2 - tax1:,.0f} less in total tax")
    elif tax2 < tax1:
        insights.append(f"{result.strategy2.short_name} paid £{tax1 - tax2:,.0f} less in total tax")

    crossover = find_crossover_point(result)
    if crossover:
        insights.append(
            f"{crossover.leader} overtook {crossover.overtaken} in {crossover.year} (year {crossover.years_from_start + 1})"
        )

    for side in sides:
        if side.metrics.year_depleted is not None:
            insights.append(f"{side.short_name} depleted in {side.metrics.year_depleted}")

    summary = result.summary
    if summary.winner != WINNER_TIE:
        insights.append(f"{summary.winner_name} outperformed by {summary.percentage_difference:.1f}% overall")
    return insights


def summary_text(result: ComparisonResult) -> str:
    """Multi-line plain text verdict."""
    inputs = result.inputs
    summary = result.summary

    if summary.winner == WINNER_TIE:
        verdict = "The strategies are essentially tied"
    else:
        winner = result.strategy1 if summary.winner == WINNER_STRATEGY1 else result.strategy2
        verdict = f"{winner.name} wins by £{summary.difference:,.0f} ({summary.percentage_difference:.1f}%)"

    lines = [
        f"Comparison: £{inputs.pension_amount:,.0f} pension, {inputs.start_year}-{inputs.end_year} "
        f"({inputs.years} years), {inputs.withdrawal_rate}% withdrawal",
        "",
        f"Result: {verdict}",
    ]
    for side in (result.strategy1, result.strategy2):
        metrics = side.metrics
        lines += [
            "",
            f"{side.name}:",
            f"  - Total value realized: £{metrics.total_value_realized:,.0f}",
            f"  - Net withdrawals: £{metrics.total_net_withdrawn:,.0f}",
            f"  - Final value (after tax): £{metrics.final_after_tax_value:,.0f}",
            f"  - Total costs (fees + tax): £{metrics.total_costs:,.0f}",
        ]
    return "\n".join(lines)


def _lifetime_tax(metrics) -> float:
    return metrics.initial_tax_paid + metrics.total_withdrawal_tax + metrics.remaining_tax_liability
