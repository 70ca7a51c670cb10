"""Year-by-year withdrawal, fee and depletion state machine.

Every single-asset strategy runs through DrawdownMachine. A holding moves
forward through three states and never back:

    active -> depleted -> exhausted

Each active year pays the fee first by selling holdings, then sells enough
to fund the target withdrawal. If that needs at least everything left, the
whole holding is sold, the year is recorded as depleted and holdings are set
to exactly zero. Every later year is exhausted with no fee, sale or
withdrawal.

Strategies differ only in the policies passed in: how the annual fee is
charged, what a sale costs, and how a withdrawal is taxed.
"""

from typing import Callable, List, Optional, Type

from model.StrategyData import (
    YearRecord, InitialPosition, StrategySummary,
    STATUS_ACTIVE, STATUS_DEPLETED, STATUS_EXHAUSTED,
)

# (opening value, year) -> fee amount in GBP
FeePolicy = Callable[[float, int], float]
# (gross withdrawal, year) -> tax due on it
TaxPolicy = Callable[[float, int], float]


def proportional_fee(rate: float) -> FeePolicy:
    """Fee charged as a fixed fraction of the opening value."""
    def fee(opening_value: float, year: int) -> float:
        return opening_value * rate
    return fee


def no_tax(gross: float, year: int) -> float:
    return 0.0


class DrawdownMachine:
    """Runs the shared depletion logic for one holding."""

    def __init__(self,
                 price_for_year: Callable[[int], float],
                 fee_policy: FeePolicy,
                 tax_policy: TaxPolicy = no_tax,
                 sale_cost_rate: float = 0.0):
        """
        Args:
            price_for_year: unit price lookup (GBP per ounce or per fund unit)
            fee_policy: annual fee charged on the opening value
            tax_policy: tax due on each withdrawal's sale proceeds
            sale_cost_rate: transaction cost as a fraction of every sale
        """
        self.price_for_year = price_for_year
        self.fee_policy = fee_policy
        self.tax_policy = tax_policy
        self.sale_cost_rate = sale_cost_rate

    def step(self, holdings: float, year: int, target: float) -> YearRecord:
        """Advance one year from the given opening holdings."""
        price = self.price_for_year(year)

        if holdings <= 0:
            # Nothing left to sell: an all-zero record
            return YearRecord(year=year, status=STATUS_EXHAUSTED, unit_price=price)

        opening_value = holdings * price
        # Cash received per unit sold, after the transaction cost
        net_per_unit = price * (1 - self.sale_cost_rate)

        fee = self.fee_policy(opening_value, year)
        sold_for_fee = fee / net_per_unit if fee > 0 else 0.0

        if sold_for_fee >= holdings:
            # The fee alone uses up what is left
            proceeds = holdings * price
            cost = proceeds * self.sale_cost_rate
            return YearRecord(
                year=year,
                status=STATUS_DEPLETED,
                unit_price=price,
                opening_holdings=holdings,
                opening_value=opening_value,
                fee=proceeds - cost,
                holdings_sold_for_fee=holdings,
                value_after_fee=0.0,
                withdrawal_requested=target,
                transaction_cost=cost,
            )

        fee_sale_cost = sold_for_fee * price * self.sale_cost_rate
        remaining = holdings - sold_for_fee
        value_after_fee = remaining * price

        needed = target / net_per_unit
        if needed < remaining:
            sold = needed
            gross = target
            closing = remaining - sold
            status = STATUS_ACTIVE
        else:
            sold = remaining
            gross = remaining * net_per_unit
            closing = 0.0
            status = STATUS_DEPLETED

        tax = self.tax_policy(gross, year) if gross > 0 else 0.0

        return YearRecord(
            year=year,
            status=status,
            unit_price=price,
            opening_holdings=holdings,
            opening_value=opening_value,
            fee=fee,
            holdings_sold_for_fee=sold_for_fee,
            value_after_fee=value_after_fee,
            withdrawal_requested=target,
            holdings_sold=sold,
            gross_withdrawal=gross,
            transaction_cost=fee_sale_cost + sold * price * self.sale_cost_rate,
            tax_paid=tax,
            net_withdrawal=gross - tax,
            closing_holdings=closing,
            closing_value=closing * price,
        )

    def run(self, initial_holdings: float, start_year: int, years: int,
            target_for_year: Callable[[int], float]) -> List[YearRecord]:
        """Simulate consecutive years starting from initial_holdings."""
        records = []
        holdings = initial_holdings
        for year in range(start_year, start_year + years):
            record = self.step(holdings, year, target_for_year(year))
            records.append(record)
            holdings = record.closing_holdings
        return records


def summarize(records: List[YearRecord], position: InitialPosition, target: float,
              summary_cls: Type[StrategySummary] = StrategySummary) -> StrategySummary:
    """Aggregate yearly records into a summary."""
    summary = summary_cls(
        initial_investment=position.capital,
        initial_tax_paid=position.tax_paid,
        amount_invested=position.amount_invested,
        initial_holdings=position.holdings,
        target_annual_withdrawal=target,
    )
    for record in records:
        summary.total_gross_withdrawn += record.gross_withdrawal
        summary.total_net_withdrawn += record.net_withdrawal
        summary.total_fees += record.fee
        summary.total_transaction_costs += record.transaction_cost
        summary.total_tax_paid += record.tax_paid
        if record.status == STATUS_ACTIVE:
            summary.active_years += 1
            summary.full_withdrawal_years += 1
        elif record.status == STATUS_DEPLETED and summary.year_depleted is None:
            summary.year_depleted = record.year
        elif record.status == STATUS_EXHAUSTED and summary.year_exhausted is None:
            summary.year_exhausted = record.year

    if records:
        last = records[-1]
        summary.final_holdings = last.closing_holdings
        summary.final_value = last.closing_value
        summary.strategy_successful = last.status == STATUS_ACTIVE
    summary.total_value_realized = summary.total_net_withdrawn + summary.final_value
    return summary


def estimate_years_remaining(holdings: float, price: float, target: float,
                             fee_rate: float = 0.0, sale_cost_rate: float = 0.0,
                             max_years: int = 100) -> int:
    """Number of further full withdrawals the holdings fund at a constant price."""
    if holdings <= 0 or price <= 0:
        return 0
    if target <= 0:
        return max_years
    net_per_unit = price * (1 - sale_cost_rate)
    count = 0
    while count < max_years:
        holdings -= holdings * price * fee_rate / net_per_unit
        needed = target / net_per_unit
        if needed >= holdings:
            break
        holdings -= needed
        count += 1
    return count


def withdrawal_target(target: float, start_year: int,
                      inflation_multiplier: Optional[Callable[[int, int], float]] = None) -> Callable[[int], float]:
    """Per-year withdrawal target.

    The target is fixed at the starting amount unless an inflation multiplier
    is supplied, in which case it is scaled by price growth since start_year.
    """
    if inflation_multiplier is None:
        return lambda year: target
    return lambda year: target * inflation_multiplier(start_year, year)
