import sys
import os
import logging
import argparse
from calc.comparison_engine import build_comparison_engine
from calc.strategy_registry import get_all_strategies
from model.SimulationConfig import FeeConfig, SimulationInputs, load_spec, DEFAULT_STRATEGY1, DEFAULT_STRATEGY2
from render.renderers import TaxDetailsRenderer, StrategiesRenderer, RENDERER_REGISTRY

logger = logging.getLogger(__name__)

BASE_PATH = os.path.normpath(os.path.join(os.path.dirname(__file__), '..'))

EXTRA_MODES = ['TaxDetails', 'Strategies']


def build_run(args: argparse.Namespace, spec: dict) -> tuple:
    """Merge spec.json values with command line overrides.

    Args:
        args: Parsed command line arguments
        spec: The program specification dictionary (may be empty)

    Returns:
        Tuple of (strategy1, strategy2, SimulationInputs, FeeConfig)
    """
    strategy1 = args.strategy1 or spec.get('strategy1', DEFAULT_STRATEGY1)
    strategy2 = args.strategy2 or spec.get('strategy2', DEFAULT_STRATEGY2)

    run_spec = dict(spec)
    for key, value in (('pensionAmount', args.amount), ('startYear', args.start_year),
                       ('withdrawalRate', args.rate), ('years', args.years)):
        if value is not None:
            run_spec[key] = value
    inputs = SimulationInputs.from_spec(run_spec)

    fees = FeeConfig.from_spec(spec.get('costs', {})).with_overrides(
        gold_transaction_percent=args.gold_transaction,
        gold_storage_fee_percent=args.gold_storage,
        sipp_management_fee_percent=args.management_fee,
        adjust_for_inflation=True if args.adjust_for_inflation else None,
    )
    return strategy1, strategy2, inputs, fees


def main():
    parser = argparse.ArgumentParser(
        description='Pension drawdown strategy comparator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  Summary      Side-by-side totals and the winning strategy (default)
  Yearly       Year-by-year asset value and withdrawals for both strategies
  Strategy1    Detailed drawdown records for the first strategy
  Strategy2    Detailed drawdown records for the second strategy
  Insights     Key insights, crossover point and cumulative withdrawals
  TaxDetails   Tax on a single amount (use --tax and --tax-year)
  Strategies   List the strategies that can be compared

Examples:
  python src/Program.py example
  python src/Program.py example --mode Yearly
  python src/Program.py --strategy1 gold --strategy2 nasdaq100 --start-year 1985
  python src/Program.py --mode TaxDetails --tax 100000 --tax-year 2024 --pension
  python src/Program.py --mode Strategies --start-year 1984
        """
    )
    parser.add_argument('program_name', nargs='?', help='Name of the program (folder in input-parameters)')
    parser.add_argument('--mode', '-m',
                        choices=list(RENDERER_REGISTRY.keys()) + EXTRA_MODES,
                        default='Summary',
                        help='Output mode (default: Summary)')
    parser.add_argument('--strategy1', help='First strategy id (e.g. gold)')
    parser.add_argument('--strategy2', help='Second strategy id (e.g. sp500)')
    parser.add_argument('--amount', type=float, help='Starting pension value in GBP')
    parser.add_argument('--start-year', type=int, help='First year of drawdown')
    parser.add_argument('--rate', type=float, help='Annual withdrawal as a percentage of the starting value')
    parser.add_argument('--years', type=int, help='Number of years to simulate')
    parser.add_argument('--gold-transaction', type=float, help='Gold dealing cost percentage')
    parser.add_argument('--gold-storage', type=float, help='Gold annual storage fee percentage')
    parser.add_argument('--management-fee', type=float, help='SIPP annual management fee percentage')
    parser.add_argument('--adjust-for-inflation', action='store_true',
                        help='Increase withdrawals each year in line with UK CPI')
    parser.add_argument('--tax', type=float, help='Amount to calculate tax on (TaxDetails mode)')
    parser.add_argument('--tax-year', type=int, help='Tax year (TaxDetails mode)')
    parser.add_argument('--pension', action='store_true',
                        help='Treat the --tax amount as a pension withdrawal with 25%% tax free')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.mode == 'Strategies':
        StrategiesRenderer(args.start_year).render(get_all_strategies())
        return

    spec = {}
    if args.program_name:
        try:
            spec = load_spec(BASE_PATH, args.program_name)
        except FileNotFoundError as e:
            print(e)
            sys.exit(1)

    try:
        engine = build_comparison_engine()
        if args.mode == 'TaxDetails':
            if args.tax is None or args.tax_year is None:
                parser.error("TaxDetails mode requires --tax and --tax-year")
            result = engine.tax.computeTax(args.tax, args.tax_year, args.pension)
            TaxDetailsRenderer(args.tax_year, args.pension).render(result)
            return

        strategy1, strategy2, inputs, fees = build_run(args, spec)
        logger.debug("Comparing %s vs %s with %s and %s", strategy1, strategy2, inputs, fees)
        comparison = engine.compare(strategy1, strategy2, inputs.pension_amount, inputs.start_year,
                                    inputs.withdrawal_rate, inputs.years, fees)
    except ValueError as e:
        logger.debug("Run failed", exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)

    renderer = RENDERER_REGISTRY[args.mode]()
    renderer.render(comparison)


if __name__ == "__main__":
    main()
