#!/usr/bin/env python3
"""Interactive command shell for exploring strategy comparisons.

The shell keeps one set of simulation inputs and re-runs the comparison
whenever they change, so results can be queried field by field.

Usage:
    python src/shell.py [program_name]

Commands:
    load <program_name>           - Load inputs from input-parameters/<program_name>/spec.json
    set <setting> <value>         - Change one input and re-run the comparison
    show                          - Show the current inputs
    strategies [year]             - List strategies (optionally those available from a year)
    compare [strategy1 strategy2] - Run the comparison and show the summary
    get <fields> [year_or_range]  - Query yearly comparison fields for both strategies
    fields [field]                - List queryable fields
    render <mode> [year_or_range] - Render a report (Summary, Yearly, Strategy1, ...)
    tax <amount> <year> [pension] - Show the tax on an amount
    insights                      - Show key insights for the current comparison
    help                          - Show help message
    exit/quit                     - Exit the shell

Examples:
    > load example
    > set start 1990
    > get asset_value, net_withdrawal 2000-2010
    > compare gold nasdaq100
    > tax 100000 2024 pension
"""

import sys
import os
import cmd
import readline
from dataclasses import fields as dataclass_fields

try:
    if 'libedit' in readline.__doc__:
        readline.parse_and_bind("bind ^I rl_complete")
    else:
        readline.parse_and_bind("tab: complete")
except (AttributeError, TypeError):
    pass  # readline might not be fully available

# Add src directory to path for imports
sys.path.insert(0, os.path.dirname(__file__))

from calc.comparison_engine import ComparisonEngine, build_comparison_engine
from calc.comparison_insights import key_insights
from calc.strategy_registry import STRATEGY_REGISTRY, get_all_strategies
from model.ComparisonData import ComparisonResult, NormalizedYear
from model.SimulationConfig import (
    FeeConfig, SimulationInputs, load_spec,
    DEFAULT_STRATEGY1, DEFAULT_STRATEGY2,
)
from model.field_metadata import COMPARISON_FIELDS, get_short_name, get_description
from render.renderers import (
    RENDERER_REGISTRY, ComparisonSummaryRenderer, TaxDetailsRenderer, StrategiesRenderer, parse_year_range,
)

BASE_PATH = os.path.normpath(os.path.join(os.path.dirname(__file__), '..'))

# Shell setting name -> (field name, converter)
INPUT_SETTINGS = {
    'amount': ('pension_amount', float),
    'start': ('start_year', int),
    'rate': ('withdrawal_rate', float),
    'years': ('years', int),
}
FEE_SETTINGS = {
    'gold_transaction': ('gold_transaction_percent', float),
    'gold_storage': ('gold_storage_fee_percent', float),
    'management_fee': ('sipp_management_fee_percent', float),
    'inflation': ('adjust_for_inflation', lambda v: v.lower() in ('on', 'true', 'yes', '1')),
}
STRATEGY_SETTINGS = ('strategy1', 'strategy2')


def get_comparison_fields() -> list:
    """Fields of NormalizedYear that can be queried (year is implied)."""
    return [f.name for f in dataclass_fields(NormalizedYear) if f.name != 'year']


def format_value(value) -> str:
    """Format a value for display."""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    elif isinstance(value, float):
        return f"£{value:,.2f}"
    return str(value)


class DrawdownShell(cmd.Cmd):
    """Interactive shell for comparing drawdown strategies."""

    prompt = '> '

    def __init__(self, engine: ComparisonEngine = None, program_name: str = None, spec: dict = None):
        super().__init__()
        self.engine = engine or build_comparison_engine()
        self.program_name = program_name
        self.available_fields = get_comparison_fields()
        self.comparison: ComparisonResult | None = None
        self._apply_spec(spec or {})
        self._update_intro()

    def preloop(self):
        """Set up readline before entering the command loop."""
        try:
            readline.set_completer_delims(' \t\n,')
            if 'libedit' in (readline.__doc__ or ''):
                readline.parse_and_bind("bind ^I rl_complete")
            else:
                readline.parse_and_bind("tab: complete")
        except (AttributeError, TypeError):
            pass

    def _apply_spec(self, spec: dict):
        self.strategy1 = spec.get('strategy1', DEFAULT_STRATEGY1)
        self.strategy2 = spec.get('strategy2', DEFAULT_STRATEGY2)
        self.inputs = SimulationInputs.from_spec(spec)
        self.fees = FeeConfig.from_spec(spec.get('costs', {}))

    def _get_available_programs(self) -> list:
        input_params_dir = os.path.join(BASE_PATH, 'input-parameters')
        programs = []
        if os.path.exists(input_params_dir):
            for item in sorted(os.listdir(input_params_dir)):
                if os.path.isdir(os.path.join(input_params_dir, item)):
                    programs.append(item)
        return programs

    def _update_intro(self):
        source = f"Program: {self.program_name}" if self.program_name else "Using default inputs"
        self.intro = f"""
Pension Drawdown Comparison Shell
=================================
{source}
Comparing: {self.strategy1} vs {self.strategy2}, {self.inputs.start_year}-{self.inputs.end_year}

Type 'help' for available commands.
Type 'fields' to see queryable fields.
Type 'exit' or 'quit' to exit.
"""

    def _run_comparison(self) -> bool:
        """Re-run the comparison for the current inputs. Returns True on success."""
        try:
            self.comparison = self.engine.compare(
                self.strategy1, self.strategy2,
                self.inputs.pension_amount, self.inputs.start_year,
                self.inputs.withdrawal_rate, self.inputs.years, self.fees,
            )
        except ValueError as e:
            self.comparison = None
            print(f"Error: {e}")
            return False
        return True

    def _require_comparison(self) -> bool:
        if self.comparison is None and not self._run_comparison():
            return False
        return True

    def do_load(self, arg: str):
        """Load inputs from a program's spec.json and run the comparison.

        Usage: load <program_name>
        """
        program_name = arg.strip() or self.program_name
        if not program_name:
            print("Please specify a program name.")
            print("Available programs:")
            for item in self._get_available_programs():
                print(f"  - {item}")
            return

        try:
            spec = load_spec(BASE_PATH, program_name)
            self._apply_spec(spec)
        except (FileNotFoundError, ValueError) as e:
            print(f"Error: {e}")
            return
        self.program_name = program_name
        print(f"Loaded '{program_name}': {self.strategy1} vs {self.strategy2}, "
              f"{self.inputs.start_year}-{self.inputs.end_year}")
        self._run_comparison()

    def do_set(self, arg: str):
        """Change one input and re-run the comparison.

        Usage: set <setting> <value>

        Settings:
            strategy1, strategy2   - Strategy ids (see 'strategies')
            amount                 - Starting pension value
            start                  - First year of drawdown
            rate                   - Withdrawal rate percentage
            years                  - Number of years
            gold_transaction       - Gold dealing cost percentage
            gold_storage           - Gold storage fee percentage
            management_fee         - SIPP management fee percentage
            inflation              - on/off: CPI-linked withdrawals
        """
        parts = arg.split()
        if len(parts) != 2:
            print("Usage: set <setting> <value>")
            return
        setting, value = parts
        try:
            if setting in STRATEGY_SETTINGS:
                if value not in STRATEGY_REGISTRY:
                    print(f"Error: Unknown strategy '{value}'. Use 'strategies' to list them.")
                    return
                setattr(self, setting, value)
            elif setting in INPUT_SETTINGS:
                name, convert = INPUT_SETTINGS[setting]
                values = {f.name: getattr(self.inputs, f.name) for f in dataclass_fields(SimulationInputs)}
                values[name] = convert(value)
                self.inputs = SimulationInputs(**values)
            elif setting in FEE_SETTINGS:
                name, convert = FEE_SETTINGS[setting]
                self.fees = self.fees.with_overrides(**{name: convert(value)})
            else:
                print(f"Error: Unknown setting '{setting}'. Type 'help set' for the list.")
                return
        except ValueError as e:
            print(f"Error: {e}")
            return
        self.comparison = None
        if self._run_comparison():
            print(f"{setting} = {value}")

    def complete_set(self, text, line, begidx, endidx):
        options = list(STRATEGY_SETTINGS) + list(INPUT_SETTINGS) + list(FEE_SETTINGS)
        return [o for o in options if o.startswith(text)]

    def do_show(self, arg: str):
        """Show the current inputs."""
        print()
        print(f"  {'Strategy 1:':<28} {self.strategy1}")
        print(f"  {'Strategy 2:':<28} {self.strategy2}")
        print(f"  {'Pension amount:':<28} £{self.inputs.pension_amount:,.2f}")
        print(f"  {'Years:':<28} {self.inputs.start_year}-{self.inputs.end_year} ({self.inputs.years})")
        print(f"  {'Withdrawal rate:':<28} {self.inputs.withdrawal_rate}%")
        print(f"  {'Gold dealing cost:':<28} {self.fees.gold_transaction_percent}%")
        print(f"  {'Gold storage fee:':<28} {self.fees.gold_storage_fee_percent}%")
        print(f"  {'SIPP management fee:':<28} {self.fees.sipp_management_fee_percent}%")
        print(f"  {'CPI-linked withdrawals:':<28} {format_value(self.fees.adjust_for_inflation)}")
        print()

    def do_strategies(self, arg: str):
        """List strategies.

        Usage: strategies [year]
        """
        year = None
        if arg.strip():
            try:
                year = int(arg.strip())
            except ValueError:
                print(f"Error: '{arg.strip()}' is not a year")
                return
        StrategiesRenderer(year).render(get_all_strategies())

    def do_compare(self, arg: str):
        """Run the comparison and show the summary.

        Usage: compare [strategy1 strategy2]
        """
        parts = arg.split()
        if parts:
            if len(parts) != 2:
                print("Usage: compare [strategy1 strategy2]")
                return
            self.strategy1, self.strategy2 = parts
        if self._run_comparison():
            ComparisonSummaryRenderer().render(self.comparison)

    def complete_compare(self, text, line, begidx, endidx):
        return [s for s in STRATEGY_REGISTRY if s.startswith(text)]

    def do_get(self, arg: str):
        """Query yearly comparison field(s) for both strategies.

        Usage: get <fields> [year_or_range]

        Examples:
            get asset_value
            get asset_value, net_withdrawal 2005-2010
            get status 2010-
        """
        if not arg.strip():
            print("Error: Please specify at least one field to query.")
            print("Usage: get <fields> [year_or_range]")
            return
        if not self._require_comparison():
            return

        years = self.comparison.years
        parts = arg.strip().split()
        year_range = None
        field_parts = parts
        last = parts[-1]
        if last[:1].isdigit() or (last.startswith('-') and last[1:].isdigit()):
            try:
                year_range = parse_year_range(last, years[0], years[-1])
                field_parts = parts[:-1]
            except ValueError:
                pass  # Not a year range, treat as field name

        field_names = [f.strip() for f in ' '.join(field_parts).split(',') if f.strip()]
        if not field_names:
            print("Error: No valid field names provided.")
            return
        invalid = [f for f in field_names if f not in self.available_fields]
        if invalid:
            print(f"Error: Unknown field(s): {', '.join(invalid)}")
            print("Use 'fields' command to see available field names.")
            return

        first_year, last_year = year_range or (years[0], years[-1])
        if first_year > last_year:
            print(f"Error: First year ({first_year}) cannot be greater than last year ({last_year})")
            return

        names = (self.comparison.strategy1.short_name, self.comparison.strategy2.short_name)
        header = ["Year"]
        for field_name in field_names:
            header += [f"{names[0]} {get_short_name(field_name)}", f"{names[1]} {get_short_name(field_name)}"]

        rows = []
        for entry in self.comparison.yearly_comparison:
            if entry.year < first_year or entry.year > last_year:
                continue
            row = [str(entry.year)]
            for field_name in field_names:
                row.append(format_value(getattr(entry.strategy1, field_name)))
                row.append(format_value(getattr(entry.strategy2, field_name)))
            rows.append(row)

        if not rows:
            print(f"No data available for years {first_year}-{last_year}")
            return

        widths = [len(h) for h in header]
        for row in rows:
            widths = [max(w, len(cell)) for w, cell in zip(widths, row)]
        header_line = "  ".join(h.rjust(widths[i]) for i, h in enumerate(header))
        print()
        print(header_line)
        print("-" * len(header_line))
        for row in rows:
            print("  ".join(cell.rjust(widths[i]) for i, cell in enumerate(row)))
        print()

    def complete_get(self, text, line, begidx, endidx):
        text_lower = text.lower()
        return [f for f in self.available_fields if text_lower in f.lower()]

    def do_fields(self, arg: str):
        """List queryable fields.

        Usage: fields [field_name]
        """
        name = arg.strip()
        if name:
            if name not in COMPARISON_FIELDS:
                print(f"Unknown field: {name}")
                return
            print(f"\n  {name}")
            print(f"    Short name:  {get_short_name(name)}")
            print(f"    Description: {get_description(name)}\n")
            return
        print()
        print(f"  {'Field':<20} {'Short Name':<18} Description")
        print(f"  {'-' * 20} {'-' * 18} {'-' * 40}")
        for field_name in self.available_fields:
            print(f"  {field_name:<20} {get_short_name(field_name):<18} {get_description(field_name)}")
        print()

    def complete_fields(self, text, line, begidx, endidx):
        return [f for f in self.available_fields if f.startswith(text)]

    def do_render(self, arg: str):
        """Render a report for the current comparison.

        Usage: render <mode> [year_or_range]

        With no mode, lists the available modes.
        """
        parts = arg.split()
        if not parts:
            print("\nAvailable render modes:")
            print("=" * 40)
            for mode in RENDERER_REGISTRY:
                print(f"  - {mode}")
            print("\nUsage: render <mode> [year_or_range]")
            return

        mode = parts[0]
        if mode not in RENDERER_REGISTRY:
            print(f"Error: Unknown render mode '{mode}'")
            print(f"Available modes: {', '.join(RENDERER_REGISTRY.keys())}")
            return
        if not self._require_comparison():
            return

        renderer_cls = RENDERER_REGISTRY[mode]
        if len(parts) > 1 and mode != 'Summary':
            years = self.comparison.years
            try:
                start, end = parse_year_range(parts[1], years[0], years[-1])
            except ValueError:
                print(f"Error: Invalid year range '{parts[1]}'")
                return
            renderer = renderer_cls(start, end)
        else:
            renderer = renderer_cls()
        renderer.render(self.comparison)

    def complete_render(self, text, line, begidx, endidx):
        return [m for m in RENDERER_REGISTRY if m.startswith(text)]

    def do_tax(self, arg: str):
        """Show the UK income tax on an amount.

        Usage: tax <amount> <year> [pension]

        Add 'pension' to treat the amount as a pension withdrawal (25% tax free).
        """
        parts = arg.split()
        if len(parts) not in (2, 3) or (len(parts) == 3 and parts[2] != 'pension'):
            print("Usage: tax <amount> <year> [pension]")
            return
        try:
            amount = float(parts[0].replace(',', ''))
            year = int(parts[1])
            is_pension = len(parts) == 3
            result = self.engine.tax.computeTax(amount, year, is_pension)
        except ValueError as e:
            print(f"Error: {e}")
            return
        TaxDetailsRenderer(year, is_pension).render(result)

    def do_insights(self, arg: str):
        """Show key insights for the current comparison."""
        if not self._require_comparison():
            return
        print()
        for insight in key_insights(self.comparison):
            print(f"  * {insight}")
        print()

    def do_help(self, arg: str):
        """Show help for available commands."""
        if arg:
            super().do_help(arg)
        else:
            print(__doc__)

    def do_exit(self, arg: str):
        """Exit the shell."""
        print("Goodbye!")
        return True

    def do_quit(self, arg: str):
        """Exit the shell."""
        return self.do_exit(arg)

    def do_EOF(self, arg: str):
        """Handle Ctrl+D to exit."""
        print()
        return self.do_exit(arg)

    def emptyline(self):
        """Do nothing on empty line."""
        pass

    def default(self, line: str):
        print(f"Unknown command: {line}")
        print("Type 'help' for available commands.")

    def complete_load(self, text, line, begidx, endidx):
        return [p for p in self._get_available_programs() if p.startswith(text)]


def main():
    program_name = sys.argv[1] if len(sys.argv) > 1 else None
    spec = None
    if program_name:
        try:
            spec = load_spec(BASE_PATH, program_name)
        except FileNotFoundError as e:
            print(f"Error: {e}")
            sys.exit(1)
    try:
        shell = DrawdownShell(program_name=program_name, spec=spec)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    shell.cmdloop()


if __name__ == "__main__":
    main()
