"""Drawdown Comparator Tools for MCP Server.

This module provides the tool implementations that wrap the comparison
engine and expose strategy comparisons, tax calculations and synthetic
prices through MCP.
"""

import os
import sys
import logging
from dataclasses import asdict
from typing import Dict, Optional

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from calc.comparison_engine import ComparisonEngine, build_comparison_engine
from calc.comparison_insights import key_insights, find_crossover_point, summary_text
from calc.strategy_registry import get_all_strategies, get_strategies_available_for_year
from model.ComparisonData import ComparisonResult, ComparedStrategy
from model.SimulationConfig import (
    FeeConfig, SimulationInputs, load_spec,
    DEFAULT_STRATEGY1, DEFAULT_STRATEGY2,
)
from model.StrategyData import CombinedStrategyResult, StrategyResult

logger = logging.getLogger(__name__)


def _strategy_details(strategy: ComparedStrategy) -> dict:
    """Raw simulator output for one side of a comparison."""
    result = strategy.result
    details = {
        "id": strategy.id,
        "name": strategy.name,
        "category": strategy.category,
        "metrics": asdict(strategy.metrics),
    }
    if isinstance(result, CombinedStrategyResult):
        details["summary"] = asdict(result.summary)
        details["components"] = [_component_details(result.component_a), _component_details(result.component_b)]
        details["yearly_results"] = [
            {
                "year": r.year,
                "status": r.status,
                "start_value": r.combined_start_value,
                "fees": r.combined_fees,
                "transaction_costs": r.combined_transaction_costs,
                "gross_withdrawal": r.combined_gross_withdrawal,
                "tax_paid": r.combined_tax_paid,
                "net_withdrawal": r.combined_net_withdrawal,
                "end_value": r.combined_end_value,
                "status_a": r.record_a.status,
                "status_b": r.record_b.status,
            }
            for r in result.yearly_results
        ]
    else:
        details.update(_component_details(result))
    return details


def _component_details(result: StrategyResult) -> dict:
    return {
        "strategy_id": result.strategy_id,
        "series": result.series_id,
        "holdings_unit": result.holdings_unit,
        "initial_position": asdict(result.initial_position),
        "summary": asdict(result.summary),
        "yearly_results": [asdict(r) for r in result.yearly_results],
    }


class ProgramTools:
    """Comparison for one program under input-parameters."""

    def __init__(self, base_path: str, program_name: str, engine: Optional[ComparisonEngine] = None):
        """Load the program spec and run its comparison.

        Args:
            base_path: Path to the repository root
            program_name: Name of the program folder in input-parameters
            engine: Shared comparison engine; built from base_path when omitted
        """
        self.base_path = base_path
        self.program_name = program_name
        self.engine = engine or build_comparison_engine(base_path)
        self.spec = load_spec(base_path, program_name)
        self.strategy1 = self.spec.get('strategy1', DEFAULT_STRATEGY1)
        self.strategy2 = self.spec.get('strategy2', DEFAULT_STRATEGY2)
        self.inputs = SimulationInputs.from_spec(self.spec)
        self.fees = FeeConfig.from_spec(self.spec.get('costs', {}))
        self.comparison: ComparisonResult = self.engine.compare(
            self.strategy1, self.strategy2,
            self.inputs.pension_amount, self.inputs.start_year,
            self.inputs.withdrawal_rate, self.inputs.years, self.fees,
        )

    def get_program_overview(self) -> dict:
        """Inputs, strategies and headline result of the program."""
        summary = self.comparison.summary
        return {
            "program_name": self.program_name,
            "strategies": {
                "strategy1": {"id": self.strategy1, "name": self.comparison.strategy1.name},
                "strategy2": {"id": self.strategy2, "name": self.comparison.strategy2.name},
            },
            "inputs": self.inputs.to_dict(),
            "costs": self.fees.to_dict(),
            "result": {
                "winner": summary.winner_name,
                "difference": round(summary.difference, 2),
                "percentage_difference": round(summary.percentage_difference, 2),
            },
            "summary_text": summary_text(self.comparison),
        }

    def compare(self) -> dict:
        """Full comparison including the yearly table."""
        return self.comparison.to_dict()

    def get_yearly_comparison(self, year: Optional[int] = None) -> dict:
        """One year of the comparison, or every year when year is omitted."""
        if year is None:
            return {"years": [asdict(y) for y in self.comparison.yearly_comparison]}
        entry = self.comparison.get_year(year)
        if entry is None:
            years = self.comparison.years
            return {"error": f"Year {year} not in comparison. Available: {years[0]}-{years[-1]}"}
        return asdict(entry)

    def get_strategy_details(self, side: int) -> dict:
        """Drawdown records for strategy 1 or strategy 2."""
        if side not in (1, 2):
            raise ValueError(f"side must be 1 or 2, got {side}")
        strategy = self.comparison.strategy1 if side == 1 else self.comparison.strategy2
        return _strategy_details(strategy)

    def get_key_insights(self) -> dict:
        crossover = find_crossover_point(self.comparison)
        return {
            "summary": summary_text(self.comparison),
            "insights": key_insights(self.comparison),
            "crossover": asdict(crossover) if crossover else None,
        }


class MultiProgramTools:
    """Manager for multiple comparison programs.

    Discovers all available programs and caches their comparisons, while
    also answering ad hoc comparisons and tax questions that need no program.
    """

    def __init__(self, base_path: str, default_program: Optional[str] = None):
        """Initialize and discover all available programs.

        Args:
            base_path: Path to the repository root
            default_program: Default program to use when none specified
        """
        self.base_path = base_path
        self.engine = build_comparison_engine(base_path)
        self.programs: Dict[str, ProgramTools] = {}
        self.default_program = default_program
        self._discover_programs()

    def _discover_programs(self):
        """Discover and load all available programs."""
        input_params_path = os.path.join(self.base_path, 'input-parameters')

        if not os.path.exists(input_params_path):
            return

        for name in sorted(os.listdir(input_params_path)):
            program_dir = os.path.join(input_params_path, name)
            spec_path = os.path.join(program_dir, 'spec.json')

            if os.path.isdir(program_dir) and os.path.exists(spec_path):
                try:
                    self.programs[name] = ProgramTools(self.base_path, name, self.engine)
                except (OSError, ValueError) as e:
                    # Log but don't fail on individual program errors
                    logger.warning("Failed to load program '%s': %s", name, e)

        # Set default if not specified
        if self.default_program is None and self.programs:
            self.default_program = list(self.programs.keys())[0]

    def _get_program(self, program: Optional[str] = None) -> ProgramTools:
        program_name = program or self.default_program

        if program_name not in self.programs:
            available = list(self.programs.keys())
            raise ValueError(
                f"Program '{program_name}' not found. Available programs: {available}"
            )

        return self.programs[program_name]

    def list_programs(self) -> dict:
        """List all available programs."""
        programs_info = {}
        for name, tools in self.programs.items():
            programs_info[name] = {
                "strategy1": tools.strategy1,
                "strategy2": tools.strategy2,
                "start_year": tools.inputs.start_year,
                "years": tools.inputs.years,
                "pension_amount": tools.inputs.pension_amount,
            }

        return {
            "available_programs": list(self.programs.keys()),
            "default_program": self.default_program,
            "programs_info": programs_info
        }

    def reload_programs(self) -> dict:
        """Reload all programs from disk, refreshing the cache."""
        old_programs = set(self.programs.keys())

        self.programs.clear()
        self.default_program = None
        self._discover_programs()

        new_programs = set(self.programs.keys())
        return {
            "status": "success",
            "message": f"Reloaded {len(self.programs)} programs",
            "programs_loaded": list(self.programs.keys()),
            "default_program": self.default_program,
            "changes": {
                "added": sorted(new_programs - old_programs),
                "removed": sorted(old_programs - new_programs),
                "reloaded": sorted(old_programs & new_programs)
            }
        }

    def get_program_overview(self, program: Optional[str] = None) -> dict:
        result = self._get_program(program).get_program_overview()
        result["program"] = program or self.default_program
        return result

    def list_strategies(self, year: Optional[int] = None) -> dict:
        """Registered strategies, optionally only those available in a year."""
        strategies = get_all_strategies() if year is None else get_strategies_available_for_year(year)
        result: Dict[str, object] = {"strategies": [s.to_dict() for s in strategies]}
        if year is not None:
            result["year"] = year
        return result

    def compare_strategies(self, strategy1: Optional[str] = None, strategy2: Optional[str] = None,
                           pension_amount: Optional[float] = None, start_year: Optional[int] = None,
                           withdrawal_rate: Optional[float] = None, years: Optional[int] = None,
                           costs: Optional[dict] = None, program: Optional[str] = None) -> dict:
        """Compare two strategies.

        Values not given are taken from the program (when one is named or a
        default exists) and otherwise from the built-in defaults.
        """
        spec: dict = {}
        if program is not None or self.default_program in self.programs:
            spec = dict(self._get_program(program).spec)
        for key, value in (('strategy1', strategy1), ('strategy2', strategy2),
                           ('pensionAmount', pension_amount), ('startYear', start_year),
                           ('withdrawalRate', withdrawal_rate), ('years', years)):
            if value is not None:
                spec[key] = value
        merged_costs = dict(spec.get('costs', {}))
        merged_costs.update(costs or {})

        inputs = SimulationInputs.from_spec(spec)
        fees = FeeConfig.from_spec(merged_costs)
        comparison = self.engine.compare(
            spec.get('strategy1', DEFAULT_STRATEGY1), spec.get('strategy2', DEFAULT_STRATEGY2),
            inputs.pension_amount, inputs.start_year, inputs.withdrawal_rate, inputs.years, fees,
        )
        result = comparison.to_dict()
        # The yearly table is available from get_yearly_comparison
        del result["yearlyComparison"]
        result["summaryText"] = summary_text(comparison)
        return result

    def get_yearly_comparison(self, year: Optional[int] = None, program: Optional[str] = None) -> dict:
        result = self._get_program(program).get_yearly_comparison(year)
        result["program"] = program or self.default_program
        return result

    def get_strategy_details(self, side: int, program: Optional[str] = None) -> dict:
        result = self._get_program(program).get_strategy_details(side)
        result["program"] = program or self.default_program
        return result

    def get_key_insights(self, program: Optional[str] = None) -> dict:
        result = self._get_program(program).get_key_insights()
        result["program"] = program or self.default_program
        return result

    def calculate_tax(self, amount: float, year: int, is_pension_withdrawal: bool = False) -> dict:
        """UK income tax on an amount, with the band breakdown."""
        tax = self.engine.tax
        result = tax.computeTax(amount, year, is_pension_withdrawal)
        details = result.to_dict()
        details["year"] = year
        details["isPensionWithdrawal"] = is_pension_withdrawal
        details["effectiveRate"] = round(tax.effectiveTaxRate(amount, year, is_pension_withdrawal), 4)
        details["marginalRate"] = tax.marginalRate(amount, year, is_pension_withdrawal)
        return details

    def get_synthetic_price(self, index: str, year: Optional[int] = None) -> dict:
        """Synthetic fund price for one year, or the whole series."""
        prices = self.engine.strategies.tracker.prices
        config = prices.config(index)
        result = {
            "index": index,
            "name": config.name,
            "base_year": config.base_year,
            "base_price": config.base_price,
            "currency_converted": config.requires_currency_conversion,
            "earliest_year": prices.earliest_year(index),
            "latest_year": prices.latest_year(index),
        }
        if year is None:
            result["prices"] = {y: round(p, 4) for y, p in prices.get_all_prices(index).items()}
        else:
            result["year"] = year
            result["price"] = prices.price(index, year)
        return result
