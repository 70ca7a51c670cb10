import os
import sys
import json
import argparse
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))
import Program
from Program import build_run, main


def run_program(*argv):
    with patch.object(sys, 'argv', ['Program.py', *argv]):
        main()


def test_example_spec_summary(capsys):
    run_program('example')
    output = capsys.readouterr().out
    assert "STRATEGY COMPARISON" in output
    assert "2000-2024 (25 years)" in output
    assert "Physical Gold" in output


def test_defaults_without_program(capsys):
    run_program('--years', '10')
    output = capsys.readouterr().out
    assert "2000-2009 (10 years)" in output
    assert "S&P 500" in output


def test_overrides_and_yearly_mode(capsys):
    run_program('example', '--mode', 'Yearly', '--strategy2', 'ftse100', '--start-year', '1990', '--years', '5')
    output = capsys.readouterr().out
    assert "YEARLY COMPARISON: Physical Gold vs FTSE 100" in output
    assert "1994" in output


def test_tax_details_mode(capsys):
    run_program('--mode', 'TaxDetails', '--tax', '100000', '--tax-year', '2024', '--pension')
    output = capsys.readouterr().out
    assert "UK INCOME TAX ON PENSION WITHDRAWAL - 2024" in output
    assert "17,432.00" in output


def test_tax_details_requires_amount_and_year():
    with pytest.raises(SystemExit):
        run_program('--mode', 'TaxDetails', '--tax', '100000')


def test_strategies_mode(capsys):
    run_program('--mode', 'Strategies', '--start-year', '1984')
    output = capsys.readouterr().out
    assert "STRATEGIES AVAILABLE FROM 1984" in output
    assert "ftse100" in output


def test_invalid_comparison_exits(capsys):
    with pytest.raises(SystemExit) as excinfo:
        run_program('--strategy2', 'nasdaq100', '--start-year', '1984', '--years', '10')
    assert excinfo.value.code == 1
    assert "Error: Nasdaq 100 SIPP data not available until 1985" in capsys.readouterr().out


def test_missing_program_exits(capsys):
    with pytest.raises(SystemExit) as excinfo:
        run_program('no-such-program')
    assert excinfo.value.code == 1
    assert "Spec file not found" in capsys.readouterr().out


def test_build_run_merges_spec_and_arguments():
    spec_path = os.path.join(Program.BASE_PATH, 'input-parameters', 'tech-blend', 'spec.json')
    with open(spec_path, 'r') as f:
        spec = json.load(f)
    args = argparse.Namespace(
        strategy1=None, strategy2=None, amount=None, start_year=None, rate=5.0, years=None,
        gold_transaction=None, gold_storage=None, management_fee=0.1, adjust_for_inflation=False,
    )

    strategy1, strategy2, inputs, fees = build_run(args, spec)
    assert strategy1 == 'gold-nasdaq100'
    assert strategy2 == 'sp500-ftse100'
    assert inputs.withdrawal_rate == 5.0
    assert inputs.pension_amount == 750000
    assert inputs.end_year == 2019
    assert fees.sipp_management_fee_percent == 0.1
    assert fees.gold_storage_fee_percent == 0.7
    assert fees.gold_transaction_percent == 3.0
    assert fees.adjust_for_inflation is False


def test_build_run_without_spec_uses_defaults():
    args = argparse.Namespace(
        strategy1=None, strategy2='ftse100', amount=None, start_year=None, rate=None, years=None,
        gold_transaction=None, gold_storage=None, management_fee=None, adjust_for_inflation=True,
    )
    strategy1, strategy2, inputs, fees = build_run(args, {})
    assert (strategy1, strategy2) == ('gold', 'ftse100')
    assert inputs.pension_amount == 500000
    assert inputs.start_year == 2000
    assert fees.adjust_for_inflation is True
