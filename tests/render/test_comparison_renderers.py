"""Tests for comparison, tax and strategy list renderers."""

import os
import sys

import pytest

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from calc.comparison_engine import build_comparison_engine
from calc.strategy_registry import get_all_strategies
from render.renderers import (
    RENDERER_REGISTRY,
    ComparisonSummaryRenderer,
    YearlyComparisonRenderer,
    Strategy1Renderer,
    Strategy2Renderer,
    InsightsRenderer,
    TaxDetailsRenderer,
    StrategiesRenderer,
    format_multiline_headers,
    parse_year_range,
)


@pytest.fixture(scope="module")
def engine():
    return build_comparison_engine()


@pytest.fixture(scope="module")
def comparison(engine):
    return engine.compare("gold", "sp500", 500000, 2000, 4, 25)


@pytest.fixture(scope="module")
def combined_comparison(engine):
    return engine.compare("gold-sp500", "ftse100", 500000, 2000, 4, 10)


class TestParseYearRange:
    """Tests for the year range parser."""

    def test_single_year(self):
        assert parse_year_range("2005", 2000, 2024) == (2005, 2005)

    def test_full_range(self):
        assert parse_year_range("2005-2010", 2000, 2024) == (2005, 2010)

    def test_open_ended(self):
        assert parse_year_range("2010-", 2000, 2024) == (2010, 2024)
        assert parse_year_range("-2003", 2000, 2024) == (2000, 2003)

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_year_range("abc", 2000, 2024)


class TestFormatMultilineHeaders:
    """Tests for wrapped column headers."""

    def test_headers_align_with_separator(self):
        lines, sep = format_multiline_headers([("Physical Gold Asset Value", 14), ("Fees", 10)])
        assert len(lines) == 2
        assert all(len(line) == len(sep) for line in lines)
        assert "Year" in lines[-1]


class TestComparisonRenderers:
    """Tests for renderers of a ComparisonResult."""

    def test_registry(self):
        assert set(RENDERER_REGISTRY.keys()) == {'Summary', 'Yearly', 'Strategy1', 'Strategy2', 'Insights'}

    def test_summary(self, comparison, capsys):
        ComparisonSummaryRenderer().render(comparison)
        output = capsys.readouterr().out
        assert "STRATEGY COMPARISON" in output
        assert "£    500,000.00" in output
        assert "2000-2024 (25 years)" in output
        assert "Physical Gold" in output
        assert "S&P 500" in output
        assert "WINNER:" in output or "RESULT: TIE" in output

    def test_yearly_range(self, comparison, capsys):
        YearlyComparisonRenderer(2005, 2007).render(comparison)
        output = capsys.readouterr().out
        assert "2005" in output
        assert "2007" in output
        assert "  2004 " not in output
        assert "  2008 " not in output

    def test_strategy1_details(self, comparison, capsys):
        Strategy1Renderer().render(comparison)
        output = capsys.readouterr().out
        assert "PHYSICAL GOLD - OUTSIDE PENSION - YEAR BY YEAR" in output
        assert "Tax On Initial Withdrawal:" in output
        assert "oz" in output

    def test_strategy2_details(self, comparison, capsys):
        Strategy2Renderer(2000, 2001).render(comparison)
        output = capsys.readouterr().out
        assert "S&P 500 SIPP - YEAR BY YEAR" in output
        assert "Tax On Initial Withdrawal:" not in output
        assert "units" in output

    def test_combined_details(self, combined_comparison, capsys):
        Strategy1Renderer().render(combined_comparison)
        output = capsys.readouterr().out
        assert "50% PHYSICAL GOLD + 50% S&P 500 - YEAR BY YEAR" in output
        assert "2009" in output

    def test_insights(self, comparison, capsys):
        InsightsRenderer().render(comparison)
        output = capsys.readouterr().out
        assert "KEY INSIGHTS" in output
        assert "Comparison: £500,000 pension" in output
        assert "Cumulative" in output


class TestTaxDetailsRenderer:
    """Tests for the tax breakdown renderer."""

    def test_pension_withdrawal(self, engine, capsys):
        TaxDetailsRenderer(2024, True).render(engine.tax.computeTax(100000, 2024, True))
        output = capsys.readouterr().out
        assert "UK INCOME TAX ON PENSION WITHDRAWAL - 2024" in output
        assert "£     25,000.00" in output
        assert "£     17,432.00" in output
        assert "Additional Rate Band" not in output

    def test_additional_rate_shown(self, engine, capsys):
        TaxDetailsRenderer(2024).render(engine.tax.computeTax(200000, 2024))
        output = capsys.readouterr().out
        assert "UK INCOME TAX ON INCOME - 2024" in output
        assert "Additional Rate Band" in output


class TestStrategiesRenderer:
    """Tests for the strategy list renderer."""

    def test_all_strategies(self, capsys):
        StrategiesRenderer().render(get_all_strategies())
        output = capsys.readouterr().out
        assert "AVAILABLE STRATEGIES" in output
        assert "gold-nasdaq100" in output
        assert "usTreasury" in output

    def test_filtered_by_year(self, capsys):
        StrategiesRenderer(1984).render(get_all_strategies())
        output = capsys.readouterr().out
        assert "STRATEGIES AVAILABLE FROM 1984" in output
        assert "ftse100" in output
        assert "nasdaq100" not in output
