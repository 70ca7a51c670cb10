"""Tests for the MCP server tools module."""

import os
import sys
import json
import shutil
import tempfile
import pytest

# Add src and mcp-server to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../mcp-server')))

from tools import ProgramTools, MultiProgramTools


# Path to test fixtures
FIXTURES_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), 'fixtures'))

# Path to the project root (for reference files)
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '../..'))


@pytest.fixture(scope="module")
def test_base_path():
    """Create a temporary directory structure for testing.

    This creates a temp directory with the required structure:
    - input-parameters/testprogram/spec.json (from fixtures)
    - reference/*.json (symlinked from project)
    """
    temp_dir = tempfile.mkdtemp()

    # Copy the test program from fixtures
    input_params_dir = os.path.join(temp_dir, 'input-parameters')
    os.makedirs(input_params_dir)
    shutil.copytree(
        os.path.join(FIXTURES_PATH, 'testprogram'),
        os.path.join(input_params_dir, 'testprogram')
    )

    # Symlink the reference directory from the project root
    os.symlink(
        os.path.join(PROJECT_ROOT, 'reference'),
        os.path.join(temp_dir, 'reference')
    )

    yield temp_dir

    # Cleanup
    shutil.rmtree(temp_dir, ignore_errors=True)


class TestProgramTools:
    """Tests for ProgramTools class."""

    @pytest.fixture
    def tools(self, test_base_path):
        """Create a ProgramTools instance using testprogram."""
        return ProgramTools(test_base_path, 'testprogram')

    def test_init_loads_spec(self, tools):
        assert tools.spec['strategy1'] == 'gold'
        assert tools.strategy2 == 'ftse100'
        assert tools.inputs.pension_amount == 300000
        assert tools.inputs.end_year == 2024
        assert tools.fees.gold_transaction_percent == 3

    def test_init_runs_comparison(self, tools):
        assert tools.comparison is not None
        assert tools.comparison.years == list(range(2005, 2025))

    def test_get_program_overview(self, tools):
        overview = tools.get_program_overview()

        assert overview['program_name'] == 'testprogram'
        assert overview['strategies']['strategy1']['name'] == 'Physical Gold - Outside Pension'
        assert overview['strategies']['strategy2']['name'] == 'FTSE 100 SIPP'
        assert overview['inputs']['withdrawalRate'] == 5
        assert overview['costs']['sippManagementFeePercent'] == 0.5
        assert overview['result']['winner'] in ('Physical Gold', 'FTSE 100', 'Tie')
        assert overview['summary_text'].startswith('Comparison:')

    def test_compare_is_json_serializable(self, tools):
        data = tools.compare()
        text = json.dumps(data, default=str)
        assert '"yearlyComparison"' in text
        assert len(data['yearlyComparison']) == 20

    def test_get_yearly_comparison_single_year(self, tools):
        entry = tools.get_yearly_comparison(2010)

        assert entry['year'] == 2010
        assert entry['strategy1']['year'] == 2010
        assert entry['difference']['asset_value'] == pytest.approx(
            entry['strategy1']['asset_value'] - entry['strategy2']['asset_value'])

    def test_get_yearly_comparison_all_years(self, tools):
        data = tools.get_yearly_comparison()
        assert len(data['years']) == 20

    def test_get_yearly_comparison_invalid_year(self, tools):
        data = tools.get_yearly_comparison(1999)

        assert 'error' in data
        assert '1999' in data['error']
        assert '2005-2024' in data['error']

    def test_get_strategy_details_gold(self, tools):
        details = tools.get_strategy_details(1)

        assert details['id'] == 'gold'
        assert details['holdings_unit'] == 'oz'
        assert details['initial_position']['tax_paid'] > 0
        assert len(details['yearly_results']) == 20
        assert 'status' in details['yearly_results'][0]

    def test_get_strategy_details_tracker(self, tools):
        details = tools.get_strategy_details(2)

        assert details['series'] == 'ftse100'
        assert details['initial_position']['tax_paid'] == 0

    def test_get_strategy_details_invalid_side(self, tools):
        with pytest.raises(ValueError):
            tools.get_strategy_details(3)

    def test_get_key_insights(self, tools):
        data = tools.get_key_insights()

        assert isinstance(data['insights'], list)
        assert len(data['insights']) > 0
        assert 'crossover' in data


class TestCombinedProgram:
    """Tests for a program comparing combined strategies."""

    @pytest.fixture
    def base_path(self, test_base_path):
        program_dir = os.path.join(test_base_path, 'input-parameters', 'blend')
        os.makedirs(program_dir, exist_ok=True)
        with open(os.path.join(program_dir, 'spec.json'), 'w') as f:
            json.dump({"strategy1": "gold-sp500", "strategy2": "sp500", "startYear": 2000, "years": 10}, f)
        yield test_base_path
        shutil.rmtree(program_dir, ignore_errors=True)

    def test_combined_strategy_details(self, base_path):
        tools = ProgramTools(base_path, 'blend')
        details = tools.get_strategy_details(1)

        assert details['category'] == 'combined'
        assert [c['strategy_id'] for c in details['components']] == ['gold', 'sp500']
        assert len(details['yearly_results']) == 10
        first = details['yearly_results'][0]
        assert first['status_a'] == 'active'
        json.dumps(details, default=str)


class TestMultiProgramTools:
    """Tests for MultiProgramTools class."""

    @pytest.fixture
    def multi_tools(self, test_base_path):
        return MultiProgramTools(test_base_path)

    def test_discovers_programs(self, multi_tools):
        assert 'testprogram' in multi_tools.programs
        assert multi_tools.default_program == 'testprogram'

    def test_explicit_default_program(self, test_base_path):
        tools = MultiProgramTools(test_base_path, 'testprogram')
        assert tools.default_program == 'testprogram'

    def test_list_programs(self, multi_tools):
        data = multi_tools.list_programs()

        assert data['available_programs'] == ['testprogram']
        info = data['programs_info']['testprogram']
        assert info['strategy1'] == 'gold'
        assert info['start_year'] == 2005

    def test_reload_programs(self, multi_tools):
        data = multi_tools.reload_programs()

        assert data['status'] == 'success'
        assert data['changes']['reloaded'] == ['testprogram']
        assert data['changes']['added'] == []

    def test_broken_program_is_skipped(self, test_base_path):
        program_dir = os.path.join(test_base_path, 'input-parameters', 'broken')
        os.makedirs(program_dir)
        try:
            with open(os.path.join(program_dir, 'spec.json'), 'w') as f:
                json.dump({"strategy1": "gold", "strategy2": "gold"}, f)
            tools = MultiProgramTools(test_base_path)
            assert 'broken' not in tools.programs
            assert 'testprogram' in tools.programs
        finally:
            shutil.rmtree(program_dir, ignore_errors=True)

    def test_unknown_program(self, multi_tools):
        with pytest.raises(ValueError, match="Program 'missing' not found"):
            multi_tools.get_program_overview('missing')

    def test_program_added_to_results(self, multi_tools):
        assert multi_tools.get_program_overview()['program'] == 'testprogram'
        assert multi_tools.get_yearly_comparison(2010)['program'] == 'testprogram'
        assert multi_tools.get_strategy_details(2)['program'] == 'testprogram'
        assert multi_tools.get_key_insights()['program'] == 'testprogram'

    def test_list_strategies(self, multi_tools):
        all_ids = [s['id'] for s in multi_tools.list_strategies()['strategies']]
        assert len(all_ids) == 18
        data = multi_tools.list_strategies(1984)
        assert data['year'] == 1984
        assert 'nasdaq100' not in [s['id'] for s in data['strategies']]

    def test_compare_strategies_uses_program_defaults(self, multi_tools):
        data = multi_tools.compare_strategies(strategy2='sp500')

        assert data['strategy1']['id'] == 'gold'
        assert data['strategy2']['id'] == 'sp500'
        assert data['inputs']['pensionAmount'] == 300000
        assert data['inputs']['startYear'] == 2005
        assert 'yearlyComparison' not in data

    def test_compare_strategies_with_costs(self, multi_tools):
        cheap = multi_tools.compare_strategies('gold', 'sp500', 500000, 2000, 4, 10, {'sippManagementFeePercent': 0})
        dear = multi_tools.compare_strategies('gold', 'sp500', 500000, 2000, 4, 10, {'sippManagementFeePercent': 1})
        assert cheap['costs']['sippManagementFeePercent'] == 0
        assert cheap['strategy2']['metrics']['total_value_realized'] > dear['strategy2']['metrics']['total_value_realized']

    def test_compare_strategies_invalid(self, multi_tools):
        with pytest.raises(ValueError, match="not available until 1985"):
            multi_tools.compare_strategies('gold', 'nasdaq100', start_year=1984, years=10)

    def test_compare_strategies_unknown_cost(self, multi_tools):
        with pytest.raises(ValueError, match="Unknown cost setting"):
            multi_tools.compare_strategies(costs={'platformFee': 1})

    def test_calculate_tax(self, multi_tools):
        data = multi_tools.calculate_tax(100000, 2024, True)

        assert data['taxPaid'] == pytest.approx(17432)
        assert data['taxFreeAmount'] == pytest.approx(25000)
        assert data['effectiveRate'] == pytest.approx(17.432)
        assert data['marginalRate'] == 0.4
        assert data['isPensionWithdrawal'] is True

    def test_calculate_tax_invalid_year(self, multi_tools):
        with pytest.raises(ValueError, match="Tax data not available"):
            multi_tools.calculate_tax(1000, 1950)

    def test_get_synthetic_price(self, multi_tools):
        data = multi_tools.get_synthetic_price('sp500', 2019)

        assert data['price'] == pytest.approx(44.30)
        assert data['currency_converted'] is True
        assert data['earliest_year'] == 1980

    def test_get_synthetic_price_series(self, multi_tools):
        data = multi_tools.get_synthetic_price('nasdaq100')

        assert min(data['prices']) == 1985
        assert data['prices'][2019] == pytest.approx(150.0)

    def test_get_synthetic_price_unknown_index(self, multi_tools):
        with pytest.raises(ValueError, match="Unknown index type"):
            multi_tools.get_synthetic_price('dax', 2000)
