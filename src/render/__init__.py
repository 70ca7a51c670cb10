"""Render module for strategy comparison output display."""

from render.renderers import (
    BaseRenderer,
    ComparisonSummaryRenderer,
    YearlyComparisonRenderer,
    StrategyDetailRenderer,
    Strategy1Renderer,
    Strategy2Renderer,
    InsightsRenderer,
    TaxDetailsRenderer,
    StrategiesRenderer,
    format_multiline_headers,
    parse_year_range,
    RENDERER_REGISTRY,
)

__all__ = [
    'BaseRenderer',
    'ComparisonSummaryRenderer',
    'YearlyComparisonRenderer',
    'StrategyDetailRenderer',
    'Strategy1Renderer',
    'Strategy2Renderer',
    'InsightsRenderer',
    'TaxDetailsRenderer',
    'StrategiesRenderer',
    'format_multiline_headers',
    'parse_year_range',
    'RENDERER_REGISTRY',
]
