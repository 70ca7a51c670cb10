"""Synthetic GBP unit prices for index-tracking funds.

A tracker fund that did not exist for the whole historical window is
simulated by scaling a GBP anchor price by the index's performance relative
to the anchor year and, for USD indices, by the exchange-rate move:

    price = (level[year] / level[base]) * base_price * (fx[base] / fx[year])
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from market.MarketData import MarketData, EXCHANGE_RATE_SERIES_ID
from model.errors import DataUnavailable, ValidationError


@dataclass(frozen=True)
class SyntheticSeriesConfig:
    """Anchor and source data for one synthetic price series."""
    id: str
    name: str
    index_series: str
    base_year: int
    base_price: float
    requires_currency_conversion: bool
    earliest_year: int


SYNTHETIC_SERIES: Dict[str, SyntheticSeriesConfig] = {
    "sp500": SyntheticSeriesConfig("sp500", "S&P 500", "sp500", 2019, 44.30, True, 1980),
    "nasdaq100": SyntheticSeriesConfig("nasdaq100", "Nasdaq 100", "nasdaq100", 2019, 150.00, True, 1985),
    "ftse100": SyntheticSeriesConfig("ftse100", "FTSE 100", "ftse100", 2019, 55.00, False, 1984),
    "goldEtf": SyntheticSeriesConfig("goldEtf", "Gold ETF", "gold", 2019, 99.70, False, 1980),
    "usTreasury": SyntheticSeriesConfig("usTreasury", "US Long Treasury", "usTreasury", 2019, 100.00, True, 1980),
}


class SyntheticPriceCalculator:
    """Derives currency-adjusted GBP unit prices from raw market series."""

    def __init__(self, market: MarketData):
        self.market = market

    def config(self, series_id: str) -> SyntheticSeriesConfig:
        if series_id not in SYNTHETIC_SERIES:
            raise ValidationError(
                f"Unknown index type: {series_id}. Valid types: {', '.join(SYNTHETIC_SERIES.keys())}"
            )
        return SYNTHETIC_SERIES[series_id]

    def earliest_year(self, series_id: str) -> int:
        config = self.config(series_id)
        return max(config.earliest_year, self.market.earliest_year(config.index_series))

    def latest_year(self, series_id: str) -> int:
        config = self.config(series_id)
        latest = self.market.latest_year(config.index_series)
        if config.requires_currency_conversion:
            latest = min(latest, self.market.latest_year(EXCHANGE_RATE_SERIES_ID))
        return latest

    def is_data_available(self, series_id: str, year: int) -> bool:
        if series_id not in SYNTHETIC_SERIES:
            return False
        return self.earliest_year(series_id) <= year <= self.latest_year(series_id)

    def price(self, series_id: str, year: int) -> float:
        """GBP price of one synthetic unit in a year.

        Raises:
            ValidationError: unknown series
            DataUnavailable: year before the series' launch or after its coverage
        """
        config = self.config(series_id)
        earliest = self.earliest_year(series_id)
        if year < earliest:
            raise DataUnavailable(series_id, year, earliest,
                                  message=f"{config.name} data not available for year {year}. Earliest available: {earliest}")
        latest = self.latest_year(series_id)
        if year > latest:
            raise DataUnavailable(series_id, year, earliest, latest,
                                  message=f"{config.name} data not available for year {year}. Latest available: {latest}")

        performance = self.market.lookup(config.index_series, year) / self.market.lookup(config.index_series, config.base_year)
        price = performance * config.base_price
        if config.requires_currency_conversion:
            price *= self.market.lookup(EXCHANGE_RATE_SERIES_ID, config.base_year) / self.market.lookup(EXCHANGE_RATE_SERIES_ID, year)
        return price

    def units(self, amount: float, year: int, series_id: str) -> float:
        """Units bought with an amount of GBP."""
        if amount < 0:
            raise ValidationError("Amount must be non-negative")
        if amount == 0:
            return 0.0
        return amount / self.price(series_id, year)

    def value(self, units: float, year: int, series_id: str) -> float:
        """GBP value of a number of units."""
        if units < 0:
            raise ValidationError("Units must be non-negative")
        if units == 0:
            return 0.0
        return units * self.price(series_id, year)

    def total_return(self, start_year: int, end_year: int, series_id: str) -> float:
        """Price multiplier between two years (1.5 means a 50% gain)."""
        return self.price(series_id, end_year) / self.price(series_id, start_year)

    def annualized_return(self, start_year: int, end_year: int, series_id: str) -> float:
        """Compound annual growth rate between two years as a decimal."""
        if end_year <= start_year:
            raise ValidationError("End year must be after start year")
        multiplier = self.total_return(start_year, end_year, series_id)
        return multiplier ** (1 / (end_year - start_year)) - 1

    def get_all_prices(self, series_id: str, start_year: Optional[int] = None,
                       end_year: Optional[int] = None) -> Dict[int, float]:
        first = self.earliest_year(series_id) if start_year is None else start_year
        last = self.latest_year(series_id) if end_year is None else end_year
        return {year: self.price(series_id, year) for year in range(first, last + 1)}

    def validate_prices(self, series_id: str, start_year: Optional[int] = None,
                        end_year: Optional[int] = None) -> List[str]:
        """Return a list of problems found in a price series (empty when consistent)."""
        issues = []
        config = self.config(series_id)
        if abs(self.price(series_id, config.base_year) - config.base_price) > 1e-9:
            issues.append(f"{config.name}: base year {config.base_year} price does not match anchor {config.base_price}")
        for year, price in self.get_all_prices(series_id, start_year, end_year).items():
            if not math.isfinite(price) or price <= 0:
                issues.append(f"{config.name}: invalid price {price} in {year}")
        return issues
