import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional

from model.errors import DataUnavailable, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_PATH = os.path.join(os.path.dirname(__file__), '../../reference/market-data.json')

CPI_SERIES_ID = "ukCpi"
EXCHANGE_RATE_SERIES_ID = "gbpUsd"


@dataclass(frozen=True)
class SeriesInfo:
    """Metadata describing one year-indexed market series."""
    id: str
    name: str
    unit: str
    currency: Optional[str]
    first_year: int
    last_year: int


class MarketData:
    """Year-indexed market series loaded from reference/market-data.json.

    Series cover the gold spot price in GBP, equity and bond total-return index
    levels, the GBP/USD exchange rate and UK CPI. The tables are read once and
    never mutated, so one instance can be shared across any number of
    simulations.
    """

    def __init__(self, reference_path: Optional[str] = None):
        """Load all series.

        Args:
            reference_path: Optional path to a market-data.json file.
        """
        self.reference_path = reference_path or DEFAULT_REFERENCE_PATH
        self._values: Dict[str, Dict[int, float]] = {}
        self._info: Dict[str, SeriesInfo] = {}
        self._load()

    def _load(self):
        with open(self.reference_path, 'r') as f:
            data = json.load(f)

        series_list = data.get("series", [])
        if not series_list:
            raise ValueError("market-data.json must contain a 'series' array with at least one entry")

        for series in series_list:
            series_id = series["id"]
            values = {int(year): float(value) for year, value in series.get("values", {}).items()}
            if not values:
                raise ValueError(f"Series '{series_id}' has no values")
            years = sorted(values.keys())
            for i in range(1, len(years)):
                if years[i] != years[i-1] + 1:
                    raise ValueError(f"Series '{series_id}' years must be sequential. Gap found between {years[i-1]} and {years[i]}")
            self._values[series_id] = values
            self._info[series_id] = SeriesInfo(
                id=series_id,
                name=series.get("name", series_id),
                unit=series.get("unit", ""),
                currency=series.get("currency"),
                first_year=years[0],
                last_year=years[-1],
            )
            logger.debug("Loaded series %s %d-%d", series_id, years[0], years[-1])

    def series_ids(self) -> List[str]:
        return list(self._info.keys())

    def has_series(self, series_id: str) -> bool:
        return series_id in self._info

    def series_info(self, series_id: str) -> SeriesInfo:
        if series_id not in self._info:
            raise ValidationError(f"Unknown market series '{series_id}'. Available: {', '.join(self._info.keys())}")
        return self._info[series_id]

    def years(self, series_id: str) -> List[int]:
        return sorted(self._values[self.series_info(series_id).id].keys())

    def earliest_year(self, series_id: str) -> int:
        return self.series_info(series_id).first_year

    def latest_year(self, series_id: str) -> int:
        return self.series_info(series_id).last_year

    def lookup(self, series_id: str, year: int) -> float:
        """Return a series value for a year.

        Raises:
            ValidationError: if the series is unknown
            DataUnavailable: if the year is outside the series' coverage
        """
        info = self.series_info(series_id)
        values = self._values[series_id]
        if year not in values:
            raise DataUnavailable(series_id, year, info.first_year, info.last_year)
        return values[year]

    def inflation_multiplier(self, from_year: int, to_year: int) -> float:
        """Ratio of UK CPI in to_year to CPI in from_year."""
        return self.lookup(CPI_SERIES_ID, to_year) / self.lookup(CPI_SERIES_ID, from_year)

    def covers(self, series_id: str, first_year: int, last_year: int) -> bool:
        info = self.series_info(series_id)
        return info.first_year <= first_year and last_year <= info.last_year
