"""Error types raised by the simulation and tax engine.

Both are ValueError subclasses so callers that already guard numeric input
with ``except ValueError`` keep working.
"""

from typing import Optional


class ValidationError(ValueError):
    """Bad caller input: capital, rate, horizon or strategy identifiers."""


class DataUnavailable(ValueError):
    """A requested year falls outside a data series' coverage."""

    def __init__(self, series_id: str, year: int, first_year: Optional[int] = None,
                 last_year: Optional[int] = None, message: Optional[str] = None):
        self.series_id = series_id
        self.year = year
        self.first_year = first_year
        self.last_year = last_year
        if message is None:
            message = f"{series_id} data not available for year {year}"
            if first_year is not None and last_year is not None:
                message += f". Available: {first_year}-{last_year}"
            elif first_year is not None:
                message += f". Earliest available: {first_year}"
        super().__init__(message)
