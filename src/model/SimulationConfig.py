"""Immutable run configuration for strategy simulations.

Fee percentages and the simulation inputs are passed explicitly into every
simulator call. Named defaults are merged in once, when a configuration is
built from a spec.json or from keyword overrides.
"""

import json
import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from model.errors import ValidationError


DEFAULT_PENSION_AMOUNT = 500000
DEFAULT_START_YEAR = 2000
DEFAULT_WITHDRAWAL_RATE = 4
DEFAULT_YEARS = 25
DEFAULT_STRATEGY1 = "gold"
DEFAULT_STRATEGY2 = "sp500"

# Maps spec.json "costs" keys to FeeConfig field names
COST_KEYS = {
    "goldTransactionPercent": "gold_transaction_percent",
    "goldStorageFeePercent": "gold_storage_fee_percent",
    "sippManagementFeePercent": "sipp_management_fee_percent",
    "adjustForInflation": "adjust_for_inflation",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class FeeConfig:
    """Cost assumptions, all expressed as percentages."""
    gold_transaction_percent: float = 3.0
    gold_storage_fee_percent: float = 0.0
    sipp_management_fee_percent: float = 0.5
    adjust_for_inflation: bool = False

    def __post_init__(self):
        for name in ("gold_transaction_percent", "gold_storage_fee_percent", "sipp_management_fee_percent"):
            value = getattr(self, name)
            if not _is_number(value) or value != value:
                raise ValidationError(f"{name} must be a number, got {value!r}")
            if value < 0 or value >= 100:
                raise ValidationError(f"{name} must be between 0 and 100, got {value}")

    @property
    def gold_transaction_rate(self) -> float:
        return self.gold_transaction_percent / 100

    @property
    def gold_storage_fee_rate(self) -> float:
        return self.gold_storage_fee_percent / 100

    @property
    def sipp_management_fee_rate(self) -> float:
        return self.sipp_management_fee_percent / 100

    @classmethod
    def from_spec(cls, costs: Optional[Dict[str, Any]] = None) -> "FeeConfig":
        """Build from a spec.json 'costs' object, falling back to defaults.

        Accepts either the camelCase spec keys or the field names.
        """
        overrides = {}
        for key, value in (costs or {}).items():
            if value is None:
                continue
            field_name = COST_KEYS.get(key, key)
            if field_name not in COST_KEYS.values():
                raise ValidationError(f"Unknown cost setting '{key}'. Valid settings: {', '.join(COST_KEYS.keys())}")
            overrides[field_name] = value
        return cls(**overrides)

    def with_overrides(self, **overrides) -> "FeeConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, field_name) for key, field_name in COST_KEYS.items()}


@dataclass(frozen=True)
class SimulationInputs:
    """Inputs shared by every strategy in one simulation request."""
    pension_amount: float
    start_year: int
    withdrawal_rate: float
    years: int

    def __post_init__(self):
        if not _is_number(self.pension_amount) or self.pension_amount != self.pension_amount:
            raise ValidationError(f"Pension amount must be a number, got {self.pension_amount!r}")
        if self.pension_amount <= 0:
            raise ValidationError(f"Pension amount must be positive, got {self.pension_amount}")
        if isinstance(self.start_year, bool) or not isinstance(self.start_year, int):
            raise ValidationError(f"Start year must be an integer, got {self.start_year!r}")
        if not _is_number(self.withdrawal_rate) or self.withdrawal_rate != self.withdrawal_rate:
            raise ValidationError(f"Withdrawal rate must be a number, got {self.withdrawal_rate!r}")
        if self.withdrawal_rate <= 0 or self.withdrawal_rate > 100:
            raise ValidationError(f"Withdrawal rate must be greater than 0 and at most 100, got {self.withdrawal_rate}")
        if isinstance(self.years, bool) or not isinstance(self.years, int) or self.years <= 0:
            raise ValidationError(f"Years must be a positive integer, got {self.years!r}")

    @property
    def end_year(self) -> int:
        return self.start_year + self.years - 1

    @property
    def target_withdrawal(self) -> float:
        """Fixed annual withdrawal: a percentage of the starting capital."""
        return self.pension_amount * self.withdrawal_rate / 100

    @classmethod
    def from_spec(cls, spec: Dict[str, Any]) -> "SimulationInputs":
        return cls(
            pension_amount=spec.get('pensionAmount', DEFAULT_PENSION_AMOUNT),
            start_year=spec.get('startYear', DEFAULT_START_YEAR),
            withdrawal_rate=spec.get('withdrawalRate', DEFAULT_WITHDRAWAL_RATE),
            years=spec.get('years', DEFAULT_YEARS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pensionAmount": self.pension_amount,
            "startYear": self.start_year,
            "endYear": self.end_year,
            "withdrawalRate": self.withdrawal_rate,
            "years": self.years,
        }


def spec_path(base_path: str, program_name: str) -> str:
    return os.path.join(base_path, 'input-parameters', program_name, 'spec.json')


def load_spec(base_path: str, program_name: str) -> dict:
    """Read input-parameters/<program_name>/spec.json under base_path.

    Raises:
        FileNotFoundError: if the program has no spec.json
    """
    path = spec_path(base_path, program_name)
    if not os.path.exists(path):
        raise FileNotFoundError(f"Spec file not found: {path}")
    with open(path, 'r') as f:
        return json.load(f)
