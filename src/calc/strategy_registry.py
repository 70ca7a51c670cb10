"""Static registry of the strategies that can be simulated and compared.

Every strategy identifier resolves once, through resolve_variant(), to one of
three closed variants: GoldVariant, TrackerVariant(index) or
CombinedVariant(strategy_a, strategy_b). Simulators dispatch on the variant
type instead of on raw identifier strings.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from model.errors import ValidationError


CATEGORY_GOLD = "gold"
CATEGORY_TRACKER = "tracker"
CATEGORY_COMBINED = "combined"

FEE_TRANSACTION = "transactionFee"
FEE_STORAGE = "storageFee"
FEE_MANAGEMENT = "managementFee"

TAX_ON_INITIAL_WITHDRAWAL = "initialWithdrawal"
TAX_ON_ANNUAL_WITHDRAWAL = "annualWithdrawal"
TAX_ON_FINAL_VALUE = "finalValue"


@dataclass(frozen=True)
class GoldVariant:
    pass


@dataclass(frozen=True)
class TrackerVariant:
    index: str


@dataclass(frozen=True)
class CombinedVariant:
    strategy_a: str
    strategy_b: str
    split: Tuple[float, float] = (0.5, 0.5)


StrategyVariant = Union[GoldVariant, TrackerVariant, CombinedVariant]


@dataclass(frozen=True)
class StrategyDefinition:
    """Registry entry for one strategy."""
    id: str
    name: str
    short_name: str
    category: str
    description: str
    earliest_year: int
    fee_kinds: Tuple[str, ...]
    tax_events: Tuple[str, ...] = ()
    index: Optional[str] = None
    components: Optional[Tuple[str, str]] = None
    split: Optional[Tuple[float, float]] = None

    @property
    def variant(self) -> StrategyVariant:
        if self.category == CATEGORY_GOLD:
            return GoldVariant()
        if self.category == CATEGORY_TRACKER:
            return TrackerVariant(self.index)
        return CombinedVariant(self.components[0], self.components[1], self.split)

    def to_dict(self) -> dict:
        result = {
            "id": self.id,
            "name": self.name,
            "shortName": self.short_name,
            "category": self.category,
            "description": self.description,
            "earliestYear": self.earliest_year,
            "fees": list(self.fee_kinds),
            "taxEvents": list(self.tax_events),
        }
        if self.index:
            result["index"] = self.index
        if self.components:
            result["components"] = list(self.components)
            result["split"] = list(self.split)
        return result


def _tracker(strategy_id: str, name: str, short_name: str, index_name: str, earliest_year: int) -> StrategyDefinition:
    return StrategyDefinition(
        id=strategy_id,
        name=name,
        short_name=short_name,
        category=CATEGORY_TRACKER,
        description=f"Keep pension invested in {index_name} tracker within SIPP",
        earliest_year=earliest_year,
        fee_kinds=(FEE_MANAGEMENT,),
        tax_events=(TAX_ON_ANNUAL_WITHDRAWAL, TAX_ON_FINAL_VALUE),
        index=strategy_id,
    )


BASE_STRATEGIES: Dict[str, StrategyDefinition] = {
    "gold": StrategyDefinition(
        id="gold",
        name="Physical Gold - Outside Pension",
        short_name="Physical Gold",
        category=CATEGORY_GOLD,
        description="Withdraw pension, pay tax, buy CGT-exempt gold coins",
        earliest_year=1980,
        fee_kinds=(FEE_TRANSACTION, FEE_STORAGE),
        tax_events=(TAX_ON_INITIAL_WITHDRAWAL,),
    ),
    "goldEtf": _tracker("goldEtf", "Gold ETF SIPP", "Gold ETF", "Gold ETF", 1980),
    "sp500": _tracker("sp500", "S&P 500 SIPP", "S&P 500", "S&P 500", 1980),
    "nasdaq100": _tracker("nasdaq100", "Nasdaq 100 SIPP", "Nasdaq 100", "Nasdaq 100", 1985),
    "ftse100": _tracker("ftse100", "FTSE 100 SIPP", "FTSE 100", "FTSE 100", 1984),
    "usTreasury": _tracker("usTreasury", "US Long Treasury SIPP", "US Treasury", "US long Treasury bond", 1980),
}


def _combination(strategy_a: str, strategy_b: str, short_name: str) -> StrategyDefinition:
    a = BASE_STRATEGIES[strategy_a]
    b = BASE_STRATEGIES[strategy_b]
    fee_kinds = tuple(dict.fromkeys(a.fee_kinds + b.fee_kinds))
    tax_events = tuple(dict.fromkeys(a.tax_events + b.tax_events))
    return StrategyDefinition(
        id=f"{strategy_a}-{strategy_b}",
        name=f"50% {a.short_name} + 50% {b.short_name}",
        short_name=short_name,
        category=CATEGORY_COMBINED,
        description=f"Split pension 50/50 between {a.short_name} and {b.short_name}",
        earliest_year=max(a.earliest_year, b.earliest_year),
        fee_kinds=fee_kinds,
        tax_events=tax_events,
        components=(strategy_a, strategy_b),
        split=(0.5, 0.5),
    )


COMBINED_STRATEGIES: Dict[str, StrategyDefinition] = {
    c.id: c for c in [
        _combination("gold", "sp500", "Gold/S&P 500"),
        _combination("gold", "nasdaq100", "Gold/Nasdaq"),
        _combination("gold", "ftse100", "Gold/FTSE"),
        _combination("sp500", "nasdaq100", "S&P/Nasdaq"),
        _combination("sp500", "ftse100", "S&P/FTSE"),
        _combination("nasdaq100", "ftse100", "Nasdaq/FTSE"),
        _combination("goldEtf", "sp500", "Gold ETF/S&P 500"),
        _combination("goldEtf", "nasdaq100", "Gold ETF/Nasdaq"),
        _combination("goldEtf", "ftse100", "Gold ETF/FTSE"),
        _combination("gold", "goldEtf", "Physical/ETF Gold"),
        _combination("gold", "usTreasury", "Gold/Treasury"),
        _combination("sp500", "usTreasury", "S&P/Treasury"),
    ]
}

STRATEGY_REGISTRY: Dict[str, StrategyDefinition] = {**BASE_STRATEGIES, **COMBINED_STRATEGIES}


def get_strategy(strategy_id: str) -> StrategyDefinition:
    """Look up a strategy definition.

    Raises:
        ValidationError: if the identifier is unknown
    """
    strategy = STRATEGY_REGISTRY.get(strategy_id)
    if strategy is None:
        raise ValidationError(
            f"Strategy '{strategy_id}' not found. Available: {', '.join(STRATEGY_REGISTRY.keys())}"
        )
    return strategy


def resolve_variant(strategy_id: str) -> StrategyVariant:
    return get_strategy(strategy_id).variant


def get_all_strategies() -> List[StrategyDefinition]:
    return list(STRATEGY_REGISTRY.values())


def get_base_strategies() -> List[StrategyDefinition]:
    return list(BASE_STRATEGIES.values())


def get_combined_strategies() -> List[StrategyDefinition]:
    return list(COMBINED_STRATEGIES.values())


def is_combined_strategy(strategy_id: str) -> bool:
    return get_strategy(strategy_id).category == CATEGORY_COMBINED


def get_component_strategies(strategy_id: str) -> List[StrategyDefinition]:
    strategy = get_strategy(strategy_id)
    if strategy.category != CATEGORY_COMBINED:
        raise ValidationError(f"Strategy '{strategy_id}' is not a combined strategy")
    return [get_strategy(component) for component in strategy.components]


def find_combination(strategy_a: str, strategy_b: str) -> StrategyDefinition:
    """Find the combination of two base strategies, in either order."""
    for combination in COMBINED_STRATEGIES.values():
        if set(combination.components) == {strategy_a, strategy_b} and strategy_a != strategy_b:
            return combination
    raise ValidationError(f"No combination defined for '{strategy_a}' and '{strategy_b}'")


def get_strategies_available_for_year(start_year: int) -> List[StrategyDefinition]:
    return [s for s in STRATEGY_REGISTRY.values() if start_year >= s.earliest_year]


def can_compare(strategy1_id: str, strategy2_id: str) -> Tuple[bool, str]:
    """Check whether two strategies can be compared.

    Returns:
        Tuple of (valid, reason). The reason gives the earliest common start
        year when valid.
    """
    if strategy1_id == strategy2_id:
        return False, "Cannot compare a strategy with itself"
    strategy1 = get_strategy(strategy1_id)
    strategy2 = get_strategy(strategy2_id)
    earliest = max(strategy1.earliest_year, strategy2.earliest_year)
    return True, f"Earliest common start year: {earliest}"


def get_default_strategies() -> Tuple[str, str]:
    return "gold", "sp500"
