from dataclasses import dataclass, asdict
from typing import Optional


@dataclass(frozen=True)
class TaxRegime:
    """Income tax bands and rates for one tax year."""
    year: int
    personalAllowance: float
    basicRate: float
    basicRateLimit: float
    higherRate: float
    additionalRate: Optional[float] = None
    additionalRateThreshold: Optional[float] = None
    personalAllowanceTaperThreshold: Optional[float] = None

    @property
    def hasAdditionalRate(self) -> bool:
        return self.additionalRate is not None and self.additionalRateThreshold is not None


@dataclass(frozen=True)
class TaxBandBreakdown:
    personalAllowance: float = 0.0
    basicRateTax: float = 0.0
    higherRateTax: float = 0.0
    additionalRateTax: float = 0.0
    basicRateAmount: float = 0.0
    higherRateAmount: float = 0.0
    additionalRateAmount: float = 0.0


@dataclass(frozen=True)
class TaxBreakdown:
    grossIncome: float
    taxFreeAmount: float
    taxableAmount: float
    taxPaid: float
    netIncome: float
    breakdown: TaxBandBreakdown

    def to_dict(self) -> dict:
        return asdict(self)
