import json
import logging
import math
import os
from typing import Dict, List, Optional

from model.TaxBreakdown import TaxRegime, TaxBandBreakdown, TaxBreakdown
from model.errors import DataUnavailable, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_PATH = os.path.join(os.path.dirname(__file__), '../../reference/uk-tax-details.json')

TAX_SERIES_ID = "uk-income-tax"


class UKTaxDetails:
	"""UK income tax regime lookup and calculator.

	Holds the year-indexed bands loaded from reference/uk-tax-details.json and
	computes the tax due on an amount of income, optionally treating it as a
	pension withdrawal where a fixed fraction (the tax-free lump sum) is exempt.
	"""

	def __init__(self, reference_path: Optional[str] = None):
		"""
		reference_path: optional path to a uk-tax-details.json file; defaults to
		the copy under reference/
		"""
		self.reference_path = reference_path or DEFAULT_REFERENCE_PATH
		self.regimes_by_year: Dict[int, TaxRegime] = {}
		self.pension_tax_free_fraction = 0.25
		self._load_regimes()

	def _load_regimes(self):
		with open(self.reference_path, 'r') as f:
			data = json.load(f)

		tax_years = data.get("taxYears", [])
		if not tax_years:
			raise ValueError("uk-tax-details.json must contain a 'taxYears' array with at least one entry")

		tax_years = sorted(tax_years, key=lambda x: x["year"])

		for i in range(1, len(tax_years)):
			if tax_years[i]["year"] != tax_years[i-1]["year"] + 1:
				raise ValueError(f"Tax years must be sequential. Gap found between {tax_years[i-1]['year']} and {tax_years[i]['year']}")

		for year_data in tax_years:
			year = year_data["year"]
			self.regimes_by_year[year] = TaxRegime(
				year=year,
				personalAllowance=year_data["personalAllowance"],
				basicRate=year_data["basicRate"],
				basicRateLimit=year_data["basicRateLimit"],
				higherRate=year_data["higherRate"],
				additionalRate=year_data.get("additionalRate"),
				additionalRateThreshold=year_data.get("additionalRateThreshold"),
				personalAllowanceTaperThreshold=year_data.get("personalAllowanceTaperThreshold"),
			)

		self.pension_tax_free_fraction = data.get("pensionTaxFreeFraction", self.pension_tax_free_fraction)
		self.first_year = tax_years[0]["year"]
		self.last_year = tax_years[-1]["year"]
		logger.debug("Loaded UK tax regimes %d-%d from %s", self.first_year, self.last_year, self.reference_path)

	def supportedYears(self) -> List[int]:
		return sorted(self.regimes_by_year.keys())

	def regime(self, year: int) -> TaxRegime:
		"""Return the tax bands for a year.

		Raises:
			ValidationError: if year is not an integer
			DataUnavailable: if no regime is defined for the year
		"""
		if isinstance(year, bool) or not isinstance(year, int):
			raise ValidationError(f"Tax year must be an integer, got {year!r}")
		if year not in self.regimes_by_year:
			raise DataUnavailable(TAX_SERIES_ID, year, self.first_year, self.last_year,
				message=f"Tax data not available for year {year}. Available: {self.first_year}-{self.last_year}")
		return self.regimes_by_year[year]

	def effectivePersonalAllowance(self, incomeForTax: float, year: int) -> float:
		"""Personal allowance after the high-income taper.

		The allowance drops by 1 for every 2 of income above the taper threshold,
		floored at zero. Years before the taper was introduced have no threshold.
		"""
		regime = self.regime(year)
		threshold = regime.personalAllowanceTaperThreshold
		if threshold is None or incomeForTax <= threshold:
			return regime.personalAllowance
		reduction = (incomeForTax - threshold) / 2
		return max(0.0, regime.personalAllowance - reduction)

	def computeTax(self, grossAmount: float, year: int, isPensionWithdrawal: bool = False) -> TaxBreakdown:
		"""Calculate income tax on an amount for a given year.

		Args:
			grossAmount: amount received before tax
			year: tax year
			isPensionWithdrawal: if True, the tax-free lump sum fraction is exempt
				and only the remainder is income for tax

		Returns:
			TaxBreakdown with band amounts and taxes
		"""
		self._validateAmount(grossAmount)
		regime = self.regime(year)

		if grossAmount == 0:
			return TaxBreakdown(
				grossIncome=0.0,
				taxFreeAmount=0.0,
				taxableAmount=0.0,
				taxPaid=0.0,
				netIncome=0.0,
				breakdown=TaxBandBreakdown(),
			)

		taxFreeAmount = grossAmount * self.pension_tax_free_fraction if isPensionWithdrawal else 0.0
		incomeForTax = grossAmount - taxFreeAmount

		allowance = self.effectivePersonalAllowance(incomeForTax, year)
		taxable = max(0.0, incomeForTax - allowance)

		basicAmount = min(taxable, regime.basicRateLimit)
		remaining = taxable - basicAmount

		if regime.hasAdditionalRate:
			higherBandWidth = max(0.0, regime.additionalRateThreshold - allowance - regime.basicRateLimit)
			higherAmount = min(remaining, higherBandWidth)
			additionalAmount = remaining - higherAmount
			additionalTax = additionalAmount * regime.additionalRate
		else:
			higherAmount = remaining
			additionalAmount = 0.0
			additionalTax = 0.0

		basicTax = basicAmount * regime.basicRate
		higherTax = higherAmount * regime.higherRate
		taxPaid = basicTax + higherTax + additionalTax

		return TaxBreakdown(
			grossIncome=grossAmount,
			taxFreeAmount=taxFreeAmount,
			taxableAmount=taxable,
			taxPaid=taxPaid,
			netIncome=grossAmount - taxPaid,
			breakdown=TaxBandBreakdown(
				personalAllowance=min(allowance, incomeForTax),
				basicRateTax=basicTax,
				higherRateTax=higherTax,
				additionalRateTax=additionalTax,
				basicRateAmount=basicAmount,
				higherRateAmount=higherAmount,
				additionalRateAmount=additionalAmount,
			),
		)

	def effectiveTaxRate(self, grossAmount: float, year: int, isPensionWithdrawal: bool = False) -> float:
		"""Tax paid as a percentage of the gross amount (0 for zero income)."""
		result = self.computeTax(grossAmount, year, isPensionWithdrawal)
		if result.grossIncome == 0:
			return 0.0
		return result.taxPaid / result.grossIncome * 100

	def marginalRate(self, grossAmount: float, year: int, isPensionWithdrawal: bool = False) -> float:
		"""Rate charged on the band the last unit of income for tax falls in.

		Income inside the taper zone is reported at the higher rate even though
		losing allowance makes the effective marginal cost larger there.
		"""
		result = self.computeTax(grossAmount, year, isPensionWithdrawal)
		regime = self.regime(year)
		bands = result.breakdown
		if bands.additionalRateAmount > 0:
			return regime.additionalRate
		if bands.higherRateAmount > 0:
			return regime.higherRate
		if bands.basicRateAmount > 0:
			return regime.basicRate
		return 0.0

	def taxBands(self, year: int) -> List[dict]:
		"""Describe the bands for a year in gross income terms (before any taper)."""
		regime = self.regime(year)
		basicTop = regime.personalAllowance + regime.basicRateLimit
		bands = [
			{"name": "Personal Allowance", "from": 0, "to": regime.personalAllowance, "rate": 0.0},
			{"name": "Basic Rate", "from": regime.personalAllowance, "to": basicTop, "rate": regime.basicRate},
		]
		if regime.hasAdditionalRate:
			bands.append({"name": "Higher Rate", "from": basicTop, "to": regime.additionalRateThreshold, "rate": regime.higherRate})
			bands.append({"name": "Additional Rate", "from": regime.additionalRateThreshold, "to": None, "rate": regime.additionalRate})
		else:
			bands.append({"name": "Higher Rate", "from": basicTop, "to": None, "rate": regime.higherRate})
		return bands

	def _validateAmount(self, amount):
		if isinstance(amount, bool) or not isinstance(amount, (int, float)):
			raise ValidationError(f"Income amount must be a number, got {amount!r}")
		if math.isnan(amount) or math.isinf(amount):
			raise ValidationError(f"Income amount must be finite, got {amount}")
		if amount < 0:
			raise ValidationError(f"Income amount cannot be negative, got {amount}")
