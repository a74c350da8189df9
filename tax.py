from __future__ import annotations
from params import TaxBands, UK_TAX_BANDS


def personal_allowance(gross_income: float, bands: TaxBands = UK_TAX_BANDS) -> float:
    """Personal allowance after the high-income taper."""
    allowance = bands.personal_allowance
    if gross_income > bands.taper_threshold:
        reduction = (gross_income - bands.taper_threshold) * bands.taper_rate
        allowance = max(0.0, allowance - reduction)
    return allowance


def income_tax(gross_income: float, bands: TaxBands = UK_TAX_BANDS) -> float:
    """
    Annual income tax due on ``gross_income``.

    Bands apply to taxable income (income above the tapered allowance). The
    additional rate starts where the higher rate threshold sits for someone
    with the full allowance, so the bands do not move as the allowance tapers.
    """
    if gross_income <= 0:
        return 0.0

    taxable = max(0.0, gross_income - personal_allowance(gross_income, bands))
    basic_limit = bands.basic_rate_band
    higher_limit = max(basic_limit, bands.higher_rate_threshold - bands.personal_allowance)

    tax = min(taxable, basic_limit) * bands.basic_rate
    if taxable > basic_limit:
        tax += (min(taxable, higher_limit) - basic_limit) * bands.higher_rate
    if taxable > higher_limit:
        tax += (taxable - higher_limit) * bands.additional_rate
    return tax


def marginal_tax(extra_income: float, other_income: float,
                 bands: TaxBands = UK_TAX_BANDS) -> float:
    """Tax on ``extra_income`` stacked on top of ``other_income``."""
    return income_tax(other_income + extra_income, bands) - income_tax(other_income, bands)
