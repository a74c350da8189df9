from __future__ import annotations
import math
import numbers
from dataclasses import dataclass, field
from typing import Optional, Union

from strategies import WithdrawalStrategy


class InvalidParameterError(ValueError):
    """Raised when an input is outside its documented range."""


@dataclass(frozen=True)
class TaxBands:
    """UK income tax bands (2024/25 tax year)."""

    personal_allowance: float = 12_570
    basic_rate_band: float = 37_700  # taxable income taxed at basic rate
    higher_rate_threshold: float = 125_140
    basic_rate: float = 0.20
    higher_rate: float = 0.40
    additional_rate: float = 0.45
    taper_threshold: float = 100_000
    taper_rate: float = 0.5  # allowance lost per unit of income above threshold


@dataclass(frozen=True)
class PensionRules:
    pension_access_age: float = 58
    state_pension_age: float = 67
    state_pension_monthly: float = 958.50
    tax_free_fraction: float = 0.25  # of each pension withdrawal
    lump_sum_allowance: float = 268_275
    withdrawal_tolerance: float = 0.02

    def state_pension_at(self, age: float) -> float:
        """Annual state pension payable at ``age``."""
        if age < self.state_pension_age:
            return 0.0
        return self.state_pension_monthly * 12


UK_TAX_BANDS = TaxBands()
UK_PENSION_RULES = PensionRules()


@dataclass
class Params:
    # Ages
    current_age: float = 30
    terminal_age: float = 95

    # Starting balances
    pension_balance: float = 75_000  # taxed on withdrawal
    tax_free_balance: float = 25_000  # ISA

    # Monthly contributions
    monthly_pension_contribution: float = 1_200
    monthly_tax_free_contribution: float = 800

    # Market assumptions (annual)
    stock_return: float = 0.07
    stock_volatility: float = 0.15
    bond_return: float = 0.03
    bond_volatility: float = 0.06
    inflation_rate: float = 0.025

    # Spending
    monthly_income_target: float = 3_000  # net, at retirement; indexed from then on
    withdrawal_strategy: Union[WithdrawalStrategy, int] = WithdrawalStrategy.FIXED
    essential_ratio: float = 0.7
    optimize_pension_ratio: bool = False

    # Bond tent / glide path
    glide_path_enabled: bool = False
    glide_start_stock: float = 0.6
    glide_end_stock: float = 1.0
    glide_years: float = 10
    glide_pre_retirement_years: float = 5

    # Search
    target_success_rate: float = 0.9
    max_months: int = 600
    simulations: int = 1_000
    time_budget_seconds: float = 25.0
    seed: Optional[int] = None

    # Tax and pension tables
    tax_bands: TaxBands = field(default=UK_TAX_BANDS)
    pension_rules: PensionRules = field(default=UK_PENSION_RULES)

    @property
    def months_to_terminal(self) -> int:
        return int(round((self.terminal_age - self.current_age) * 12))

    @property
    def strategy(self) -> WithdrawalStrategy:
        return WithdrawalStrategy(self.withdrawal_strategy)


def _check_range(name: str, value, low: float, high: float,
                 low_inclusive: bool = True, high_inclusive: bool = True) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameterError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite, got {value}")
    too_low = value < low if low_inclusive else value <= low
    too_high = value > high if high_inclusive else value >= high
    if too_low or too_high:
        lo = "[" if low_inclusive else "("
        hi = "]" if high_inclusive else ")"
        raise InvalidParameterError(
            f"{name} must be in {lo}{low}, {high}{hi}, got {value}"
        )


def validate_params(p: Params) -> None:
    """Fail fast on any out-of-range input before simulation starts."""
    _check_range("terminal_age", p.terminal_age, 19, 120)
    _check_range("current_age", p.current_age, 18, p.terminal_age, high_inclusive=False)
    if p.months_to_terminal < 1:
        raise InvalidParameterError(
            f"current_age must be at least a month before terminal_age, got "
            f"{p.current_age} and {p.terminal_age}"
        )
    _check_range("target_success_rate", p.target_success_rate, 0, 1, low_inclusive=False)
    _check_range("stock_return", p.stock_return, -0.5, 0.5)
    _check_range("stock_volatility", p.stock_volatility, 0, 1)
    _check_range("bond_return", p.bond_return, -0.5, 0.5)
    _check_range("bond_volatility", p.bond_volatility, 0, 1)
    _check_range("inflation_rate", p.inflation_rate, -0.05, 0.2)
    _check_range("monthly_income_target", p.monthly_income_target, 0, math.inf,
                 low_inclusive=False, high_inclusive=False)
    _check_range("pension_balance", p.pension_balance, 0, math.inf, high_inclusive=False)
    _check_range("tax_free_balance", p.tax_free_balance, 0, math.inf, high_inclusive=False)
    _check_range("monthly_pension_contribution", p.monthly_pension_contribution,
                 0, math.inf, high_inclusive=False)
    _check_range("monthly_tax_free_contribution", p.monthly_tax_free_contribution,
                 0, math.inf, high_inclusive=False)
    _check_range("essential_ratio", p.essential_ratio, 0, 1)
    _check_range("max_months", p.max_months, 0, 1_200)
    _check_range("simulations", p.simulations, 1, 1_000_000)
    _check_range("time_budget_seconds", p.time_budget_seconds, 0, math.inf,
                 low_inclusive=False, high_inclusive=False)

    if int(p.max_months) != p.max_months:
        raise InvalidParameterError(f"max_months must be a whole number, got {p.max_months}")
    if int(p.simulations) != p.simulations:
        raise InvalidParameterError(f"simulations must be a whole number, got {p.simulations}")

    try:
        WithdrawalStrategy(p.withdrawal_strategy)
    except ValueError:
        raise InvalidParameterError(
            f"withdrawal_strategy must be one of 1-4, got {p.withdrawal_strategy!r}"
        ) from None

    if p.glide_path_enabled:
        _check_range("glide_start_stock", p.glide_start_stock, 0, 1)
        _check_range("glide_end_stock", p.glide_end_stock, 0, 1)
        _check_range("glide_years", p.glide_years, 0, 40, low_inclusive=False)
        _check_range("glide_pre_retirement_years", p.glide_pre_retirement_years, 0, 20)
