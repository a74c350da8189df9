"""
Splitting a net income target between the pension and the tax-free account.

Amounts are annual. The pension becomes accessible at the pension access
age; a quarter of each pension withdrawal is tax free until the lifetime lump
sum allowance is used up, the rest is taxed as income on top of any state
pension.
"""

from __future__ import annotations
from functools import lru_cache
from typing import Optional, Tuple

from accounts import AccountState, WithdrawalDecision
from params import PensionRules, TaxBands, UK_PENSION_RULES, UK_TAX_BANDS
from tax import income_tax, marginal_tax

MAX_BISECTION_STEPS = 20
BISECTION_TOLERANCE = 1.0

# Pension/tax-free ratio search
MIN_OPTIMIZER_YEARS = 5
LOOKAHEAD_YEARS = 25
LOOKAHEAD_RETURN_DISCOUNT = 0.75
COARSE_RATIOS = tuple(i / 10 for i in range(11))
REFINE_SPAN = 0.08
REFINE_STEP = 0.02
CACHE_BUCKET = 1_000


def pension_net(gross: float, allowance_used: float, other_income: float,
                rules: PensionRules = UK_PENSION_RULES,
                bands: TaxBands = UK_TAX_BANDS) -> Tuple[float, float, float]:
    """Net cash, tax and tax-free part of a gross pension withdrawal."""
    remaining_allowance = max(0.0, rules.lump_sum_allowance - allowance_used)
    tax_free_part = min(gross * rules.tax_free_fraction, remaining_allowance)
    tax = marginal_tax(gross - tax_free_part, other_income, bands)
    return gross - tax, tax, tax_free_part


def required_pension_withdrawal(target_net: float, balance: float,
                                allowance_used: float = 0.0, other_income: float = 0.0,
                                rules: PensionRules = UK_PENSION_RULES,
                                bands: TaxBands = UK_TAX_BANDS) -> float:
    """
    Gross pension withdrawal whose after-tax value covers ``target_net``.

    Capped at ``balance``. The result errs on the high side by at most
    ``BISECTION_TOLERANCE`` so the net amount is never short.
    """
    if target_net <= 0 or balance <= 0:
        return 0.0

    def net_of(gross: float) -> float:
        return pension_net(gross, allowance_used, other_income, rules, bands)[0]

    if net_of(balance) <= target_net:
        return balance

    low = 0.0
    high = min(balance, target_net)
    while net_of(high) < target_net:
        low = high
        high = min(balance, high * 2)

    for _ in range(MAX_BISECTION_STEPS):
        if high - low <= BISECTION_TOLERANCE:
            break
        mid = (low + high) / 2
        if net_of(mid) < target_net:
            low = mid
        else:
            high = mid
    return high


def allocate_withdrawal(pension: float, tax_free: float, target_net: float, age: float,
                        allowance_used: float = 0.0, pension_ratio: Optional[float] = None,
                        rules: PensionRules = UK_PENSION_RULES,
                        bands: TaxBands = UK_TAX_BANDS) -> WithdrawalDecision:
    """
    Decide how much to draw from each account to reach ``target_net``.

    Before the pension access age only the tax-free account is used. After
    it, ``pension_ratio`` of the amount still needed (after state pension) is
    sourced from the pension and the rest from the tax-free account; either
    account covers a shortfall in the other. ``None`` means pension first.
    The caller applies the decision to the balances.
    """
    pension = max(0.0, pension)
    tax_free = max(0.0, tax_free)

    state_pension = rules.state_pension_at(age)
    state_tax = income_tax(state_pension, bands)
    decision = WithdrawalDecision(
        tax_paid=state_tax,
        net_income=state_pension - state_tax,
        state_pension=state_pension,
        allowance_used=allowance_used,
    )
    needed = target_net - decision.net_income
    if needed <= 0:
        return decision

    if age < rules.pension_access_age:
        decision.tax_free_withdrawal = min(tax_free, needed)
        decision.net_income += decision.tax_free_withdrawal
        return decision

    ratio = 1.0 if pension_ratio is None else min(1.0, max(0.0, pension_ratio))
    gross = required_pension_withdrawal(needed * ratio, pension, allowance_used,
                                        state_pension, rules, bands)
    net_pension, pension_tax, lump_sum = pension_net(gross, allowance_used, state_pension,
                                                    rules, bands)
    from_tax_free = min(tax_free, max(0.0, needed - net_pension))

    if net_pension + from_tax_free < needed and gross < pension:
        # tax-free account ran dry, lean on the pension for the remainder
        gross = required_pension_withdrawal(needed - from_tax_free, pension, allowance_used,
                                            state_pension, rules, bands)
        net_pension, pension_tax, lump_sum = pension_net(gross, allowance_used, state_pension,
                                                        rules, bands)

    decision.pension_withdrawal = gross
    decision.tax_free_withdrawal = from_tax_free
    decision.tax_paid += pension_tax
    decision.net_income += net_pension + from_tax_free
    decision.allowance_used = min(rules.lump_sum_allowance, allowance_used + lump_sum)
    return decision


def lookahead_survival(pension: float, tax_free: float, target_net: float, age: float,
                       allowance_used: float, years: int, growth: float, inflation: float,
                       pension_ratio: float, rules: PensionRules = UK_PENSION_RULES,
                       bands: TaxBands = UK_TAX_BANDS) -> int:
    """Years a fixed ``pension_ratio`` keeps income on target under steady growth."""
    state = AccountState(pension, tax_free, allowance_used)
    for year in range(years):
        year_target = target_net * (1 + inflation) ** year
        decision = allocate_withdrawal(state.pension, state.tax_free, year_target, age + year,
                                       state.allowance_used, pension_ratio, rules, bands)
        if decision.net_income < year_target * (1 - rules.withdrawal_tolerance):
            return year
        state.apply_withdrawal(decision)
        state.apply_return(growth)
    return years


def _first_best(ratios, score) -> Tuple[float, int]:
    best_ratio, best_score = None, -1
    for ratio in ratios:
        s = score(ratio)
        if s > best_score:
            best_ratio, best_score = ratio, s
    return best_ratio, best_score


@lru_cache(maxsize=4096)
def _best_ratio(pension: float, tax_free: float, target_net: float, age: float,
                allowance_used: float, years: int, growth: float, inflation: float,
                rules: PensionRules, bands: TaxBands) -> float:
    def score(ratio: float) -> int:
        return lookahead_survival(pension, tax_free, target_net, age, allowance_used,
                                  years, growth, inflation, ratio, rules, bands)

    coarse, _ = _first_best(COARSE_RATIOS, score)
    steps = int(round(REFINE_SPAN / REFINE_STEP))
    refine = sorted({
        round(min(1.0, max(0.0, coarse + k * REFINE_STEP)), 2)
        for k in range(-steps, steps + 1)
    })
    best, _ = _first_best(refine, score)
    return best


def _bucket(value: float) -> float:
    return round(value / CACHE_BUCKET) * CACHE_BUCKET


def optimize_pension_ratio(pension: float, tax_free: float, target_net: float, age: float,
                           allowance_used: float, years_remaining: float,
                           expected_return: float, inflation: float,
                           rules: PensionRules = UK_PENSION_RULES,
                           bands: TaxBands = UK_TAX_BANDS) -> Optional[float]:
    """
    Share of the withdrawal to source from the pension, or ``None`` to use
    the default pension-first order.

    Only searched past the access age, with more than ``MIN_OPTIMIZER_YEARS``
    to go and money in both accounts. Inputs are bucketed so nearby states
    share a cached answer.
    """
    if (years_remaining <= MIN_OPTIMIZER_YEARS or pension <= 0 or tax_free <= 0
            or age < rules.pension_access_age):
        return None
    years = int(min(LOOKAHEAD_YEARS, years_remaining))
    return _best_ratio(
        _bucket(pension), _bucket(tax_free), round(target_net), round(age, 2),
        _bucket(allowance_used), years, round(expected_return * LOOKAHEAD_RETURN_DISCOUNT, 4),
        round(inflation, 4), rules, bands,
    )
