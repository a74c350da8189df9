from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from accounts import AccountState
from glide_path import GlidePath
from params import Params
from returns import MONTHS_PER_YEAR, ReturnGenerator, blend
from strategies import CashBuffer, WithdrawalStrategy, adjust_withdrawal, performance_ratio
from withdrawal import allocate_withdrawal, optimize_pension_ratio

logger = logging.getLogger(__name__)

SAFE_WITHDRAWAL_RATE = 0.04
BORDERLINE_RATE = 0.035
COMFORTABLE_RATE = 0.025
SHORT_HORIZON_MONTHS = 24
COMFORTABLE_FRACTION = 0.7
VERY_SAFE_FRACTION = 0.4

EARLY_EXIT_INTERVAL = 100
EARLY_EXIT_MIN_RUNS = 50
FAR_BELOW_MARGIN = 0.15
COMFORTABLY_ABOVE_MARGIN = 0.05


@dataclass
class PathOutcome:
    success: bool
    pension_at_retirement: float
    tax_free_at_retirement: float


@dataclass
class EvaluationResult:
    months: int
    success_rate: float
    expected_pension: float
    expected_tax_free: float
    expected_withdrawal_rate: float
    simulations_requested: int
    simulations_run: int

    @property
    def rejected(self) -> bool:
        """Skipped because the expected withdrawal rate was unsafe."""
        return self.simulations_requested == 0


def accumulate(p: Params, months: int, generator: ReturnGenerator,
               glide: Optional[GlidePath] = None) -> AccountState:
    """Grow the starting balances over ``months`` of random returns and contributions."""
    glide = glide or GlidePath.from_params(p)
    state = AccountState(p.pension_balance, p.tax_free_balance)
    if months <= 0:
        return state

    stock_returns, bond_returns = generator.monthly(months)
    for month, (stock_r, bond_r) in enumerate(zip(stock_returns.tolist(), bond_returns.tolist())):
        share = glide.accumulation_allocation(months - month)
        state.apply_return(blend(stock_r, bond_r, share))
        state.contribute(p.monthly_pension_contribution, p.monthly_tax_free_contribution)
    return state


def decumulation_years(p: Params, months: int) -> int:
    return max(0, math.ceil((p.months_to_terminal - months) / MONTHS_PER_YEAR))


def simulate_path(p: Params, months: int, generator: ReturnGenerator,
                  glide: Optional[GlidePath] = None,
                  trace: Optional[List[Tuple[float, float, float]]] = None) -> PathOutcome:
    """
    Simulate one life path: ``months`` of saving then yearly withdrawals
    until the terminal age.

    If ``trace`` is given, (age, pension, tax_free) is appended after every
    retirement year.
    """
    glide = glide or GlidePath.from_params(p)
    rules = p.pension_rules
    strategy = p.strategy

    state = accumulate(p, months, generator, glide)
    outcome = PathOutcome(False, state.pension, state.tax_free)

    years = decumulation_years(p, months)
    retirement_age = p.current_age + months / MONTHS_PER_YEAR
    annual_target = p.monthly_income_target * MONTHS_PER_YEAR
    initial_total = state.total()
    buffer = CashBuffer.for_target(annual_target)
    tolerance = rules.withdrawal_tolerance

    stock_returns, bond_returns = (r.tolist() for r in generator.annual(years))
    for year in range(years):
        age = retirement_age + year
        share = glide.stock_allocation(year)
        state.apply_return(blend(stock_returns[year], bond_returns[year], share))

        if age < rules.pension_access_age and state.tax_free <= 0 and buffer.empty:
            return outcome

        expected_rate = glide.expected_return(share, p.stock_return, p.bond_return)
        # this year's return is already applied
        ratio = performance_ratio(state.total() + buffer.balance, initial_total, year + 1,
                                  expected_rate)
        target = annual_target * (1 + p.inflation_rate) ** year
        requested = adjust_withdrawal(strategy, target, ratio, p.essential_ratio)

        from_buffer = 0.0
        top_up = 0.0
        if strategy == WithdrawalStrategy.CASH_BUFFER:
            from_buffer = buffer.draw(requested, ratio)
            top_up = buffer.top_up_request(target, ratio)
        needed = requested - from_buffer + top_up

        pension_ratio = None
        if p.optimize_pension_ratio:
            pension_ratio = optimize_pension_ratio(
                state.pension, state.tax_free, needed, age, state.allowance_used,
                years - year, expected_rate, p.inflation_rate, rules, p.tax_bands,
            )
        decision = allocate_withdrawal(state.pension, state.tax_free, needed, age,
                                       state.allowance_used, pension_ratio, rules, p.tax_bands)
        state.apply_withdrawal(decision)

        spendable = decision.net_income + from_buffer
        if top_up > 0:
            banked = min(top_up, max(0.0, spendable - requested))
            buffer.deposit(banked)
            spendable -= banked

        if trace is not None:
            trace.append((age, state.pension, state.tax_free))

        if spendable < requested * (1 - tolerance):
            return outcome
        if state.depleted and buffer.empty and year < years - 1:
            return outcome

    outcome.success = True
    return outcome


def expected_balances(p: Params, months: int, glide: Optional[GlidePath] = None) -> Tuple[float, float]:
    """Deterministic projection of both balances at the mean return."""
    glide = glide or GlidePath.from_params(p)
    state = AccountState(p.pension_balance, p.tax_free_balance)
    stock_mean = p.stock_return / MONTHS_PER_YEAR
    bond_mean = p.bond_return / MONTHS_PER_YEAR
    for month in range(max(0, months)):
        share = glide.accumulation_allocation(months - month)
        state.apply_return(blend(stock_mean, bond_mean, share))
        state.contribute(p.monthly_pension_contribution, p.monthly_tax_free_contribution)
    return state.pension, state.tax_free


def expected_withdrawal_rate(p: Params, pension: float, tax_free: float) -> float:
    total = pension + tax_free
    if total <= 0:
        return math.inf
    return p.monthly_income_target * MONTHS_PER_YEAR / total


def choose_simulation_count(base: int, months: int, withdrawal_rate: float) -> int:
    """Fewer runs where the answer is clearly safe, the full count near the edge."""
    if months < SHORT_HORIZON_MONTHS or withdrawal_rate >= BORDERLINE_RATE:
        return base
    if withdrawal_rate >= COMFORTABLE_RATE:
        return max(1, int(base * COMFORTABLE_FRACTION))
    return max(1, int(base * VERY_SAFE_FRACTION))


def _should_stop_early(successes: int, runs: int, total: int, target: float) -> bool:
    if runs < EARLY_EXIT_MIN_RUNS or runs % EARLY_EXIT_INTERVAL != 0 or runs >= total:
        return False
    rate = successes / runs
    remaining = total - runs
    best_possible = (successes + remaining) / total
    worst_possible = successes / total
    return (
        rate < target - FAR_BELOW_MARGIN
        or rate > target + COMFORTABLY_ABOVE_MARGIN
        or best_possible < target
        or worst_possible >= target
    )


def evaluate_duration(p: Params, months: int, rng: Optional[np.random.Generator] = None,
                      simulations: Optional[int] = None, early_exit: bool = True) -> EvaluationResult:
    """
    Estimate the probability of success for ``months`` of saving.

    Candidates whose expected withdrawal rate is above the safe rate are
    rejected without simulating. ``simulations`` overrides the adaptive count.
    """
    glide = GlidePath.from_params(p)
    pension, tax_free = expected_balances(p, months, glide)
    rate = expected_withdrawal_rate(p, pension, tax_free)
    result = EvaluationResult(months, 0.0, pension, tax_free, rate, 0, 0)

    if rate > SAFE_WITHDRAWAL_RATE:
        logger.debug("Rejected %d months: expected withdrawal rate %.2f%%", months, rate * 100)
        return result

    total = simulations or choose_simulation_count(int(p.simulations), months, rate)
    generator = ReturnGenerator.from_params(p, rng)
    successes = 0
    runs = 0
    while runs < total:
        if simulate_path(p, months, generator, glide).success:
            successes += 1
        runs += 1
        if early_exit and _should_stop_early(successes, runs, total, p.target_success_rate):
            logger.debug("Early exit for %d months after %d/%d runs", months, runs, total)
            break

    result.simulations_requested = total
    result.simulations_run = runs
    result.success_rate = successes / runs
    return result
