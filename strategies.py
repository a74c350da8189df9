"""
Withdrawal adjustment policies.

Each policy maps the inflation-adjusted baseline withdrawal and the
portfolio's performance ratio (actual value against the value expected at the
mean return) to the amount actually requested for the period.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict


class WithdrawalStrategy(IntEnum):
    FIXED = 1
    GUARDRAILS = 2
    CASH_BUFFER = 3
    ESSENTIAL_DISCRETIONARY = 4


# Guardrails
LOWER_GUARDRAIL = 0.8
UPPER_GUARDRAIL = 1.2
GUARDRAIL_CUT = 0.9
GUARDRAIL_RAISE = 1.1

# Essential / discretionary split
DISCRETIONARY_LOWER = 0.95
DISCRETIONARY_UPPER = 1.05
MAX_DISCRETIONARY_CUT = 0.5
MAX_DISCRETIONARY_RAISE = 0.3

# Cash buffer
BUFFER_DRAW_BELOW = 0.9
BUFFER_FILL_ABOVE = 1.1
BUFFER_FILL_FRACTION = 0.1
BUFFER_YEARS = 2


def performance_ratio(current_value: float, initial_value: float,
                      periods: float, expected_rate: float) -> float:
    if initial_value <= 0:
        return 1.0
    expected_value = initial_value * (1 + expected_rate) ** periods
    if expected_value <= 0:
        return 1.0
    return current_value / expected_value


def _fixed(target: float, ratio: float, essential_ratio: float) -> float:
    return target


def _guardrails(target: float, ratio: float, essential_ratio: float) -> float:
    if ratio < LOWER_GUARDRAIL:
        return target * GUARDRAIL_CUT
    if ratio > UPPER_GUARDRAIL:
        return target * GUARDRAIL_RAISE
    return target


def _cash_buffer(target: float, ratio: float, essential_ratio: float) -> float:
    # Smoothing happens in CashBuffer, the request itself is not scaled.
    return target


def _essential_discretionary(target: float, ratio: float, essential_ratio: float) -> float:
    essential = target * essential_ratio
    discretionary = target - essential
    if ratio < DISCRETIONARY_LOWER:
        cut = min(MAX_DISCRETIONARY_CUT, (DISCRETIONARY_LOWER - ratio) / DISCRETIONARY_LOWER)
        discretionary *= 1 - cut
    elif ratio > DISCRETIONARY_UPPER:
        raise_by = min(MAX_DISCRETIONARY_RAISE, (ratio - DISCRETIONARY_UPPER) / DISCRETIONARY_UPPER)
        discretionary *= 1 + raise_by
    return essential + discretionary


_ADJUSTERS: Dict[WithdrawalStrategy, Callable[[float, float, float], float]] = {
    WithdrawalStrategy.FIXED: _fixed,
    WithdrawalStrategy.GUARDRAILS: _guardrails,
    WithdrawalStrategy.CASH_BUFFER: _cash_buffer,
    WithdrawalStrategy.ESSENTIAL_DISCRETIONARY: _essential_discretionary,
}


def adjust_withdrawal(strategy: WithdrawalStrategy, target: float, ratio: float,
                      essential_ratio: float = 0.7) -> float:
    """Return the withdrawal requested under ``strategy``."""
    return _ADJUSTERS[WithdrawalStrategy(strategy)](target, ratio, essential_ratio)


@dataclass
class CashBuffer:
    """
    Cash reserve used by the cash-buffer policy.

    Filled with a slice of the target in strong years, spent first in weak
    years so that the portfolio is not sold down after a fall.
    """

    capacity: float
    balance: float = 0.0

    @classmethod
    def for_target(cls, annual_target: float) -> CashBuffer:
        return cls(capacity=annual_target * BUFFER_YEARS)

    def draw(self, needed: float, ratio: float) -> float:
        if ratio >= BUFFER_DRAW_BELOW or self.balance <= 0 or needed <= 0:
            return 0.0
        amount = min(self.balance, needed)
        self.balance -= amount
        return amount

    def top_up_request(self, target: float, ratio: float) -> float:
        if ratio <= BUFFER_FILL_ABOVE or self.balance >= self.capacity:
            return 0.0
        return min(self.capacity - self.balance, target * BUFFER_FILL_FRACTION)

    def deposit(self, amount: float) -> None:
        if amount > 0:
            self.balance = min(self.capacity, self.balance + amount)

    @property
    def empty(self) -> bool:
        return self.balance <= 0
