from __future__ import annotations
import math
from dataclasses import dataclass


def floor_balance(value: float) -> float:
    """Clamp a balance to be finite and non-negative."""
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


@dataclass
class AccountState:
    pension: float = 0.0  # taxed on withdrawal
    tax_free: float = 0.0  # ISA
    allowance_used: float = 0.0  # lifetime tax-free lump sum consumed

    def total(self) -> float:
        return self.pension + self.tax_free

    def apply_return(self, rate: float) -> None:
        self.pension = floor_balance(self.pension * (1 + rate))
        self.tax_free = floor_balance(self.tax_free * (1 + rate))

    def contribute(self, pension: float, tax_free: float) -> None:
        self.pension += pension
        self.tax_free += tax_free

    def apply_withdrawal(self, decision: WithdrawalDecision) -> None:
        self.pension = floor_balance(self.pension - decision.pension_withdrawal)
        self.tax_free = floor_balance(self.tax_free - decision.tax_free_withdrawal)
        self.allowance_used = max(self.allowance_used, decision.allowance_used)

    @property
    def depleted(self) -> bool:
        return self.pension <= 0 and self.tax_free <= 0


@dataclass
class WithdrawalDecision:
    pension_withdrawal: float = 0.0  # gross
    tax_free_withdrawal: float = 0.0
    tax_paid: float = 0.0
    net_income: float = 0.0  # includes state pension
    state_pension: float = 0.0
    allowance_used: float = 0.0

    @property
    def gross_income(self) -> float:
        return self.pension_withdrawal + self.tax_free_withdrawal + self.state_pension

    @property
    def effective_tax_rate(self) -> float:
        taxable = self.pension_withdrawal + self.state_pension
        if taxable <= 0:
            return 0.0
        return self.tax_paid / taxable
