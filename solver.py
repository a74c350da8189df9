"""
Search for the shortest saving period that reaches the target success rate.

``solve`` is the entry point used by callers that only need the
``(years, pension, tax_free)`` triple; ``solve_duration`` returns the full
``SolverResult`` with the search history.
"""

from __future__ import annotations
import logging
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np
import pandas as pd

from accounts import WithdrawalDecision
from params import Params, validate_params
from returns import MONTHS_PER_YEAR
from simulation import EvaluationResult, evaluate_duration
from withdrawal import allocate_withdrawal

logger = logging.getLogger(__name__)

INFEASIBLE_SENTINEL = -1
ERROR_SENTINEL = -2
ABORTED_SENTINEL = -3


class SolverStatus(Enum):
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"
    ERROR = "error"
    ABORTED = "aborted"


@dataclass
class SolverResult:
    status: SolverStatus
    months: Optional[int] = None
    success_rate: float = 0.0
    expected_pension: float = 0.0
    expected_tax_free: float = 0.0
    retirement_age: Optional[float] = None
    budget_exceeded: bool = False
    confirmed_success_rate: Optional[float] = None
    sample_withdrawal: Optional[WithdrawalDecision] = None
    history: List[EvaluationResult] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    error: Optional[str] = None

    @property
    def years(self) -> Optional[float]:
        if self.months is None:
            return None
        return self.months / MONTHS_PER_YEAR

    def as_tuple(self) -> Tuple[float, float, float]:
        """``(years_needed, pension_at_retirement, tax_free_at_retirement)``."""
        if self.status == SolverStatus.FEASIBLE:
            return self.years, self.expected_pension, self.expected_tax_free
        sentinel = {
            SolverStatus.INFEASIBLE: INFEASIBLE_SENTINEL,
            SolverStatus.ERROR: ERROR_SENTINEL,
            SolverStatus.ABORTED: ABORTED_SENTINEL,
        }[self.status]
        return sentinel, 0.0, 0.0

    def history_frame(self) -> pd.DataFrame:
        """One row per tested duration, in the order they were tested."""
        rows = []
        for evaluation in self.history:
            row = asdict(evaluation)
            row["years"] = evaluation.months / MONTHS_PER_YEAR
            row["rejected"] = evaluation.rejected
            rows.append(row)
        columns = [
            "months", "years", "success_rate", "expected_withdrawal_rate",
            "simulations_requested", "simulations_run", "rejected",
            "expected_pension", "expected_tax_free",
        ]
        return pd.DataFrame(rows, columns=columns)


def search_upper_bound(p: Params) -> int:
    # leave at least a year of retirement to simulate
    return max(0, min(int(p.max_months), p.months_to_terminal - MONTHS_PER_YEAR))


def _binary_search(p: Params, rng: np.random.Generator, clock: Callable[[], float],
                   start: float) -> SolverResult:
    low, high = 0, search_upper_bound(p)
    best: Optional[EvaluationResult] = None
    history: List[EvaluationResult] = []
    budget_exceeded = False

    while low <= high:
        if clock() - start > p.time_budget_seconds:
            budget_exceeded = True
            logger.warning(
                "Time budget of %.1fs exceeded after %d candidates",
                p.time_budget_seconds, len(history),
            )
            break

        mid = (low + high) // 2
        evaluation = evaluate_duration(p, mid, rng)
        history.append(evaluation)
        logger.debug(
            "%d months: success %.1f%% (%d/%d runs)",
            mid, evaluation.success_rate * 100,
            evaluation.simulations_run, evaluation.simulations_requested,
        )

        if evaluation.success_rate >= p.target_success_rate:
            best = evaluation
            high = mid - 1
        else:
            low = mid + 1

    if best is None:
        status = SolverStatus.ABORTED if budget_exceeded else SolverStatus.INFEASIBLE
        return SolverResult(status, budget_exceeded=budget_exceeded, history=history)

    return SolverResult(
        SolverStatus.FEASIBLE,
        months=best.months,
        success_rate=best.success_rate,
        expected_pension=best.expected_pension,
        expected_tax_free=best.expected_tax_free,
        retirement_age=p.current_age + best.months / MONTHS_PER_YEAR,
        budget_exceeded=budget_exceeded,
        history=history,
    )


def solve_duration(p: Params, rng: Optional[np.random.Generator] = None,
                   clock: Callable[[], float] = time.monotonic,
                   confirm: bool = False) -> SolverResult:
    """
    Binary-search the saving period in months.

    Raises ``InvalidParameterError`` before any simulation if ``p`` is out of
    range. Any other failure is logged and reported as ``SolverStatus.ERROR``.
    With ``confirm`` the winning duration is re-run at the full simulation
    count, time permitting.
    """
    validate_params(p)
    rng = rng if rng is not None else np.random.default_rng(p.seed)
    start = clock()

    try:
        result = _binary_search(p, rng, clock, start)
        if result.status == SolverStatus.FEASIBLE:
            annual_target = p.monthly_income_target * MONTHS_PER_YEAR
            result.sample_withdrawal = allocate_withdrawal(
                result.expected_pension, result.expected_tax_free, annual_target,
                result.retirement_age, 0.0, None, p.pension_rules, p.tax_bands,
            )
            if confirm and not result.budget_exceeded and clock() - start <= p.time_budget_seconds:
                confirmation = evaluate_duration(p, result.months, rng,
                                                 simulations=int(p.simulations), early_exit=False)
                result.confirmed_success_rate = confirmation.success_rate
    except Exception as e:
        logger.exception("Duration search failed: %s", e)
        result = SolverResult(SolverStatus.ERROR, error=f"{type(e).__name__}: {e}")

    result.elapsed_seconds = clock() - start
    logger.info(
        "Search finished: %s, months=%s, success=%.1f%%, %.1fs",
        result.status.value, result.months, result.success_rate * 100, result.elapsed_seconds,
    )
    return result


def solve(p: Params) -> Tuple[float, float, float]:
    """
    Shortest saving period in years plus the expected pension and tax-free
    balances at retirement.

    ``-1`` years means the target is not reachable within ``max_months``,
    ``-2`` that an internal error was caught, ``-3`` that the time budget ran
    out before any duration qualified.
    """
    return solve_duration(p).as_tuple()
