"""
Charts for the saving-duration search.
Shows which durations were tested and how balances evolve after retirement.
"""

from __future__ import annotations
import math
from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from params import Params
from returns import ReturnGenerator
from simulation import SAFE_WITHDRAWAL_RATE, simulate_path
from solver import SolverResult

# colorblind-friendly palette
COLORS = {
    'pension': '#1f77b4',    # Blue - pension account
    'tax_free': '#ff7f0e',   # Orange - ISA
    'total': '#17becf',      # Cyan - total portfolio
    'benchmark': '#bcbd22',  # Olive - target
    'success': '#2ca02c',    # Green - candidates meeting the target
    'failure': '#d62728',    # Red - candidates below the target
    'neutral': '#7f7f7f',    # Gray - rejected without simulating
}

plt.rcParams.update({
    'font.size': 10,
    'axes.labelsize': 11,
    'axes.titlesize': 12,
    'legend.fontsize': 9,
    'axes.grid': True,
    'grid.alpha': 0.3,
    'axes.axisbelow': True,
})


class RetirementVisualizer:
    def __init__(self, params: Params) -> None:
        self.params = params
        self.fig_size: Tuple[int, int] = (12, 8)

    def format_currency(self, amount: float, suffix: str = "£") -> str:
        if not math.isfinite(amount):
            return "N/A"
        if abs(amount) >= 1_000_000:
            return f"{suffix}{amount/1_000_000:.1f}M"
        elif abs(amount) >= 1_000:
            return f"{suffix}{amount/1_000:.0f}K"
        else:
            return f"{suffix}{amount:,.0f}"

    def create_search_chart(self, result: SolverResult) -> plt.Figure:
        """Success rate and expected withdrawal rate of every tested duration."""
        frame = result.history_frame()
        if frame.empty:
            raise ValueError("create_search_chart: result has no search history")

        fig, (ax1, ax2) = plt.subplots(2, 1, figsize=self.fig_size, sharex=True,
                                       height_ratios=[3, 2])
        target = self.params.target_success_rate * 100

        simulated = frame[~frame["rejected"]]
        rejected = frame[frame["rejected"]]
        met = simulated["success_rate"] * 100 >= target
        ax1.scatter(simulated.loc[met, "years"], simulated.loc[met, "success_rate"] * 100,
                    color=COLORS['success'], label="Meets target", zorder=3)
        ax1.scatter(simulated.loc[~met, "years"], simulated.loc[~met, "success_rate"] * 100,
                    color=COLORS['failure'], label="Below target", zorder=3)
        ax1.scatter(rejected["years"], np.zeros(len(rejected)), marker="x",
                    color=COLORS['neutral'], label="Rejected (unsafe rate)", zorder=3)
        ax1.axhline(target, color=COLORS['benchmark'], linestyle="--",
                    label=f"Target {target:.0f}%")
        if result.years is not None:
            ax1.axvline(result.years, color=COLORS['total'], linestyle=":",
                        label=f"Answer: {result.years:.1f} years")
        ax1.set_ylabel("Success rate (%)")
        ax1.set_ylim(-5, 105)
        ax1.set_title("Saving duration search")
        ax1.legend(loc="lower right")

        rates = frame["expected_withdrawal_rate"].replace(np.inf, np.nan) * 100
        ax2.bar(frame["years"], rates, width=0.4, color=COLORS['pension'], alpha=0.7)
        ax2.axhline(SAFE_WITHDRAWAL_RATE * 100, color=COLORS['failure'], linestyle="--",
                    label="Safe withdrawal rate")
        ax2.set_xlabel("Years of saving")
        ax2.set_ylabel("Expected withdrawal rate (%)")
        ax2.legend(loc="upper right")

        fig.tight_layout()
        return fig

    def create_balance_chart(self, months: int, paths: int = 200,
                             rng: Optional[np.random.Generator] = None) -> plt.Figure:
        """P10/P50/P90 total balance through retirement for ``months`` of saving."""
        generator = ReturnGenerator.from_params(self.params, rng)
        traces: List[List[Tuple[float, float, float]]] = []
        for _ in range(paths):
            trace: List[Tuple[float, float, float]] = []
            simulate_path(self.params, months, generator, trace=trace)
            traces.append(trace)

        length = max((len(t) for t in traces), default=0)
        if length == 0:
            raise ValueError("create_balance_chart: no retirement years to plot")

        # failed paths stop early; count them as empty from then on
        totals = np.zeros((paths, length))
        for i, trace in enumerate(traces):
            for j, (_, pension, tax_free) in enumerate(trace):
                totals[i, j] = pension + tax_free
        ages = self.params.current_age + months / 12 + np.arange(length)

        fig, ax = plt.subplots(figsize=self.fig_size)
        p10, p50, p90 = np.percentile(totals, [10, 50, 90], axis=0)
        ax.fill_between(ages, p10, p90, color=COLORS['total'], alpha=0.2, label="P10-P90")
        ax.plot(ages, p50, color=COLORS['total'], linewidth=2, label="Median")
        ax.axvline(self.params.pension_rules.pension_access_age, color=COLORS['pension'],
                   linestyle=":", label="Pension access")
        ax.axvline(self.params.pension_rules.state_pension_age, color=COLORS['tax_free'],
                   linestyle=":", label="State pension")
        ax.yaxis.set_major_formatter(plt.FuncFormatter(lambda v, _: self.format_currency(v)))
        ax.set_xlabel("Age")
        ax.set_ylabel("Total balance")
        ax.set_title(f"Balances after {months / 12:.1f} years of saving ({paths} paths)")
        ax.legend(loc="upper right")
        fig.tight_layout()
        return fig
