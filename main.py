#!/usr/bin/env python3
"""
UK FIRE saving-duration analysis - main entry point

1. Load parameters from params.py
2. Search for the shortest saving period meeting the target success rate
3. Display the result and the search trace
4. Save charts as PNG files

Usage: python main.py
"""

from __future__ import annotations
import logging
import sys
from datetime import datetime
from typing import Optional

import matplotlib.pyplot as plt

from params import InvalidParameterError, Params, validate_params
from solver import SolverResult, SolverStatus, solve_duration
from visualizations import RetirementVisualizer

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler('fire_analysis.log'),
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


class RetirementAnalyzer:
    """Runs the duration search and reports on it."""

    def __init__(self, params: Optional[Params] = None) -> None:
        self.params = params or Params()
        self.result: Optional[SolverResult] = None

    def load_parameters(self) -> bool:
        try:
            validate_params(self.params)
        except InvalidParameterError as e:
            print(f"Invalid parameter: {e}")
            logger.error(f"Parameter validation failed: {e}")
            return False

        p = self.params
        print("Parameters:")
        print(f"   Current age: {p.current_age}")
        print(f"   Pension / ISA: £{p.pension_balance:,.0f} / £{p.tax_free_balance:,.0f}")
        print(f"   Monthly saving: £{p.monthly_pension_contribution:,.0f} pension + "
              f"£{p.monthly_tax_free_contribution:,.0f} ISA")
        print(f"   Returns: {p.stock_return:.1%} ± {p.stock_volatility:.1%} stocks, "
              f"{p.bond_return:.1%} ± {p.bond_volatility:.1%} bonds")
        print(f"   Net income target: £{p.monthly_income_target:,.0f}/month")
        print(f"   Strategy: {p.strategy.name.replace('_', ' ').title()}")
        print(f"   Target success rate: {p.target_success_rate:.0%}")
        print(f"   Simulations: {p.simulations:,}")
        return True

    def run_search(self) -> bool:
        print("\nSearching for the shortest saving period...")
        self.result = solve_duration(self.params, confirm=True)
        if self.result.status == SolverStatus.ERROR:
            print(f"Search failed: {self.result.error}")
            return False
        return True

    def display_result(self) -> None:
        result = self.result
        if result is None:
            return
        p = self.params

        print("\n" + "=" * 70)
        print("SAVING DURATION RESULT")
        print("=" * 70)
        print(f"Analysis created: {datetime.now().strftime('%d/%m/%Y %H:%M:%S')}")
        print(f"Search time: {result.elapsed_seconds:.1f}s over {len(result.history)} candidates")

        if result.status == SolverStatus.INFEASIBLE:
            print(f"Target of {p.target_success_rate:.0%} not reachable within "
                  f"{p.max_months} months of saving.")
            return
        if result.status == SolverStatus.ABORTED:
            print("Time budget ran out before any saving period qualified.")
            return

        if result.budget_exceeded:
            print("Time budget ran out; showing the best period found so far.")
        print(f"Save for {result.months} months ({result.years:.1f} years), "
              f"retiring at {result.retirement_age:.1f}")
        print(f"Success rate: {result.success_rate:.1%}", end="")
        if result.confirmed_success_rate is not None:
            print(f" (confirmed {result.confirmed_success_rate:.1%} over {p.simulations:,} runs)")
        else:
            print()
        print(f"Expected pension at retirement: £{result.expected_pension:,.0f}")
        print(f"Expected ISA at retirement: £{result.expected_tax_free:,.0f}")

        sample = result.sample_withdrawal
        if sample is not None:
            print("\nFirst retirement year (expected balances):")
            print(f"   Pension withdrawal: £{sample.pension_withdrawal:,.0f}")
            print(f"   ISA withdrawal: £{sample.tax_free_withdrawal:,.0f}")
            print(f"   State pension: £{sample.state_pension:,.0f}")
            print(f"   Tax: £{sample.tax_paid:,.0f} "
                  f"(effective {sample.effective_tax_rate:.1%})")
            print(f"   Net income: £{sample.net_income:,.0f}")

        print("\nSearch trace:")
        print(result.history_frame().to_string(index=False, float_format=lambda v: f"{v:,.3f}"))

    def generate_visualizations(self) -> None:
        result = self.result
        if result is None or not result.history:
            return
        visualizer = RetirementVisualizer(self.params)
        charts = [("fire_search.png", lambda: visualizer.create_search_chart(result))]
        if result.months is not None:
            charts.append(("fire_balances.png", lambda: visualizer.create_balance_chart(result.months)))

        for filename, make_chart in charts:
            try:
                fig = make_chart()
                fig.savefig(filename, dpi=150, bbox_inches='tight', facecolor='white')
                plt.close(fig)
                print(f"Saved {filename}")
            except ValueError as e:
                print(f"Skipped {filename}: {e}")
                logger.error(f"Chart generation failed for {filename}: {e}")

    def run(self) -> int:
        if not self.load_parameters():
            return 1
        if not self.run_search():
            return 1
        self.display_result()
        self.generate_visualizations()
        return 0


if __name__ == "__main__":
    sys.exit(RetirementAnalyzer().run())
